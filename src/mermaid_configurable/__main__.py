"""CLI entry point for mermaid-configurable."""

import asyncio
import json
import logging
import sys

import click

from mermaid_configurable.config import SECURITY_LEVELS
from mermaid_configurable.engine import ENGINES
from mermaid_configurable.plugin import Block, PluginContext, init, process_block
from mermaid_configurable.render import ERROR_CLASS


class _JsonFileConfig:
    """Host configuration store backed by a JSON document."""

    def __init__(self, data: dict) -> None:
        self.data = data

    def get(self, key: str):
        value = self.data.get(key)
        if value is None and "." in key:
            value = self.data
            for part in key.split("."):
                value = value.get(part) if isinstance(value, dict) else None
        return value


@click.command()
@click.argument("input", required=False, type=click.Path(exists=True))
@click.option("--theme", "-t", "theme", type=str, default=None, help="Theme name (default, dark, forest, neutral, base)")
@click.option(
    "--security-level",
    "-s",
    "security_level",
    type=click.Choice(SECURITY_LEVELS),
    default=None,
    help="Allowed diagram content",
)
@click.option("--font-family", "font_family", type=str, default=None, help="CSS font family")
@click.option("--font-size", "font_size", type=str, default=None, help="Font size, e.g. 14px")
@click.option("--config", "-c", "config_file", type=click.Path(exists=True), default=None, help="JSON host config file")
@click.option("--engine", "-e", "engine_name", type=click.Choice(sorted(ENGINES)), default="builtin", help="Diagram engine")
@click.option("--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout")
@click.option("--verbose", "-v", is_flag=True, help="Log to stderr")
def main(
    input: str | None,
    theme: str | None,
    security_level: str | None,
    font_family: str | None,
    font_size: str | None,
    config_file: str | None,
    engine_name: str,
    output: str | None,
    verbose: bool,
) -> None:
    """Mermaid diagram to embeddable SVG fragment."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if input:
        try:
            with open(input, encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            click.echo(f"error: cannot read '{input}': {e}", err=True)
            sys.exit(1)
    else:
        text = sys.stdin.read()

    host_config = None
    if config_file:
        try:
            with open(config_file, encoding="utf-8") as f:
                host_config = _JsonFileConfig(json.load(f))
        except (OSError, ValueError) as e:
            click.echo(f"error: cannot load config '{config_file}': {e}", err=True)
            sys.exit(1)

    context = PluginContext(config=host_config, engine=ENGINES[engine_name]())
    init(context)
    overrides = {
        "theme": theme,
        "securityLevel": security_level,
        "fontFamily": font_family,
        "fontSize": font_size,
    }
    rendered = asyncio.run(process_block(context, Block(body=text, kwargs=overrides)))

    if output:
        try:
            with open(output, "w", encoding="utf-8") as f:
                f.write(rendered)
        except OSError as e:
            click.echo(f"error: cannot write '{output}': {e}", err=True)
            sys.exit(1)
    else:
        click.echo(rendered)

    if f'class="{ERROR_CLASS}"' in rendered:
        sys.exit(1)


if __name__ == "__main__":
    main()
