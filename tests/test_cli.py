"""CLI tests via click's CliRunner."""

import json

from click.testing import CliRunner

from mermaid_configurable.__main__ import main


def test_render_stdin():
    runner = CliRunner()
    result = runner.invoke(main, [], input="graph TD; A-->B;")
    assert result.exit_code == 0
    assert "mermaid-diagram" in result.output
    assert "<svg" in result.output


def test_render_file_to_output(tmp_path):
    src = tmp_path / "diagram.mmd"
    src.write_text("graph LR\n  A[Start] --> B{Ok?}\n")
    out = tmp_path / "diagram.html"
    result = CliRunner().invoke(main, [str(src), "--theme", "forest", "-o", str(out)])
    assert result.exit_code == 0
    html = out.read_text()
    assert "<svg" in html
    assert "#cde498" in html


def test_invalid_diagram_exits_nonzero():
    result = CliRunner().invoke(main, [], input="not a diagram")
    assert result.exit_code == 1
    assert "mermaid-error" in result.output


def test_config_file_is_host_layer(tmp_path):
    config = tmp_path / "book.json"
    config.write_text(json.dumps({"pluginsConfig": {"mermaid-configurable": {"theme": "dark"}}}))
    result = CliRunner().invoke(main, ["--config", str(config)], input="graph TD; A-->B;")
    assert result.exit_code == 0
    assert "#1f2020" in result.output


def test_option_overrides_config_file(tmp_path):
    config = tmp_path / "book.json"
    config.write_text(json.dumps({"pluginsConfig.mermaid-configurable": {"theme": "dark"}}))
    result = CliRunner().invoke(main, ["-c", str(config), "-t", "neutral"], input="graph TD; A-->B;")
    assert result.exit_code == 0
    assert "#1f2020" not in result.output
    assert "#eeeeee" in result.output


def test_unreadable_config_file(tmp_path):
    config = tmp_path / "broken.json"
    config.write_text("{not json")
    result = CliRunner().invoke(main, ["-c", str(config)], input="graph TD; A-->B;")
    assert result.exit_code == 1
    assert "cannot load config" in result.output
