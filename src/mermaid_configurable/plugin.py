"""Host plugin surface: the ``init`` hook and the ``mermaid`` block processor.

The host calls ``hooks["init"](context)`` once during setup and
``blocks["mermaid"]["process"](context, block)`` for every diagram block.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from mermaid_configurable.config import DEFAULT_CONFIG, HostConfig, HostLog, as_overrides, init_config, merge_config
from mermaid_configurable.engine import Engine
from mermaid_configurable.render import IdAllocator, render

PLUGIN_NAME = "mermaid-configurable"


@dataclass
class Block:
    """A document block: the diagram source plus per-block option overrides."""

    body: str | None = None
    kwargs: dict[str, Any] = field(default_factory=dict)


@dataclass
class PluginContext:
    """Per-session state the host threads through every hook call."""

    config: HostConfig | None = None
    log: HostLog | None = None
    mermaid_config: dict[str, Any] | None = None
    engine: Engine | None = None
    ids: IdAllocator | None = None


def init(context: PluginContext) -> None:
    context.mermaid_config = init_config(context.config, context.log)


async def process_block(context: PluginContext, block: Block) -> str:
    """Render one block with the session config overridden by the block's kwargs."""
    base = context.mermaid_config if context.mermaid_config is not None else DEFAULT_CONFIG
    effective = merge_config(base, as_overrides(block.kwargs, "block options"))
    return await render(block.body, effective, engine=context.engine, ids=context.ids)


hooks = {"init": init}
blocks = {"mermaid": {"process": process_block}}
