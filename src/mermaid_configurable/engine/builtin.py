"""Built-in engine: parse, lay out and draw diagrams in pure Python."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

from mermaid_configurable.config import font_size_px
from mermaid_configurable.layout import LayeredLayout, LayoutConfig, layout_sequence
from mermaid_configurable.parsers import parse
from mermaid_configurable.renderers import SvgRenderer, palette_for
from mermaid_configurable.syntax.types import Graph

LINK_SECURITY_LEVELS = frozenset({"loose", "antiscript"})


class BuiltinEngine:
    """Renders flowcharts and sequence diagrams without external tools.

    Rendering is CPU bound, so it runs in the default executor and the event
    loop stays responsive while a large diagram is laid out.
    """

    def __init__(self, offload: bool = True) -> None:
        self.offload = offload

    async def render(self, source: str, config: Mapping[str, Any], element_id: str) -> str:
        if not self.offload:
            return self.render_sync(source, config, element_id)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.render_sync, source, config, element_id)

    def render_sync(self, source: str, config: Mapping[str, Any], element_id: str) -> str:
        font_size = font_size_px(config)
        renderer = SvgRenderer(
            element_id=element_id,
            palette=palette_for(config.get("theme")),
            font_family=str(config.get("fontFamily") or "sans-serif"),
            font_size=font_size,
            allow_links=str(config.get("securityLevel", "strict")).lower() in LINK_SECURITY_LEVELS,
        )
        layout_config = LayoutConfig(font_size=font_size)

        diagram = parse(source)
        if isinstance(diagram, Graph):
            return renderer.render_flowchart(LayeredLayout(layout_config).layout(diagram))
        return renderer.render_sequence(layout_sequence(diagram, layout_config))
