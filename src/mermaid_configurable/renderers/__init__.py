"""Renderers that turn layouts into SVG markup."""

from mermaid_configurable.renderers.svg import SvgRenderer
from mermaid_configurable.renderers.themes import THEMES, Palette, palette_for

__all__ = ["THEMES", "Palette", "SvgRenderer", "palette_for"]
