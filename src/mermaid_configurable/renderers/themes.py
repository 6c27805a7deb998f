"""Theme palettes for the SVG renderer."""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Palette:
    background: str
    node_fill: str
    node_border: str
    line: str
    text: str
    cluster_fill: str
    cluster_border: str
    note_fill: str
    note_border: str
    label_background: str


THEMES: dict[str, Palette] = {
    "default": Palette(
        background="white",
        node_fill="#ECECFF",
        node_border="#9370DB",
        line="#333333",
        text="#333333",
        cluster_fill="#ffffde",
        cluster_border="#aaaa33",
        note_fill="#fff5ad",
        note_border="#aaaa33",
        label_background="#e8e8e8",
    ),
    "dark": Palette(
        background="#333333",
        node_fill="#1f2020",
        node_border="#81B1DB",
        line="lightgrey",
        text="#cccccc",
        cluster_fill="hsl(180, 1.59%, 28.04%)",
        cluster_border="rgba(255, 255, 255, 0.25)",
        note_fill="#474949",
        note_border="#81B1DB",
        label_background="#585858",
    ),
    "forest": Palette(
        background="white",
        node_fill="#cde498",
        node_border="#13540c",
        line="#008000",
        text="#333333",
        cluster_fill="#cdffb2",
        cluster_border="#6eaa49",
        note_fill="#fff5ad",
        note_border="#6eaa49",
        label_background="#e8e8e8",
    ),
    "neutral": Palette(
        background="white",
        node_fill="#eeeeee",
        node_border="#999999",
        line="#666666",
        text="#333333",
        cluster_fill="#ffffde",
        cluster_border="#aaaa33",
        note_fill="#f4f4f4",
        note_border="#999999",
        label_background="white",
    ),
    "base": Palette(
        background="white",
        node_fill="#fff4dd",
        node_border="#9b8555",
        line="#333333",
        text="#333333",
        cluster_fill="#ffffde",
        cluster_border="#9b8555",
        note_fill="#fff5ad",
        note_border="#9b8555",
        label_background="#e8e8e8",
    ),
}


def palette_for(theme: object) -> Palette:
    """Look up a palette by theme name; unknown names get the default palette."""
    name = str(theme).strip().lower() if theme is not None else "default"
    if name not in THEMES:
        logger.debug("unknown theme %r, using default", theme)
        return THEMES["default"]
    return THEMES[name]
