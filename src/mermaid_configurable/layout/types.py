"""Layout types shared across layout engines and renderers.

All coordinates are SVG user units (pixels); node positions are centers.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from mermaid_configurable.syntax.types import Direction, EdgeType, MessageKind, NodeShape


@dataclass
class LayoutConfig:
    """Spacing constants for the layout pipeline."""

    font_size: float = 16.0
    char_width: float = 0.6  # average glyph width as a fraction of font size
    line_height: float = 1.25
    node_padding_x: float = 15.0
    node_padding_y: float = 10.0
    node_spacing: float = 50.0
    rank_spacing: float = 60.0
    cluster_padding: float = 15.0
    subroutine_inset: float = 8.0  # gap between the outer and inner side bars of [[...]]
    cylinder_cap: float = 8.0  # vertical radius of the ellipses of [(...)]
    margin: float = 8.0
    crossing_sweeps: int = 4

    def text_size(self, text: str) -> tuple[float, float]:
        lines = text.split("\n") if text else [""]
        width = max(len(line) for line in lines) * self.font_size * self.char_width
        height = len(lines) * self.font_size * self.line_height
        return width, height


@dataclass
class Point:
    x: float
    y: float


@dataclass
class LayoutNode:
    """A positioned flowchart node."""

    id: str
    layer: int
    order: int
    x: float
    y: float
    width: float
    height: float
    label: str = ""
    shape: NodeShape = NodeShape.Rectangle
    link: str | None = None


@dataclass
class RoutedEdge:
    from_id: str
    to_id: str
    label: str | None
    edge_type: EdgeType
    points: list[Point]


@dataclass
class Cluster:
    """A positioned subgraph frame."""

    name: str
    title: str
    x: float
    y: float
    width: float
    height: float


@dataclass
class LayoutResult:
    """Self-contained flowchart layout output — everything renderers need."""

    nodes: list[LayoutNode]
    edges: list[RoutedEdge]
    direction: Direction
    width: float
    height: float
    clusters: list[Cluster] = field(default_factory=list)


# ─── Sequence diagrams ──────────────────────────────────────────────────────


@dataclass
class ParticipantBox:
    id: str
    label: str
    x: float  # center of the lifeline
    width: float
    actor: bool = False


@dataclass
class MessageRow:
    from_x: float
    to_x: float
    y: float
    text: str
    kind: MessageKind
    self_call: bool = False


@dataclass
class NoteBox:
    x: float
    y: float
    width: float
    height: float
    text: str


@dataclass
class FrameBox:
    kind: str
    label: str
    x: float
    y: float
    width: float
    height: float
    dividers: list[tuple[float, str]] = field(default_factory=list)


@dataclass
class SequenceLayout:
    participants: list[ParticipantBox]
    messages: list[MessageRow]
    notes: list[NoteBox]
    frames: list[FrameBox]
    header_height: float
    lifeline_end: float
    width: float
    height: float
    title: str | None = None
