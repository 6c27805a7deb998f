"""AST data structures for the diagram languages the built-in engine understands.

Flowcharts parse into ``Graph`` (with ``Node``, ``Edge``, ``Subgraph``);
sequence diagrams parse into ``SequenceDiagram``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto


class DiagramType(Enum):
    Flowchart = auto()
    Sequence = auto()


class Direction(Enum):
    LR = auto()
    RL = auto()
    TD = auto()
    BT = auto()

    @classmethod
    def default(cls) -> Direction:
        return cls.TD

    @property
    def horizontal(self) -> bool:
        return self in (Direction.LR, Direction.RL)


class NodeShape(Enum):
    Rectangle = auto()  # id[Label]
    Rounded = auto()  # id(Label)
    Diamond = auto()  # id{Label}
    Circle = auto()  # id((Label))
    Stadium = auto()  # id([Label])
    Subroutine = auto()  # id[[Label]]
    Cylinder = auto()  # id[(Label)]
    Hexagon = auto()  # id{{Label}}
    Asymmetric = auto()  # id>Label]

    @classmethod
    def default(cls) -> NodeShape:
        return cls.Rectangle


class EdgeType(Enum):
    Arrow = auto()  # -->, -- text -->
    Line = auto()  # ---, -- text ---
    DottedArrow = auto()  # -.->, -. text .->
    DottedLine = auto()  # -.-, -. text .-
    ThickArrow = auto()  # ==>, == text ==>
    ThickLine = auto()  # ===, == text ===
    BidirArrow = auto()  # <-->
    BidirDotted = auto()  # <-.->
    BidirThick = auto()  # <==>

    @property
    def dotted(self) -> bool:
        return self in (EdgeType.DottedArrow, EdgeType.DottedLine, EdgeType.BidirDotted)

    @property
    def thick(self) -> bool:
        return self in (EdgeType.ThickArrow, EdgeType.ThickLine, EdgeType.BidirThick)

    @property
    def arrow_end(self) -> bool:
        return self not in (EdgeType.Line, EdgeType.DottedLine, EdgeType.ThickLine)

    @property
    def arrow_start(self) -> bool:
        return self in (EdgeType.BidirArrow, EdgeType.BidirDotted, EdgeType.BidirThick)


# ─── Flowchart ──────────────────────────────────────────────────────────────


@dataclass
class Node:
    id: str
    label: str
    shape: NodeShape = NodeShape.Rectangle

    @classmethod
    def bare(cls, node_id: str) -> Node:
        return cls(id=node_id, label=node_id)


@dataclass
class Edge:
    from_id: str
    to_id: str
    edge_type: EdgeType = EdgeType.Arrow
    label: str | None = None


@dataclass
class Subgraph:
    name: str
    title: str
    direction: Direction | None = None
    node_ids: list[str] = field(default_factory=list)
    subgraphs: list[Subgraph] = field(default_factory=list)


@dataclass
class Graph:
    direction: Direction = field(default_factory=Direction.default)
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    subgraphs: list[Subgraph] = field(default_factory=list)
    links: dict[str, str] = field(default_factory=dict)

    def node(self, node_id: str) -> Node | None:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None


# ─── Sequence diagram ───────────────────────────────────────────────────────


class MessageKind(Enum):
    Solid = auto()  # ->
    Dotted = auto()  # -->
    SolidArrow = auto()  # ->>
    DottedArrow = auto()  # -->>
    SolidCross = auto()  # -x
    DottedCross = auto()  # --x
    SolidOpen = auto()  # -)
    DottedOpen = auto()  # --)

    @property
    def dotted(self) -> bool:
        return self in (
            MessageKind.Dotted,
            MessageKind.DottedArrow,
            MessageKind.DottedCross,
            MessageKind.DottedOpen,
        )


@dataclass
class Participant:
    id: str
    label: str
    actor: bool = False


@dataclass
class Message:
    from_id: str
    to_id: str
    text: str
    kind: MessageKind = MessageKind.SolidArrow
    number: int | None = None


@dataclass
class Note:
    placement: str  # "left", "right" or "over"
    participant_ids: list[str]
    text: str


@dataclass
class Frame:
    """A ``loop``/``alt``/... block spanning a range of steps."""

    kind: str
    label: str
    start: int
    end: int = -1
    sections: list[tuple[int, str]] = field(default_factory=list)
    depth: int = 0


@dataclass
class SequenceDiagram:
    participants: list[Participant] = field(default_factory=list)
    steps: list[Message | Note] = field(default_factory=list)
    frames: list[Frame] = field(default_factory=list)
    autonumber: bool = False
    title: str | None = None

    def participant(self, participant_id: str) -> Participant | None:
        for p in self.participants:
            if p.id == participant_id:
                return p
        return None
