"""Flowchart parser — hand-rolled recursive descent.

Parses Mermaid flowchart/graph DSL into the AST types from syntax.types.
Statements end at a newline or a ``;``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from mermaid_configurable.errors import DiagramSyntaxError
from mermaid_configurable.syntax.types import Direction, Edge, EdgeType, Graph, Node, NodeShape, Subgraph

# ─── Tokenizer ───────────────────────────────────────────────────────────────

_COMMENT_RE = re.compile(r"%%[^\n]*")
_WHITESPACE_RE = re.compile(r"[ \t]+")
_NEWLINE_RE = re.compile(r"\r\n|\n|\r|;")
_REST_OF_STATEMENT_RE = re.compile(r"[^\n;]*")

# Connector lengths are open-ended: ``---->`` is an arrow, ``-...-`` a dotted line.
_EDGE_PATTERNS: list[tuple[re.Pattern[str], EdgeType]] = [
    (re.compile(r"<-\.+->"), EdgeType.BidirDotted),
    (re.compile(r"<={2,}>"), EdgeType.BidirThick),
    (re.compile(r"<-{2,}>"), EdgeType.BidirArrow),
    (re.compile(r"-\.+->"), EdgeType.DottedArrow),
    (re.compile(r"={2,}>"), EdgeType.ThickArrow),
    (re.compile(r"-{2,}>"), EdgeType.Arrow),
    (re.compile(r"-\.+-"), EdgeType.DottedLine),
    (re.compile(r"={3,}"), EdgeType.ThickLine),
    (re.compile(r"-{3,}"), EdgeType.Line),
]

# Edges with inline text: ``-- text -->``, ``-. text .->``, ``== text ==>``.
# Groups: optional ``<``, the text, the closing connector.
_TEXT_EDGE_PATTERNS: list[tuple[re.Pattern[str], tuple[EdgeType, EdgeType, EdgeType]]] = [
    (
        re.compile(r"(<?)--(?![->.])([^\n;]*?)(-{2,}>|-{3,})"),
        (EdgeType.Line, EdgeType.Arrow, EdgeType.BidirArrow),
    ),
    (
        re.compile(r"(<?)-\.(?![-.>])([^\n;]*?)(\.-+>|\.-+)"),
        (EdgeType.DottedLine, EdgeType.DottedArrow, EdgeType.BidirDotted),
    ),
    (
        re.compile(r"(<?)==(?![=>])([^\n;]*?)(={2,}>|={3,})"),
        (EdgeType.ThickLine, EdgeType.ThickArrow, EdgeType.BidirThick),
    ),
]

# Hyphens are allowed inside ids but never where they would start an edge.
_NODE_ID_RE = re.compile(r"[A-Za-z0-9_]+(?:-[A-Za-z0-9_]+)*")
_DIRECTION_RE = re.compile(r"TD|TB|LR|RL|BT")
_LABEL_TEXT_RE = re.compile(r"[^|\n]+")
_SUBGRAPH_HEADER_RE = re.compile(r"([A-Za-z0-9_][\w-]*)\s*\[\s*\"?(.*?)\"?\s*\]\s*$")
_IGNORED_KEYWORDS = ("classDef", "class", "style", "linkStyle")

# Longer openers first so ``((`` is not read as ``(``.
_SHAPES: list[tuple[str, str, NodeShape]] = [
    ("((", "))", NodeShape.Circle),
    ("([", "])", NodeShape.Stadium),
    ("(", ")", NodeShape.Rounded),
    ("{{", "}}", NodeShape.Hexagon),
    ("{", "}", NodeShape.Diamond),
    ("[[", "]]", NodeShape.Subroutine),
    ("[(", ")]", NodeShape.Cylinder),
    ("[", "]", NodeShape.Rectangle),
    (">", "]", NodeShape.Asymmetric),
]


@dataclass
class _Cursor:
    """Stateful parser cursor over the input string."""

    src: str
    pos: int = 0
    graph: Graph = field(default_factory=Graph)

    def eof(self) -> bool:
        return self.pos >= len(self.src)

    def line(self) -> int:
        return self.src.count("\n", 0, self.pos) + 1

    def error(self, message: str) -> DiagramSyntaxError:
        return DiagramSyntaxError(message, line=self.line())

    def peek(self, s: str) -> bool:
        return self.src.startswith(s, self.pos)

    def consume(self, s: str) -> bool:
        if self.peek(s):
            self.pos += len(s)
            return True
        return False

    def consume_keyword(self, word: str) -> bool:
        """Consume ``word`` only when it is not the prefix of a longer identifier."""
        if not self.peek(word):
            return False
        after = self.pos + len(word)
        if after < len(self.src) and (self.src[after].isalnum() or self.src[after] in "_-"):
            return False
        self.pos = after
        return True

    def match_re(self, pattern: re.Pattern[str]) -> str | None:
        m = pattern.match(self.src, self.pos)
        if m:
            self.pos = m.end()
            return m.group(0)
        return None

    def skip_ws(self) -> None:
        while True:
            m = _WHITESPACE_RE.match(self.src, self.pos) or _COMMENT_RE.match(self.src, self.pos)
            if not m:
                break
            self.pos = m.end()

    def skip_blank(self) -> None:
        while True:
            self.skip_ws()
            if not self.consume_newline():
                break

    def consume_newline(self) -> bool:
        m = _NEWLINE_RE.match(self.src, self.pos)
        if m:
            self.pos = m.end()
            return True
        return False

    def expect_statement_end(self) -> None:
        self.skip_ws()
        if self.eof() or self.consume_newline():
            return
        rest = _REST_OF_STATEMENT_RE.match(self.src, self.pos).group(0).strip()
        raise self.error(f"unexpected text '{rest}'")

    def skip_statement(self) -> None:
        self.match_re(_REST_OF_STATEMENT_RE)
        self.consume_newline()

    def parse_direction_value(self) -> Direction:
        d = self.match_re(_DIRECTION_RE)
        if d in ("TD", "TB"):
            return Direction.TD
        if d == "LR":
            return Direction.LR
        if d == "RL":
            return Direction.RL
        if d == "BT":
            return Direction.BT
        return Direction.TD

    def parse_header(self) -> Direction:
        self.skip_blank()
        if not (self.consume_keyword("flowchart") or self.consume_keyword("graph")):
            raise self.error("expected 'graph' or 'flowchart' header")
        self.skip_ws()
        d = self.parse_direction_value()
        self.expect_statement_end()
        return d

    def parse_quoted_string(self) -> str:
        self.pos += 1
        buf: list[str] = []
        while self.pos < len(self.src):
            ch = self.src[self.pos]
            if ch == '"':
                self.pos += 1
                return "".join(buf)
            if ch == "\\" and self.pos + 1 < len(self.src):
                nxt = self.src[self.pos + 1]
                buf.append("\n" if nxt == "n" else nxt)
                self.pos += 2
            else:
                buf.append(ch)
                self.pos += 1
        raise self.error("unterminated string")

    def parse_node_label(self, closer: str) -> str:
        self.skip_ws()
        if self.peek('"'):
            label = self.parse_quoted_string()
            self.skip_ws()
            return label
        end = self.src.find(closer, self.pos)
        newline = self.src.find("\n", self.pos)
        if end == -1 or (newline != -1 and newline < end):
            return self.match_re(_REST_OF_STATEMENT_RE).strip()
        label = self.src[self.pos:end]
        self.pos = end
        return label.strip()

    def parse_node_shape(self) -> tuple[NodeShape, str] | None:
        for opener, closer, shape in _SHAPES:
            if self.consume(opener):
                label = self.parse_node_label(closer)
                if not self.consume(closer):
                    raise self.error(f"expected '{closer}' to close node label")
                return (shape, label)
        return None

    def parse_node_ref(self) -> Node | None:
        self.skip_ws()
        node_id = self.match_re(_NODE_ID_RE)
        if not node_id:
            return None
        shape_result = self.parse_node_shape()
        if shape_result:
            shape, label = shape_result
            return Node(node_id, label, shape)
        return Node.bare(node_id)

    def parse_node_group(self) -> list[Node] | None:
        """``A & B & C``: one or more nodes joined by ``&``."""
        first = self.parse_node_ref()
        if first is None:
            return None
        group = [first]
        while True:
            self.skip_ws()
            if not self.consume("&"):
                return group
            node = self.parse_node_ref()
            if node is None:
                raise self.error("expected a node after '&'")
            group.append(node)

    def parse_edge_connector(self) -> tuple[EdgeType, str | None] | None:
        self.skip_ws()
        for pattern, etype in _EDGE_PATTERNS:
            if self.match_re(pattern):
                return etype, None
        for pattern, (line, arrow, bidir) in _TEXT_EDGE_PATTERNS:
            m = pattern.match(self.src, self.pos)
            if not m:
                continue
            self.pos = m.end()
            if m.group(1):
                etype = bidir
            elif m.group(3).endswith(">"):
                etype = arrow
            else:
                etype = line
            return etype, m.group(2).strip() or None
        return None

    def try_parse_edge_label(self) -> str | None:
        self.skip_ws()
        if not self.consume("|"):
            return None
        text = self.match_re(_LABEL_TEXT_RE)
        if not self.consume("|"):
            raise self.error("expected '|' to close edge label")
        return (text or "").strip()

    def parse_edge_chain(self) -> list[tuple[EdgeType, str | None, list[Node]]]:
        segments: list[tuple[EdgeType, str | None, list[Node]]] = []
        while True:
            connector = self.parse_edge_connector()
            if connector is None:
                break
            etype, label = connector
            pipe_label = self.try_parse_edge_label()
            if pipe_label is not None:
                label = pipe_label
            group = self.parse_node_group()
            if group is None:
                raise self.error("expected a node after edge")
            segments.append((etype, label, group))
        return segments

    def add_node(self, node: Node, members: list[str] | None) -> None:
        """First labelled definition wins; bare references never overwrite a label."""
        existing = self.graph.node(node.id)
        if existing is None:
            self.graph.nodes.append(node)
        elif existing.label == existing.id and existing.shape is NodeShape.Rectangle:
            existing.label, existing.shape = node.label, node.shape
        if members is not None and node.id not in members:
            members.append(node.id)

    def parse_click(self) -> None:
        self.skip_ws()
        node_id = self.match_re(_NODE_ID_RE)
        if not node_id:
            raise self.error("expected a node id after 'click'")
        self.skip_ws()
        if self.consume_keyword("href"):
            self.skip_ws()
        if self.peek('"'):
            self.graph.links[node_id] = self.parse_quoted_string()
        # Tooltips, targets and callbacks are not rendered.
        self.skip_statement()

    def parse_subgraph(self, depth: int) -> Subgraph:
        self.skip_ws()
        header = (self.match_re(_REST_OF_STATEMENT_RE) or "").strip()
        self.consume_newline()
        if not header:
            header = f"subgraph{len(self.graph.subgraphs)}"
        m = _SUBGRAPH_HEADER_RE.match(header)
        if m:
            sg = Subgraph(name=m.group(1), title=m.group(2))
        else:
            title = header.strip('"')
            sg = Subgraph(name=title, title=title)
        self.parse_body(sg, depth + 1)
        return sg

    def parse_statement(self, sg: Subgraph | None, depth: int) -> None:
        members = sg.node_ids if sg is not None else None

        if self.consume_keyword("subgraph"):
            child = self.parse_subgraph(depth)
            if sg is not None:
                sg.subgraphs.append(child)
                sg.node_ids.extend(n for n in child.node_ids if n not in sg.node_ids)
            else:
                self.graph.subgraphs.append(child)
            return
        if sg is not None and self.consume_keyword("direction"):
            self.skip_ws()
            sg.direction = self.parse_direction_value()
            self.expect_statement_end()
            return
        if self.consume_keyword("click"):
            self.parse_click()
            return
        for keyword in _IGNORED_KEYWORDS:
            if self.consume_keyword(keyword):
                self.skip_statement()
                return

        sources = self.parse_node_group()
        if sources is None:
            rest = _REST_OF_STATEMENT_RE.match(self.src, self.pos).group(0).strip()
            raise self.error(f"unexpected text '{rest}'")
        for node in sources:
            self.add_node(node, members)
        for etype, label, targets in self.parse_edge_chain():
            for node in targets:
                self.add_node(node, members)
            for src in sources:
                for dst in targets:
                    self.graph.edges.append(Edge(src.id, dst.id, etype, label))
            sources = targets
        self.expect_statement_end()

    def parse_body(self, sg: Subgraph | None, depth: int) -> None:
        while True:
            self.skip_blank()
            if self.eof():
                if sg is not None:
                    raise self.error(f"subgraph '{sg.name}' is missing 'end'")
                return
            if self.consume_keyword("end"):
                if sg is None:
                    raise self.error("'end' without matching 'subgraph'")
                self.expect_statement_end()
                return
            self.parse_statement(sg, depth)


class FlowchartParser:
    """Flowchart/graph diagram parser."""

    def parse(self, src: str) -> Graph:
        cursor = _Cursor(src=src)
        cursor.graph.direction = cursor.parse_header()
        cursor.parse_body(None, 0)
        return cursor.graph
