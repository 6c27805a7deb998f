"""SVG renderer — turns laid-out diagrams into standalone ``<svg>`` markup.

Every id and CSS selector in the output is prefixed with the element id so
several diagrams can share one HTML document.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass

from mermaid_configurable.layout.types import (
    LayoutConfig,
    LayoutNode,
    LayoutResult,
    MessageRow,
    ParticipantBox,
    Point,
    RoutedEdge,
    SequenceLayout,
)
from mermaid_configurable.renderers.themes import Palette
from mermaid_configurable.syntax.types import MessageKind, NodeShape

SVG_NS = "http://www.w3.org/2000/svg"

_CSS_UNSAFE_RE = re.compile(r"[;{}<>\\]")
_DOM_ID_UNSAFE_RE = re.compile(r"[^\w-]")


def fmt(value: float) -> str:
    """Format a coordinate with at most two decimals."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def _safe_href(url: str) -> str | None:
    cleaned = "".join(url.split()).lower()
    if cleaned.startswith(("javascript:", "data:", "vbscript:")):
        return None
    return url


@dataclass
class SvgRenderer:
    """Renders one diagram into SVG using the given palette and font settings."""

    element_id: str
    palette: Palette
    font_family: str = "Arial, sans-serif"
    font_size: float = 16.0
    allow_links: bool = False

    @property
    def layout_config(self) -> LayoutConfig:
        return LayoutConfig(font_size=self.font_size)

    # ─── Shared pieces ──────────────────────────────────────────────────

    def _root(self, width: float, height: float, kind: str) -> ET.Element:
        root = ET.Element(
            "svg",
            {
                "xmlns": SVG_NS,
                "id": self.element_id,
                "width": "100%",
                "viewBox": f"0 0 {fmt(width)} {fmt(height)}",
                "style": f"max-width: {fmt(width)}px;",
                "role": "graphics-document document",
                "aria-roledescription": kind,
            },
        )
        ET.SubElement(root, "style").text = self._stylesheet()
        defs = ET.SubElement(root, "defs")
        self._marker(defs, "arrowhead", "M 0 0 L 10 5 L 0 10 z", ref_x=9)
        self._marker(defs, "arrowstart", "M 10 0 L 0 5 L 10 10 z", ref_x=1)
        self._marker(defs, "crosshead", "M 1 1 L 9 9 M 9 1 L 1 9", ref_x=5)
        self._marker(defs, "openhead", "M 1 1 L 9 5 L 1 9", ref_x=9)
        return root

    def _marker(self, defs: ET.Element, name: str, path: str, ref_x: float) -> None:
        marker = ET.SubElement(
            defs,
            "marker",
            {
                "id": f"{self.element_id}-{name}",
                "class": "marker",
                "viewBox": "0 0 10 10",
                "refX": fmt(ref_x),
                "refY": "5",
                "markerWidth": "8",
                "markerHeight": "8",
                "orient": "auto",
            },
        )
        ET.SubElement(marker, "path", {"d": path})

    def _marker_url(self, name: str) -> str:
        return f"url(#{self.element_id}-{name})"

    def _stylesheet(self) -> str:
        p = self.palette
        font = _CSS_UNSAFE_RE.sub("", self.font_family) or "sans-serif"
        scope = f"#{self.element_id}"
        rules = [
            f"{scope}{{font-family:{font};font-size:{fmt(self.font_size)}px;background-color:{p.background};}}",
            f"{scope} text{{fill:{p.text};text-anchor:middle;dominant-baseline:central;}}",
            f"{scope} .node rect,{scope} .node circle,{scope} .node polygon,{scope} .node path,{scope} .actor"
            f"{{fill:{p.node_fill};stroke:{p.node_border};stroke-width:1px;}}",
            f"{scope} .node line{{stroke:{p.node_border};stroke-width:1px;}}",
            f"{scope} .edge{{stroke:{p.line};stroke-width:2px;fill:none;}}",
            f"{scope} .edge-dotted{{stroke-dasharray:3;}}",
            f"{scope} .edge-thick{{stroke-width:3.5px;}}",
            f"{scope} .marker path{{fill:{p.line};stroke:{p.line};}}",
            f"{scope} .edge-label rect{{fill:{p.label_background};opacity:0.5;}}",
            f"{scope} .cluster rect{{fill:{p.cluster_fill};stroke:{p.cluster_border};stroke-width:1px;}}",
            f"{scope} .lifeline{{stroke:{p.line};stroke-width:0.5px;}}",
            f"{scope} .message{{stroke:{p.line};stroke-width:1.5px;fill:none;}}",
            f"{scope} .message-dotted{{stroke-dasharray:3,3;}}",
            f"{scope} .note rect{{fill:{p.note_fill};stroke:{p.note_border};}}",
            f"{scope} .frame rect,{scope} .frame line{{fill:none;stroke:{p.line};stroke-width:1px;}}",
            f"{scope} .frame line{{stroke-dasharray:3,3;}}",
            f"{scope} .frame polygon{{fill:{p.label_background};stroke:{p.line};}}",
        ]
        return "".join(rules)

    def _text(self, parent: ET.Element, x: float, y: float, label: str, cls: str | None = None) -> ET.Element:
        attrs = {"x": fmt(x), "y": fmt(y)}
        if cls:
            attrs["class"] = cls
        text = ET.SubElement(parent, "text", attrs)
        lines = label.split("\n")
        if len(lines) == 1:
            text.text = label
            return text
        line_height = self.font_size * self.layout_config.line_height
        for i, line in enumerate(lines):
            dy = -(len(lines) - 1) / 2 * line_height if i == 0 else line_height
            tspan = ET.SubElement(text, "tspan", {"x": fmt(x), "dy": fmt(dy)})
            tspan.text = line
        return text

    def _label_box(self, parent: ET.Element, x: float, y: float, label: str, cls: str) -> None:
        group = ET.SubElement(parent, "g", {"class": cls})
        w, h = self.layout_config.text_size(label)
        ET.SubElement(
            group, "rect", {"x": fmt(x - w / 2 - 2), "y": fmt(y - h / 2), "width": fmt(w + 4), "height": fmt(h)}
        )
        self._text(group, x, y, label)

    @staticmethod
    def _serialize(root: ET.Element) -> str:
        return ET.tostring(root, encoding="unicode")

    # ─── Flowcharts ─────────────────────────────────────────────────────

    def render_flowchart(self, result: LayoutResult) -> str:
        root = self._root(result.width, result.height, "flowchart-v2")

        clusters = ET.SubElement(root, "g", {"class": "clusters"})
        for cluster in result.clusters:
            dom_id = f"{self.element_id}-{_DOM_ID_UNSAFE_RE.sub('_', cluster.name)}"
            group = ET.SubElement(clusters, "g", {"class": "cluster", "id": dom_id})
            ET.SubElement(
                group,
                "rect",
                {
                    "x": fmt(cluster.x),
                    "y": fmt(cluster.y),
                    "width": fmt(cluster.width),
                    "height": fmt(cluster.height),
                },
            )
            _, title_h = self.layout_config.text_size(cluster.title)
            self._text(group, cluster.x + cluster.width / 2, cluster.y + title_h / 2 + 4, cluster.title, "cluster-label")

        edges = ET.SubElement(root, "g", {"class": "edgePaths"})
        labels = ET.SubElement(root, "g", {"class": "edgeLabels"})
        for edge in result.edges:
            self._edge(edges, labels, edge)

        nodes = ET.SubElement(root, "g", {"class": "nodes"})
        for node in result.nodes:
            self._node(nodes, node)

        return self._serialize(root)

    def _edge(self, edges: ET.Element, labels: ET.Element, edge: RoutedEdge) -> None:
        classes = ["edge"]
        if edge.edge_type.dotted:
            classes.append("edge-dotted")
        if edge.edge_type.thick:
            classes.append("edge-thick")
        attrs = {
            "d": "M " + " L ".join(f"{fmt(p.x)} {fmt(p.y)}" for p in edge.points),
            "class": " ".join(classes),
            "id": f"{self.element_id}-L-{edge.from_id}-{edge.to_id}",
        }
        if edge.edge_type.arrow_end:
            attrs["marker-end"] = self._marker_url("arrowhead")
        if edge.edge_type.arrow_start:
            attrs["marker-start"] = self._marker_url("arrowstart")
        ET.SubElement(edges, "path", attrs)

        if edge.label:
            mid = _midpoint(edge.points)
            self._label_box(labels, mid.x, mid.y, edge.label, "edge-label")

    def _node(self, parent: ET.Element, node: LayoutNode) -> None:
        href = _safe_href(node.link) if node.link and self.allow_links else None
        if href is not None:
            parent = ET.SubElement(parent, "a", {"href": href})
        group = ET.SubElement(parent, "g", {"class": "node", "id": f"{self.element_id}-flowchart-{node.id}"})
        x, y = node.x, node.y
        hw, hh = node.width / 2, node.height / 2
        if node.shape is NodeShape.Circle:
            ET.SubElement(group, "circle", {"cx": fmt(x), "cy": fmt(y), "r": fmt(hw)})
        elif node.shape is NodeShape.Diamond:
            self._polygon(group, [(x, y - hh), (x + hw, y), (x, y + hh), (x - hw, y)])
        elif node.shape is NodeShape.Hexagon:
            inset = hh / 2
            self._polygon(
                group,
                [
                    (x - hw + inset, y - hh),
                    (x + hw - inset, y - hh),
                    (x + hw, y),
                    (x + hw - inset, y + hh),
                    (x - hw + inset, y + hh),
                    (x - hw, y),
                ],
            )
        elif node.shape is NodeShape.Asymmetric:
            notch = hh / 2
            self._polygon(
                group, [(x - hw, y - hh), (x + hw, y - hh), (x + hw, y + hh), (x - hw, y + hh), (x - hw + notch, y)]
            )
        elif node.shape is NodeShape.Cylinder:
            ry = self.layout_config.cylinder_cap
            body = 2 * (hh - ry)
            d = (
                f"M {fmt(x - hw)} {fmt(y - hh + ry)} "
                f"a {fmt(hw)} {fmt(ry)} 0 0 0 {fmt(2 * hw)} 0 "
                f"a {fmt(hw)} {fmt(ry)} 0 0 0 {fmt(-2 * hw)} 0 "
                f"l 0 {fmt(body)} "
                f"a {fmt(hw)} {fmt(ry)} 0 0 0 {fmt(2 * hw)} 0 "
                f"l 0 {fmt(-body)}"
            )
            ET.SubElement(group, "path", {"d": d})
        else:
            radius = {NodeShape.Rounded: 5.0, NodeShape.Stadium: hh}.get(node.shape, 0.0)
            ET.SubElement(
                group,
                "rect",
                {
                    "x": fmt(x - hw),
                    "y": fmt(y - hh),
                    "width": fmt(node.width),
                    "height": fmt(node.height),
                    "rx": fmt(radius),
                    "ry": fmt(radius),
                },
            )
            if node.shape is NodeShape.Subroutine:
                bar = hw - self.layout_config.subroutine_inset
                for bx in (x - bar, x + bar):
                    ET.SubElement(group, "line", {"x1": fmt(bx), "y1": fmt(y - hh), "x2": fmt(bx), "y2": fmt(y + hh)})
        self._text(group, x, y, node.label, "nodeLabel")

    @staticmethod
    def _polygon(parent: ET.Element, points: list[tuple[float, float]]) -> None:
        ET.SubElement(parent, "polygon", {"points": " ".join(f"{fmt(px)},{fmt(py)}" for px, py in points)})

    # ─── Sequence diagrams ──────────────────────────────────────────────

    def render_sequence(self, layout: SequenceLayout) -> str:
        config = self.layout_config
        margin = config.margin
        width, title_height = layout.width, 0.0
        if layout.title:
            title_w, title_h = config.text_size(layout.title)
            title_height = title_h + 2 * config.node_padding_y
            width = max(width, title_w + 2 * margin)
        document = self._root(width, layout.height + title_height, "sequence")
        if layout.title:
            self._text(document, width / 2, margin + title_height / 2, layout.title, "sequenceTitle")
        # Everything below the title is drawn in layout coordinates.
        root = ET.SubElement(document, "g", {"transform": f"translate(0,{fmt(title_height)})"})
        top = margin
        bottom = layout.lifeline_end

        for participant in layout.participants:
            ET.SubElement(
                root,
                "line",
                {
                    "class": "lifeline",
                    "x1": fmt(participant.x),
                    "y1": fmt(top + layout.header_height),
                    "x2": fmt(participant.x),
                    "y2": fmt(bottom),
                },
            )
            for y in (top, bottom):
                self._participant(root, participant.x, y, participant.width, layout.header_height, participant)

        for frame in layout.frames:
            group = ET.SubElement(root, "g", {"class": "frame"})
            ET.SubElement(
                group,
                "rect",
                {"x": fmt(frame.x), "y": fmt(frame.y), "width": fmt(frame.width), "height": fmt(frame.height)},
            )
            tab_w, tab_h = self.layout_config.text_size(frame.kind)
            tab_w += 16
            tab = [
                (frame.x, frame.y),
                (frame.x + tab_w, frame.y),
                (frame.x + tab_w, frame.y + tab_h - 6),
                (frame.x + tab_w - 6, frame.y + tab_h),
                (frame.x, frame.y + tab_h),
            ]
            ET.SubElement(group, "polygon", {"points": " ".join(f"{fmt(x)},{fmt(y)}" for x, y in tab)})
            self._text(group, frame.x + tab_w / 2, frame.y + tab_h / 2, frame.kind, "labelText")
            if frame.label:
                self._text(group, frame.x + frame.width / 2, frame.y + tab_h / 2, f"[{frame.label}]", "loopText")
            for y, label in frame.dividers:
                ET.SubElement(
                    group, "line", {"x1": fmt(frame.x), "y1": fmt(y), "x2": fmt(frame.x + frame.width), "y2": fmt(y)}
                )
                if label:
                    self._text(group, frame.x + frame.width / 2, y + tab_h / 2, f"[{label}]", "loopText")

        for note in layout.notes:
            group = ET.SubElement(root, "g", {"class": "note"})
            ET.SubElement(
                group, "rect", {"x": fmt(note.x), "y": fmt(note.y), "width": fmt(note.width), "height": fmt(note.height)}
            )
            self._text(group, note.x + note.width / 2, note.y + note.height / 2, note.text, "noteText")

        for message in layout.messages:
            self._message(root, message)

        return self._serialize(document)

    def _participant(
        self, parent: ET.Element, x: float, y: float, width: float, height: float, participant: ParticipantBox
    ) -> None:
        group = ET.SubElement(parent, "g", {"class": "actor-man" if participant.actor else "participant"})
        if participant.actor:
            head = min(height / 6, 8.0)
            cy = y + head + 2
            ET.SubElement(group, "circle", {"class": "actor", "cx": fmt(x), "cy": fmt(cy), "r": fmt(head)})
            body_top, body_bottom = cy + head, y + height * 0.6
            for x1, y1, x2, y2 in (
                (x, body_top, x, body_bottom),
                (x - head * 1.5, body_top + head, x + head * 1.5, body_top + head),
                (x, body_bottom, x - head * 1.5, y + height * 0.75),
                (x, body_bottom, x + head * 1.5, y + height * 0.75),
            ):
                ET.SubElement(
                    group, "line", {"class": "lifeline", "x1": fmt(x1), "y1": fmt(y1), "x2": fmt(x2), "y2": fmt(y2)}
                )
            self._text(group, x, y + height * 0.9, participant.label, "actor-label")
            return
        ET.SubElement(
            group,
            "rect",
            {"class": "actor", "x": fmt(x - width / 2), "y": fmt(y), "width": fmt(width), "height": fmt(height), "rx": "3"},
        )
        self._text(group, x, y + height / 2, participant.label, "actor-label")

    def _message(self, parent: ET.Element, message: MessageRow) -> None:
        classes = "message message-dotted" if message.kind.dotted else "message"
        if message.self_call:
            loop = 40.0
            d = (
                f"M {fmt(message.from_x)} {fmt(message.y)} h {fmt(loop)} v 30 "
                f"h {fmt(-loop)}"
            )
            text_x = message.from_x + loop / 2
        else:
            d = f"M {fmt(message.from_x)} {fmt(message.y)} L {fmt(message.to_x)} {fmt(message.y)}"
            text_x = (message.from_x + message.to_x) / 2
        attrs = {"d": d, "class": classes}
        marker = _MESSAGE_MARKERS.get(message.kind)
        if marker:
            attrs["marker-end"] = self._marker_url(marker)
        ET.SubElement(parent, "path", attrs)
        _, text_h = self.layout_config.text_size(message.text)
        self._text(parent, text_x, message.y - text_h / 2 - 2, message.text, "messageText")


_MESSAGE_MARKERS: dict[MessageKind, str] = {
    MessageKind.SolidArrow: "arrowhead",
    MessageKind.DottedArrow: "arrowhead",
    MessageKind.SolidCross: "crosshead",
    MessageKind.DottedCross: "crosshead",
    MessageKind.SolidOpen: "openhead",
    MessageKind.DottedOpen: "openhead",
}


def _midpoint(points: list[Point]) -> Point:
    if len(points) >= 4:
        a, b = points[1], points[2]
    else:
        a, b = points[0], points[-1]
    return Point((a.x + b.x) / 2, (a.y + b.y) / 2)
