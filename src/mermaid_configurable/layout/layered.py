"""Layered (Sugiyama-style) layout for flowcharts.

Phases:
1. Cycle removal (greedy-FAS) so the graph can be ranked.
2. Longest-path layer assignment.
3. Barycenter crossing reduction.
4. Pixel coordinates, then a rotation/flip for the requested direction.
5. Straight edge routing clipped to node outlines.
"""

from __future__ import annotations

import math

import networkx as nx

from mermaid_configurable.layout.types import (
    Cluster,
    LayoutConfig,
    LayoutNode,
    LayoutResult,
    Point,
    RoutedEdge,
)
from mermaid_configurable.syntax.types import Direction, Graph, NodeShape, Subgraph


def build_digraph(graph: Graph) -> nx.DiGraph:
    """Convert an AST Graph into a networkx DiGraph keyed by node id."""
    digraph: nx.DiGraph = nx.DiGraph()
    for node in graph.nodes:
        digraph.add_node(node.id, data=node)
    for edge in graph.edges:
        digraph.add_edge(edge.from_id, edge.to_id)
    return digraph


# ─── Cycle Removal (Greedy-FAS) ─────────────────────────────────────────────


def greedy_fas_ordering(graph: nx.DiGraph) -> list[str]:
    """Compute a node ordering using the greedy-FAS heuristic."""
    active: list[str] = list(graph.nodes)
    out_deg = {n: graph.out_degree(n) for n in graph.nodes}
    in_deg = {n: graph.in_degree(n) for n in graph.nodes}

    def detach(node: str) -> None:
        active.remove(node)
        for succ in graph.successors(node):
            in_deg[succ] -= 1
        for pred in graph.predecessors(node):
            out_deg[pred] -= 1

    s1: list[str] = []
    s2: list[str] = []
    while active:
        sinks = [n for n in active if out_deg[n] == 0]
        if sinks:
            for sink in sinks:
                detach(sink)
                s2.append(sink)
            continue
        sources = [n for n in active if in_deg[n] == 0]
        if sources:
            for source in sources:
                detach(source)
                s1.append(source)
            continue
        best = max(active, key=lambda n: out_deg[n] - in_deg[n])
        detach(best)
        s1.append(best)

    s2.reverse()
    return s1 + s2


def remove_cycles(graph: nx.DiGraph) -> tuple[nx.DiGraph, set[tuple[str, str]]]:
    """Remove cycles using greedy-FAS. Returns (dag, reversed_edges)."""
    position = {node: pos for pos, node in enumerate(greedy_fas_ordering(graph))}
    reversed_edges: set[tuple[str, str]] = set()

    dag: nx.DiGraph = nx.DiGraph()
    dag.add_nodes_from(graph.nodes(data=True))
    for src, tgt in graph.edges():
        if src == tgt:
            reversed_edges.add((src, tgt))
            continue
        if position[src] > position[tgt]:
            reversed_edges.add((src, tgt))
            dag.add_edge(tgt, src)
        else:
            dag.add_edge(src, tgt)
    return dag, reversed_edges


# ─── Layer Assignment ────────────────────────────────────────────────────────


def assign_layers(dag: nx.DiGraph) -> dict[str, int]:
    """Longest-path layering: every node sits one layer below its deepest predecessor."""
    layers: dict[str, int] = {}
    for node in nx.topological_sort(dag):
        layers[node] = max((layers[p] + 1 for p in dag.predecessors(node)), default=0)
    return layers


# ─── Crossing Reduction ──────────────────────────────────────────────────────


def order_layers(dag: nx.DiGraph, layers: dict[str, int], sweeps: int) -> list[list[str]]:
    """Group nodes by layer and reorder each layer by neighbor barycenters."""
    count = max(layers.values(), default=-1) + 1
    ordering: list[list[str]] = [[] for _ in range(count)]
    for node in dag.nodes:  # insertion order = first appearance in the source
        ordering[layers[node]].append(node)

    for sweep in range(sweeps):
        downward = sweep % 2 == 0
        indices = range(1, count) if downward else range(count - 2, -1, -1)
        for i in indices:
            position = {n: pos for layer in ordering for pos, n in enumerate(layer)}
            neighbors = dag.predecessors if downward else dag.successors

            def barycenter(node: str) -> float:
                adjacent = [position[n] for n in neighbors(node)]
                return sum(adjacent) / len(adjacent) if adjacent else position[node]

            ordering[i].sort(key=barycenter)
    return ordering


def count_crossings(ordering: list[list[str]], graph: nx.DiGraph) -> int:
    """Count edge crossings between adjacent layers."""
    total = 0
    for upper, lower in zip(ordering, ordering[1:]):
        upos = {n: i for i, n in enumerate(upper)}
        lpos = {n: i for i, n in enumerate(lower)}
        pairs = [(upos[s], lpos[t]) for s, t in graph.edges() if s in upos and t in lpos]
        for i, (a1, b1) in enumerate(pairs):
            for a2, b2 in pairs[i + 1 :]:
                if (a1 - a2) * (b1 - b2) < 0:
                    total += 1
    return total


# ─── Coordinates ─────────────────────────────────────────────────────────────


def node_dimensions(label: str, shape: NodeShape, config: LayoutConfig) -> tuple[float, float]:
    text_w, text_h = config.text_size(label)
    width = text_w + 2 * config.node_padding_x
    height = text_h + 2 * config.node_padding_y
    if shape is NodeShape.Diamond:
        side = (width + height) * 0.75
        return side, side
    if shape is NodeShape.Circle:
        diameter = max(width, height)
        return diameter, diameter
    if shape in (NodeShape.Stadium, NodeShape.Hexagon, NodeShape.Asymmetric):
        return width + height / 2, height
    if shape is NodeShape.Subroutine:
        return width + 2 * config.subroutine_inset, height
    if shape is NodeShape.Cylinder:
        return width, height + 2 * config.cylinder_cap
    return width, height


def _assign_coordinates(
    ordering: list[list[str]],
    dims: dict[str, tuple[float, float]],
    direction: Direction,
    config: LayoutConfig,
) -> dict[str, tuple[float, float]]:
    """Place nodes along the rank axis (layers) and the cross axis (order)."""

    def main_extent(node: str) -> float:
        w, h = dims[node]
        return w if direction.horizontal else h

    def cross_extent(node: str) -> float:
        w, h = dims[node]
        return h if direction.horizontal else w

    layer_widths = [
        sum(cross_extent(n) for n in layer) + config.node_spacing * (len(layer) - 1) for layer in ordering
    ]
    widest = max(layer_widths, default=0.0)

    centers: dict[str, tuple[float, float]] = {}
    rank_pos = 0.0
    for layer, layer_width in zip(ordering, layer_widths):
        depth = max((main_extent(n) for n in layer), default=0.0)
        cross = (widest - layer_width) / 2
        for node in layer:
            extent = cross_extent(node)
            centers[node] = (rank_pos + depth / 2, cross + extent / 2)
            cross += extent + config.node_spacing
        rank_pos += depth + config.rank_spacing
    total_main = max(rank_pos - config.rank_spacing, 0.0)

    placed: dict[str, tuple[float, float]] = {}
    for node, (main, cross) in centers.items():
        if direction is Direction.BT or direction is Direction.RL:
            main = total_main - main
        placed[node] = (main, cross) if direction.horizontal else (cross, main)
    return placed


# ─── Edge Routing ────────────────────────────────────────────────────────────


def clip_to_outline(node: LayoutNode, toward: Point) -> Point:
    """Point where the segment from the node center toward ``toward`` leaves the node."""
    dx, dy = toward.x - node.x, toward.y - node.y
    if dx == 0 and dy == 0:
        return Point(node.x, node.y)
    hw, hh = node.width / 2, node.height / 2
    if node.shape is NodeShape.Circle:
        scale = hw / math.hypot(dx, dy)
    elif node.shape is NodeShape.Diamond:
        scale = 1 / (abs(dx) / hw + abs(dy) / hh)
    else:
        scale = min(hw / abs(dx) if dx else math.inf, hh / abs(dy) if dy else math.inf)
    return Point(node.x + dx * scale, node.y + dy * scale)


def route_edge(src: LayoutNode, tgt: LayoutNode) -> list[Point]:
    if src.id == tgt.id:
        right = src.x + src.width / 2
        top, bottom = src.y - src.height / 4, src.y + src.height / 4
        loop = max(src.width / 4, 20.0)
        return [Point(right, top), Point(right + loop, top), Point(right + loop, bottom), Point(right, bottom)]
    start = clip_to_outline(src, Point(tgt.x, tgt.y))
    end = clip_to_outline(tgt, Point(src.x, src.y))
    return [start, end]


# ─── Clusters ───────────────────────────────────────────────────────────────


def _layout_clusters(
    subgraphs: list[Subgraph], by_id: dict[str, LayoutNode], config: LayoutConfig
) -> list[Cluster]:
    """Frame each subgraph around its members; parents are emitted before children."""
    clusters: list[Cluster] = []

    def visit(sg: Subgraph) -> tuple[float, float, float, float] | None:
        index = len(clusters)
        clusters.append(Cluster(sg.name, sg.title, 0, 0, 0, 0))
        boxes = [
            (n.x - n.width / 2, n.y - n.height / 2, n.x + n.width / 2, n.y + n.height / 2)
            for n in (by_id[i] for i in sg.node_ids if i in by_id)
        ]
        boxes.extend(b for b in (visit(child) for child in sg.subgraphs) if b is not None)
        if not boxes:
            clusters.pop(index)
            return None
        _, title_h = config.text_size(sg.title)
        pad = config.cluster_padding
        x0 = min(b[0] for b in boxes) - pad
        y0 = min(b[1] for b in boxes) - pad - title_h
        x1 = max(b[2] for b in boxes) + pad
        y1 = max(b[3] for b in boxes) + pad
        clusters[index] = Cluster(sg.name, sg.title, x0, y0, x1 - x0, y1 - y0)
        return x0, y0, x1, y1

    for sg in subgraphs:
        visit(sg)
    return clusters


# ─── Full Pipeline ───────────────────────────────────────────────────────────


class LayeredLayout:
    """Runs the layered pipeline on a flowchart AST."""

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()

    def layout(self, graph: Graph) -> LayoutResult:
        config = self.config
        digraph = build_digraph(graph)
        dag, _ = remove_cycles(digraph)
        layers = assign_layers(dag)
        ordering = order_layers(dag, layers, config.crossing_sweeps)

        dims = {n.id: node_dimensions(n.label, n.shape, config) for n in graph.nodes}
        centers = _assign_coordinates(ordering, dims, graph.direction, config)

        nodes: list[LayoutNode] = []
        for layer_index, layer in enumerate(ordering):
            for order, node_id in enumerate(layer):
                data = digraph.nodes[node_id]["data"]
                x, y = centers[node_id]
                w, h = dims[node_id]
                nodes.append(
                    LayoutNode(
                        id=node_id,
                        layer=layer_index,
                        order=order,
                        x=x,
                        y=y,
                        width=w,
                        height=h,
                        label=data.label,
                        shape=data.shape,
                        link=graph.links.get(node_id),
                    )
                )
        by_id = {n.id: n for n in nodes}

        edges = [
            RoutedEdge(e.from_id, e.to_id, e.label, e.edge_type, route_edge(by_id[e.from_id], by_id[e.to_id]))
            for e in graph.edges
        ]
        clusters = _layout_clusters(graph.subgraphs, by_id, config)
        return _normalize(LayoutResult(nodes, edges, graph.direction, 0, 0, clusters), config)


def _normalize(result: LayoutResult, config: LayoutConfig) -> LayoutResult:
    """Shift everything so the drawing starts at the margin and record its size."""
    xs: list[float] = []
    ys: list[float] = []
    for n in result.nodes:
        xs += [n.x - n.width / 2, n.x + n.width / 2]
        ys += [n.y - n.height / 2, n.y + n.height / 2]
    for c in result.clusters:
        xs += [c.x, c.x + c.width]
        ys += [c.y, c.y + c.height]
    for e in result.edges:
        xs += [p.x for p in e.points]
        ys += [p.y for p in e.points]
    if not xs:
        result.width = result.height = 2 * config.margin
        return result

    dx, dy = config.margin - min(xs), config.margin - min(ys)
    for n in result.nodes:
        n.x += dx
        n.y += dy
    for c in result.clusters:
        c.x += dx
        c.y += dy
    for e in result.edges:
        for p in e.points:
            p.x += dx
            p.y += dy
    result.width = max(xs) - min(xs) + 2 * config.margin
    result.height = max(ys) - min(ys) + 2 * config.margin
    return result
