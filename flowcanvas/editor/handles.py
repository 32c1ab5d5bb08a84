"""
Handle Geometry Resolver.

Computes where connection handles sit on a node card and what lies under a
world point. Both drawing and hit-testing read the same offset table in
constants.py, so a handle is always clickable where it is drawn.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from flowcanvas.editor.categories import get_spec
from flowcanvas.editor.constants import (
    BRANCH_HEADER_OFFSET,
    BRANCH_ROW_HEIGHT,
    DEFAULT_ANCHOR_Y,
    EDGE_HIT_DISTANCE,
    EDGE_HIT_SAMPLES,
    HANDLE_HIT_RADIUS,
    HANDLE_OUTSET,
    HEADER_HEIGHT,
    NODE_MIN_HEIGHT,
    NODE_WIDTH,
)
from flowcanvas.editor.graph import Edge, FlowGraph, Node
from flowcanvas.editor.routing import BezierPath, compute_path

Point = Tuple[float, float]

# Hit kinds, in priority order
HIT_HANDLE = 'output_handle'
HIT_HEADER = 'header'
HIT_BODY = 'body'
HIT_EDGE = 'edge'
HIT_CANVAS = 'canvas'


@dataclass(frozen=True)
class Hit:
    kind: str
    node_id: Optional[str] = None
    handle: Optional[str] = None
    edge_id: Optional[str] = None


def output_handles(node: Node) -> List[str]:
    return get_spec(node.category).output_handles(node.payload)


def has_input(node: Node) -> bool:
    return get_spec(node.category).has_input


def handle_offset_y(node: Node, index: int) -> float:
    """Vertical offset (from the card top) of the output handle at `index`."""
    if get_spec(node.category).multi_handle:
        return BRANCH_HEADER_OFFSET + index * BRANCH_ROW_HEIGHT
    return DEFAULT_ANCHOR_Y


def node_height(node: Node) -> float:
    if get_spec(node.category).multi_handle:
        rows = len(output_handles(node))
        return max(NODE_MIN_HEIGHT, BRANCH_HEADER_OFFSET + rows * BRANCH_ROW_HEIGHT)
    return NODE_MIN_HEIGHT


def input_anchor(node: Node) -> Optional[Point]:
    """Single inbound anchor on the left edge; start nodes have none."""
    if not has_input(node):
        return None
    return (node.x - HANDLE_OUTSET, node.y + DEFAULT_ANCHOR_Y)


def output_anchor(node: Node, handle: Optional[str]) -> Optional[Point]:
    """
    World position of an output handle, or None if the node does not expose it.

    Condition rules are stacked in rule order with `else` last. Question
    outcomes are success, invalid and (when a timeout is set) timeout.
    """
    handles = output_handles(node)
    if handle is None:
        handle = handles[0]
    if handle not in handles:
        return None
    index = handles.index(handle)
    return (node.x + NODE_WIDTH + HANDLE_OUTSET, node.y + handle_offset_y(node, index))


def output_anchors(node: Node) -> List[Tuple[str, Point]]:
    x = node.x + NODE_WIDTH + HANDLE_OUTSET
    return [(h, (x, node.y + handle_offset_y(node, i))) for i, h in enumerate(output_handles(node))]


def edge_source_anchor(node: Node, handle: Optional[str]) -> Tuple[Point, bool]:
    """
    Anchor used to draw an edge leaving `node`.

    Returns (point, orphaned). An edge whose handle no longer exists (for
    instance a deleted condition rule) falls back to the first output anchor.
    """
    point = output_anchor(node, handle)
    if point is not None:
        return point, False
    return output_anchor(node, None), True


def edge_target_anchor(node: Node) -> Point:
    point = input_anchor(node)
    if point is None:
        return (node.x - HANDLE_OUTSET, node.y + DEFAULT_ANCHOR_Y)
    return point


def edge_curve(graph: FlowGraph, edge: Edge) -> Optional[BezierPath]:
    """The curve an edge is drawn along, or None if an endpoint is missing."""
    source = graph.get_node(edge.source)
    target = graph.get_node(edge.target)
    if source is None or target is None:
        return None
    start, _ = edge_source_anchor(source, edge.source_handle)
    return compute_path(start, edge_target_anchor(target))


def _point_to_segment_distance(p: Point, a: Point, b: Point) -> float:
    dx, dy = b[0] - a[0], b[1] - a[1]
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return math.hypot(p[0] - a[0], p[1] - a[1])
    t = max(0.0, min(1.0, ((p[0] - a[0]) * dx + (p[1] - a[1]) * dy) / length_sq))
    return math.hypot(p[0] - (a[0] + t * dx), p[1] - (a[1] + t * dy))


def edge_at(graph: FlowGraph, point: Point) -> Optional[str]:
    """Topmost edge whose curve passes within EDGE_HIT_DISTANCE of the point."""
    for edge in reversed(graph.edges()):
        curve = edge_curve(graph, edge)
        if curve is None:
            continue
        samples = [curve.point_at(i / EDGE_HIT_SAMPLES) for i in range(EDGE_HIT_SAMPLES + 1)]
        for a, b in zip(samples, samples[1:]):
            if _point_to_segment_distance(point, a, b) <= EDGE_HIT_DISTANCE:
                return edge.id
    return None


def _in_card(node: Node, wx: float, wy: float) -> bool:
    return node.x <= wx <= node.x + NODE_WIDTH and node.y <= wy <= node.y + node_height(node)


def hit_test(graph: FlowGraph, point: Point) -> Hit:
    """
    Resolve what lies under a world point.

    Priority: output handle > node header > node body > edge > empty canvas.
    Graph order is drawing order: nodes added later are drawn on top and
    win ties, and every card covers the edge layer.
    """
    wx, wy = point
    nodes = list(reversed(graph.nodes()))

    for node in nodes:
        for handle, (hx, hy) in output_anchors(node):
            if math.hypot(wx - hx, wy - hy) <= HANDLE_HIT_RADIUS:
                return Hit(HIT_HANDLE, node.id, handle)

    for node in nodes:
        if _in_card(node, wx, wy):
            if wy <= node.y + HEADER_HEIGHT:
                return Hit(HIT_HEADER, node.id)
            return Hit(HIT_BODY, node.id)

    edge_id = edge_at(graph, point)
    if edge_id is not None:
        return Hit(HIT_EDGE, edge_id=edge_id)

    return Hit(HIT_CANVAS)


def node_at(graph: FlowGraph, point: Point, exclude: Optional[str] = None) -> Optional[str]:
    """Topmost node whose card (or input handle) contains the point."""
    wx, wy = point
    for node in reversed(graph.nodes()):
        if node.id == exclude:
            continue
        if _in_card(node, wx, wy):
            return node.id
        anchor = input_anchor(node)
        if anchor and math.hypot(wx - anchor[0], wy - anchor[1]) <= HANDLE_HIT_RADIUS:
            return node.id
    return None
