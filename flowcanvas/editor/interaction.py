"""
Interaction State Machine - translates pointer input into viewport changes
and graph mutations.

Exactly one state is active at a time:
- Idle
- Panning: middle button, or left button with shift
- DraggingNode: left button on a node header
- ConnectingEdge: left button on an output handle

A left press on a node body selects the node, on an edge curve the edge.

Every pointer-up returns to Idle. A pointer leaving the canvas also returns
to Idle and discards a pending connection. Gestures that do not make sense
(releasing a connection on empty canvas or on its own source) are ignored
without any feedback.

Moves touch only the viewport, the dragged node or the preview pointer, so
their cost does not grow with the size of the graph.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple, Union

from flowcanvas.editor.constants import BUTTON_LEFT, BUTTON_MIDDLE
from flowcanvas.editor.graph import Edge, FlowGraph
from flowcanvas.editor.handles import (
    HIT_BODY,
    HIT_CANVAS,
    HIT_EDGE,
    HIT_HANDLE,
    HIT_HEADER,
    hit_test,
    node_at,
)
from flowcanvas.editor.viewport import CanvasRect, Viewport

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


# --- States ---

@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Panning:
    last_screen: Point


@dataclass(frozen=True)
class DraggingNode:
    node_id: str
    last_screen: Point


@dataclass(frozen=True)
class ConnectingEdge:
    source_node_id: str
    source_handle: str
    pointer_world: Point


InteractionState = Union[Idle, Panning, DraggingNode, ConnectingEdge]


@dataclass(frozen=True)
class PointerEvent:
    """A pointer event in screen coordinates plus the canvas bounding box."""
    x: float
    y: float
    button: int = BUTTON_LEFT
    shift: bool = False
    canvas: CanvasRect = field(default_factory=CanvasRect)

    @property
    def screen(self) -> Point:
        return (self.x, self.y)

    @classmethod
    def from_dict(cls, data: dict) -> 'PointerEvent':
        """Build from a browser event payload (clientX/clientY/button/shiftKey/rect)."""
        return cls(
            x=float(data.get('clientX', data.get('x', 0.0)) or 0.0),
            y=float(data.get('clientY', data.get('y', 0.0)) or 0.0),
            button=int(data.get('button', BUTTON_LEFT) or 0),
            shift=bool(data.get('shiftKey', data.get('shift', False))),
            canvas=CanvasRect.from_dict(data.get('rect') or {}),
        )


@dataclass(frozen=True)
class Change:
    """What a transition changed, so the view can redraw only that."""
    kind: str  # 'viewport' | 'node_moved' | 'preview' | 'edge_added' | 'selection' | 'state'
    node_id: Optional[str] = None
    edge: Optional[Edge] = None


class InteractionMachine:
    """Owns the current interaction state and applies pointer transitions."""

    def __init__(self, graph: FlowGraph, viewport: Viewport,
                 on_select: Optional[Callable[[Optional[str], Optional[str]], None]] = None):
        self._graph = graph
        self._viewport = viewport
        self._on_select = on_select
        self._state: InteractionState = Idle()
        self._on_state_change: Optional[Callable[[Change], None]] = None

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def is_idle(self) -> bool:
        return isinstance(self._state, Idle)

    def set_on_state_change(self, callback: Callable[[Change], None]):
        self._on_state_change = callback

    def _notify_change(self, change: Change):
        if self._on_state_change:
            self._on_state_change(change)

    def _select(self, node_id: Optional[str], edge_id: Optional[str] = None):
        """Select a node or an edge (at most one of them)."""
        if self._on_select:
            self._on_select(node_id, edge_id)
        self._notify_change(Change('selection', node_id=node_id))

    def _set_state(self, state: InteractionState):
        self._state = state
        self._notify_change(Change('state'))

    # --- Transitions ---

    def pointer_down(self, event: PointerEvent) -> InteractionState:
        if not self.is_idle:
            return self._state

        # Pan modifier wins over whatever lies under the pointer
        if event.button == BUTTON_MIDDLE or (event.button == BUTTON_LEFT and event.shift):
            self._set_state(Panning(event.screen))
            return self._state

        if event.button != BUTTON_LEFT:
            return self._state

        world = self._viewport.screen_to_world(event.screen, event.canvas)
        hit = hit_test(self._graph, world)

        if hit.kind == HIT_HANDLE:
            self._set_state(ConnectingEdge(hit.node_id, hit.handle, world))
        elif hit.kind == HIT_HEADER:
            self._select(hit.node_id)
            self._set_state(DraggingNode(hit.node_id, event.screen))
        elif hit.kind == HIT_BODY:
            self._select(hit.node_id)
        elif hit.kind == HIT_EDGE:
            self._select(None, hit.edge_id)
        elif hit.kind == HIT_CANVAS:
            self._select(None)
        return self._state

    def pointer_move(self, event: PointerEvent) -> InteractionState:
        state = self._state

        if isinstance(state, Panning):
            dx = event.x - state.last_screen[0]
            dy = event.y - state.last_screen[1]
            self._viewport.pan(dx, dy)
            self._state = Panning(event.screen)
            self._notify_change(Change('viewport'))

        elif isinstance(state, DraggingNode):
            zoom = self._viewport.zoom
            dx = (event.x - state.last_screen[0]) / zoom
            dy = (event.y - state.last_screen[1]) / zoom
            if self._graph.move_node(state.node_id, dx, dy) is None:
                # Node vanished mid-drag
                self._set_state(Idle())
                return self._state
            self._state = DraggingNode(state.node_id, event.screen)
            self._notify_change(Change('node_moved', node_id=state.node_id))

        elif isinstance(state, ConnectingEdge):
            world = self._viewport.screen_to_world(event.screen, event.canvas)
            self._state = ConnectingEdge(state.source_node_id, state.source_handle, world)
            self._notify_change(Change('preview', node_id=state.source_node_id))

        return self._state

    def pointer_up(self, event: PointerEvent) -> Optional[Edge]:
        """Finish the gesture. Returns the committed edge, if one was created."""
        state = self._state
        edge = None

        if isinstance(state, ConnectingEdge):
            world = self._viewport.screen_to_world(event.screen, event.canvas)
            target = node_at(self._graph, world, exclude=state.source_node_id)
            if target is None:
                logger.debug(f"Connection from {state.source_node_id} released on empty canvas")
            else:
                edge = self._graph.add_edge(state.source_node_id, target,
                                            source_handle=state.source_handle)

        self._set_state(Idle())
        if edge is not None:
            self._notify_change(Change('edge_added', edge=edge))
        return edge

    def pointer_leave(self) -> InteractionState:
        if not self.is_idle:
            self._set_state(Idle())
        return self._state

    def cancel(self) -> None:
        self.pointer_leave()

    def wheel(self, delta_x: float, delta_y: float, zoom_modifier: bool = False) -> None:
        self._viewport.wheel(delta_x, delta_y, zoom_modifier)
        self._notify_change(Change('viewport'))

    # --- Preview ---

    def preview_endpoints(self) -> Optional[Tuple[str, str, Point]]:
        """(source node, source handle, pointer world point) while connecting."""
        state = self._state
        if isinstance(state, ConnectingEdge):
            return state.source_node_id, state.source_handle, state.pointer_world
        return None
