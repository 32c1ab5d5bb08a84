"""
Canvas View - NiceGUI rendering of an EditorSession.

Layout:
- canvas: clipping container with the dotted grid, receives all pointer events
- world: absolutely positioned layer carrying the viewport transform
  (translate(pan) scale(zoom), origin top-left)
- svg: edge paths and the connection preview, drawn in world units
- one card element per node

Updates are incremental: a drag touches one card and its incident edge
paths, a pan or zoom touches only the world transform and the grid.
"""

import logging
from nicegui import ui
from typing import Dict, Optional

from flowcanvas.editor.constants import (
    DEFAULT_ANCHOR_Y,
    HANDLE_OUTSET,
    HEADER_HEIGHT,
    NODE_WIDTH,
)
from flowcanvas.editor.categories import NodeCategory, get_spec
from flowcanvas.editor.graph import Edge, Node
from flowcanvas.editor.payloads import ELSE_HANDLE, RULE_OPERATORS, action_label
from flowcanvas.editor.session import EditorSession

logger = logging.getLogger(__name__)

HANDLE_SIZE = 12
EDGE_COLOR = '#94a3b8'
ORPHAN_EDGE_COLOR = '#f87171'
SELECTED_EDGE_COLOR = '#38bdf8'
PREVIEW_COLOR = '#e2e8f0'

HANDLE_LABELS = {
    'success': 'Answered',
    'invalid': 'Invalid',
    'timeout': 'Timeout',
    ELSE_HANDLE: 'Else',
}


def _handle_caption(node: Node, handle: str) -> str:
    if node.category == NodeCategory.CONDITION and handle != ELSE_HANDLE:
        for rule in node.payload.get('rules') or []:
            if isinstance(rule, dict) and rule.get('id') == handle:
                operator = RULE_OPERATORS.get(rule.get('operator'), rule.get('operator', ''))
                return f"{rule.get('variable') or '?'} {operator.lower()} {rule.get('value', '')}".strip()
    return HANDLE_LABELS.get(handle, '')


def _summary(node: Node) -> str:
    """One-line preview of the payload shown on the card."""
    payload = node.payload
    if node.category == NodeCategory.MESSAGE:
        return payload.get('content') or 'Empty message'
    if node.category == NodeCategory.QUESTION:
        text = payload.get('question') or 'No question yet'
        variable = payload.get('variable')
        return f'{text} -> {{{{{variable}}}}}' if variable else text
    if node.category == NodeCategory.ACTION:
        actions = payload.get('actions') or []
        if not actions:
            return 'No actions'
        return ', '.join(action_label(a.get('type')) for a in actions)
    if node.category == NodeCategory.START:
        return 'Conversation starts here'
    if node.category == NodeCategory.HANDOFF:
        return 'Transfer to a human agent'
    return ''


class CanvasView:
    """Owns the DOM elements that draw one editor session."""

    def __init__(self, session: EditorSession):
        self.session = session
        self.canvas: Optional[ui.element] = None
        self._world: Optional[ui.element] = None
        self._svg: Optional[ui.element] = None
        self._preview: Optional[ui.element] = None
        self._cards: Dict[str, ui.element] = {}
        self._paths: Dict[str, ui.element] = {}

    def build(self) -> ui.element:
        """Create the canvas elements in the current NiceGUI context."""
        self.canvas = ui.element('div').classes('relative w-full h-full overflow-hidden select-none bg-slate-950')
        self.canvas.style(
            'background-image: radial-gradient(#334155 1px, transparent 1px); '
            'touch-action: none; cursor: default;'
        )
        with self.canvas:
            self._world = ui.element('div').classes('absolute left-0 top-0')
            self._world.style('transform-origin: 0 0;')
            with self._world:
                self._svg = ui.element('svg').classes('absolute left-0 top-0')
                self._svg.style('overflow: visible; width: 1px; height: 1px; pointer-events: none;')
                with self._svg:
                    self._preview = ui.element('path').props(
                        f'fill=none stroke="{PREVIEW_COLOR}" stroke-width=2 stroke-dasharray="6,4" d=""')
        self.update_viewport()
        return self.canvas

    # --- Full redraw ---

    def render_all(self) -> None:
        for card in self._cards.values():
            card.delete()
        for path in self._paths.values():
            path.delete()
        self._cards.clear()
        self._paths.clear()

        for node in self.session.graph.nodes():
            self._create_card(node)
        for edge in self.session.graph.edges():
            self.add_edge(edge)
        self.update_preview()
        self.update_viewport()

    # --- Viewport ---

    def update_viewport(self) -> None:
        vp = self.session.viewport
        self._world.style(f'transform: {vp.css_transform()};')
        self.canvas.style(vp.grid_style())

    # --- Nodes ---

    def _create_card(self, node: Node) -> None:
        view = self.session.node_view(node)
        with self._world:
            card = ui.element('div').classes('absolute rounded-lg shadow-lg bg-slate-800 text-white')
        card.style(
            f"left: {view['x']}px; top: {view['y']}px; width: {view['width']}px; "
            f"height: {view['height']}px; outline: 2px solid {view['color'] if view['selected'] else '#334155'};"
        )
        with card:
            with ui.row().classes('w-full items-center gap-2 px-3 no-wrap').style(
                    f"height: {HEADER_HEIGHT}px; border-bottom: 1px solid #334155; cursor: move;"):
                ui.icon(view['icon']).style(f"color: {view['color']}")
                ui.label(view['label']).classes('text-sm font-bold truncate')

            ui.label(_summary(node)).classes('text-xs text-gray-400 px-3 pt-1 truncate').style(
                f'max-width: {NODE_WIDTH - 16}px;')

            if view['has_input']:
                self._handle_dot(-HANDLE_OUTSET, DEFAULT_ANCHOR_Y, '#64748b')

            multi = get_spec(node.category).multi_handle
            for handle in view['handles']:
                self._handle_dot(NODE_WIDTH + HANDLE_OUTSET, handle['offset_y'], view['color'])
                if multi:
                    caption = _handle_caption(node, handle['id'])
                    ui.label(caption).classes('absolute text-xs text-gray-300 truncate text-right').style(
                        f"right: 8px; top: {handle['offset_y'] - 9}px; max-width: {NODE_WIDTH - 24}px;")
        self._cards[node.id] = card

    @staticmethod
    def _handle_dot(center_x: float, center_y: float, color: str) -> None:
        ui.element('div').classes('absolute rounded-full').style(
            f'left: {center_x - HANDLE_SIZE / 2}px; top: {center_y - HANDLE_SIZE / 2}px; '
            f'width: {HANDLE_SIZE}px; height: {HANDLE_SIZE}px; background: {color}; '
            'border: 2px solid #0f172a; cursor: crosshair;'
        )

    def refresh_node(self, node_id: str) -> None:
        """Redraw a node card after a payload change (label, rules, timeout)."""
        card = self._cards.pop(node_id, None)
        if card is not None:
            card.delete()
        node = self.session.graph.get_node(node_id)
        if node is None:
            return
        self._create_card(node)
        # Back to its stacking slot; the edge layer is the world's first child
        index = self.session.draw_index(node_id)
        self._cards[node_id].move(self._world, target_index=index + 1)
        self.update_incident_edges(node_id)

    def move_node(self, node_id: str) -> None:
        node = self.session.graph.get_node(node_id)
        card = self._cards.get(node_id)
        if node is None or card is None:
            return
        card.style(f'left: {node.x}px; top: {node.y}px;')
        self.update_incident_edges(node_id)

    def remove_node(self, node_id: str) -> None:
        card = self._cards.pop(node_id, None)
        if card is not None:
            card.delete()
        self.prune_edges()

    def update_selection(self, previous_id: Optional[str], previous_edge_id: Optional[str] = None) -> None:
        for node_id in {previous_id, self.session.selected_id}:
            if node_id:
                self.refresh_node(node_id)
        for edge_id in {previous_edge_id, self.session.selected_edge_id}:
            if edge_id:
                self.refresh_edge(edge_id)

    # --- Edges ---

    def add_edge(self, edge: Edge) -> None:
        routed = self.session.edge_path(edge)
        if routed is None:
            return
        d, orphaned = routed
        with self._svg:
            path = ui.element('path')
        self._paths[edge.id] = path
        self._style_path(path, d, orphaned, edge.id == self.session.selected_edge_id)

    def refresh_edge(self, edge_id: str) -> None:
        edge = self.session.graph.get_edge(edge_id)
        path = self._paths.get(edge_id)
        if edge is None or path is None:
            return
        routed = self.session.edge_path(edge)
        if routed is not None:
            self._style_path(path, routed[0], routed[1], edge_id == self.session.selected_edge_id)

    def prune_edges(self) -> None:
        """Drop the paths of edges that are no longer in the graph."""
        for edge_id in [eid for eid in self._paths if self.session.graph.get_edge(eid) is None]:
            self._paths.pop(edge_id).delete()

    @staticmethod
    def _style_path(path: ui.element, d: str, orphaned: bool, selected: bool = False) -> None:
        color = ORPHAN_EDGE_COLOR if orphaned else EDGE_COLOR
        if selected:
            color = SELECTED_EDGE_COLOR
        dash = '4,4' if orphaned else 'none'
        width = 3 if selected else 2
        path.props(f'd="{d}" fill=none stroke="{color}" stroke-width={width} stroke-dasharray="{dash}"')

    def update_incident_edges(self, node_id: str) -> None:
        for item in self.session.incident_paths(node_id):
            path = self._paths.get(item['id'])
            if path is not None:
                self._style_path(path, item['d'], item['orphaned'], item['selected'])

    def update_preview(self) -> None:
        d = self.session.preview_path()
        self._preview.props(f'd="{d or ""}"')
