"""
Editor Session - one explicit object per open editor.

Bundles the graph, the viewport, the current selection and the interaction
machine, and exposes the render model the canvas view draws from. Nothing
here is global: two sessions never share state.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from flowcanvas.editor.categories import get_spec
from flowcanvas.editor.constants import NEW_NODE_OFFSET, NODE_WIDTH, ZOOM_STEP
from flowcanvas.editor.document import load_document, to_document
from flowcanvas.editor.graph import Edge, FlowGraph, Node
from flowcanvas.editor.handles import (
    edge_curve,
    edge_source_anchor,
    handle_offset_y,
    has_input,
    node_height,
    output_anchor,
    output_handles,
)
from flowcanvas.editor.interaction import InteractionMachine
from flowcanvas.editor.routing import compute_path
from flowcanvas.editor.viewport import CanvasRect, Viewport

logger = logging.getLogger(__name__)


class EditorSession:
    """State of a single editor instance."""

    def __init__(self, flow_id: Optional[str] = None, graph: Optional[FlowGraph] = None):
        self.flow_id = flow_id
        self.graph = graph if graph is not None else FlowGraph()
        self.viewport = Viewport()
        self.canvas = CanvasRect()
        self.selected_id: Optional[str] = None
        self.selected_edge_id: Optional[str] = None
        self.machine = InteractionMachine(self.graph, self.viewport, on_select=self._set_selected)

    # --- Selection ---

    def _set_selected(self, node_id: Optional[str], edge_id: Optional[str] = None):
        self.selected_id = node_id
        self.selected_edge_id = edge_id

    def select(self, node_id: Optional[str]) -> None:
        if node_id is not None and not self.graph.has_node(node_id):
            node_id = None
        self._set_selected(node_id)

    def select_edge(self, edge_id: Optional[str]) -> None:
        if edge_id is not None and self.graph.get_edge(edge_id) is None:
            edge_id = None
        self._set_selected(None, edge_id)

    @property
    def selected_node(self) -> Optional[Node]:
        if self.selected_id is None:
            return None
        return self.graph.get_node(self.selected_id)

    @property
    def selected_edge(self) -> Optional[Edge]:
        if self.selected_edge_id is None:
            return None
        return self.graph.get_edge(self.selected_edge_id)

    # --- Commands ---

    def add_node(self, category: Any, canvas: Optional[CanvasRect] = None) -> Node:
        """Add a node centered on the visible area and select it."""
        if canvas is not None:
            self.canvas = canvas
        cx, cy = self.viewport.visual_center(self.canvas)
        ox, oy = NEW_NODE_OFFSET
        node = self.graph.add_node(category, (cx + ox, cy + oy))
        self._set_selected(node.id)
        logger.debug(f"Added {node.category.value} node {node.id}")
        return node

    def duplicate_selected(self) -> Optional[Node]:
        if self.selected_id is None:
            return None
        copy_node = self.graph.duplicate_node(self.selected_id)
        if copy_node is not None:
            self._set_selected(copy_node.id)
        return copy_node

    def delete_node(self, node_id: str) -> bool:
        deleted = self.graph.delete_node(node_id)
        if deleted and self.selected_id == node_id:
            self.selected_id = None
        if self.selected_edge_id is not None and self.graph.get_edge(self.selected_edge_id) is None:
            self.selected_edge_id = None
        return deleted

    def delete_edge(self, edge_id: str) -> bool:
        deleted = self.graph.delete_edge(edge_id)
        if deleted and self.selected_edge_id == edge_id:
            self.selected_edge_id = None
        return deleted

    def delete_selected(self) -> bool:
        """Delete the selected node (with its edges) or the selected edge."""
        if self.selected_edge_id is not None:
            return self.delete_edge(self.selected_edge_id)
        if self.selected_id is None:
            return False
        return self.delete_node(self.selected_id)

    def remove_orphaned_edges(self) -> List[str]:
        """Delete every edge whose source handle is gone. Returns the removed ids."""
        removed = [edge.id for edge in self.orphaned_edges()]
        for edge_id in removed:
            self.delete_edge(edge_id)
        if removed:
            logger.info(f"Removed {len(removed)} orphaned connection(s)")
        return removed

    def handle_key(self, key: str) -> bool:
        """Keyboard shortcuts. Returns True when the key changed something."""
        if key in ('Delete', 'Backspace'):
            return self.delete_selected()
        if key == 'Escape':
            self.machine.cancel()
            had_selection = self.selected_id is not None or self.selected_edge_id is not None
            self._set_selected(None)
            return had_selection
        return False

    def zoom_in(self) -> float:
        return self.viewport.zoom_by(ZOOM_STEP)

    def zoom_out(self) -> float:
        return self.viewport.zoom_by(-ZOOM_STEP)

    def reset_view(self) -> None:
        self.viewport.reset()

    # --- Documents ---

    def load(self, raw: Any) -> None:
        """Replace the flow with a loaded document. Raises DocumentError, leaving state untouched."""
        load_document(self.graph, raw)
        self.machine.cancel()
        self._set_selected(None)

    def to_document(self) -> Dict[str, Any]:
        return to_document(self.graph)

    # --- Render model ---

    def node_view(self, node: Node) -> Dict[str, Any]:
        spec = get_spec(node.category)
        return {
            'id': node.id,
            'category': node.category.value,
            'title': spec.title,
            'icon': spec.icon,
            'color': spec.color,
            'label': node.label,
            'x': node.x,
            'y': node.y,
            'width': NODE_WIDTH,
            'height': node_height(node),
            'has_input': has_input(node),
            'handles': [
                {'id': h, 'offset_y': handle_offset_y(node, i)}
                for i, h in enumerate(output_handles(node))
            ],
            'selected': node.id == self.selected_id,
        }

    def edge_path(self, edge: Edge) -> Optional[Tuple[str, bool]]:
        """SVG path for an edge and whether its source handle no longer exists."""
        curve = edge_curve(self.graph, edge)
        if curve is None:
            return None
        _, orphaned = edge_source_anchor(self.graph.get_node(edge.source), edge.source_handle)
        return curve.to_svg(), orphaned

    def _path_item(self, edge: Edge) -> Optional[Dict[str, Any]]:
        routed = self.edge_path(edge)
        if routed is None:
            return None
        return {'id': edge.id, 'd': routed[0], 'orphaned': routed[1],
                'selected': edge.id == self.selected_edge_id}

    def edge_paths(self) -> List[Dict[str, Any]]:
        return [item for item in map(self._path_item, self.graph.edges()) if item is not None]

    def incident_paths(self, node_id: str) -> List[Dict[str, Any]]:
        """Paths for just the edges touching one node (used while dragging)."""
        return [item for item in map(self._path_item, self.graph.incident_edges(node_id)) if item is not None]

    def draw_index(self, node_id: str) -> Optional[int]:
        """
        Stacking position of a node card, bottom first.

        Cards are stacked in graph order, the same order hit_test walks
        (from the top), so a redrawn card must go back to this position.
        """
        for index, node in enumerate(self.graph.nodes()):
            if node.id == node_id:
                return index
        return None

    def preview_path(self) -> Optional[str]:
        endpoints = self.machine.preview_endpoints()
        if endpoints is None:
            return None
        node_id, handle, pointer = endpoints
        node = self.graph.get_node(node_id)
        if node is None:
            return None
        start = output_anchor(node, handle)
        if start is None:
            return None
        return compute_path(start, pointer).to_svg()

    def orphaned_edges(self) -> List[Edge]:
        """Edges leaving a handle their source node no longer exposes."""
        orphans = []
        for edge in self.graph.edges():
            source = self.graph.get_node(edge.source)
            if source is not None and edge.source_handle is not None \
                    and edge.source_handle not in output_handles(source):
                orphans.append(edge)
        return orphans
