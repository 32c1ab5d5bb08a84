"""
Graph Model - the single owner of flow topology.

Nodes and edges live in a networkx MultiDiGraph (edge key = edge id) with a
side index keeping edges in insertion order. All mutation goes through
FlowGraph; after every public operation the graph is a valid directed
multigraph: every edge references two existing, distinct nodes.
"""

import copy
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import networkx as nx

from flowcanvas.editor.categories import NodeCategory, get_spec
from flowcanvas.editor.constants import DUPLICATE_OFFSET

logger = logging.getLogger(__name__)


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Node:
    id: str
    category: NodeCategory
    x: float = 0.0
    y: float = 0.0
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @property
    def label(self) -> str:
        return self.payload.get('label') or get_spec(self.category).default_label()


@dataclass
class Edge:
    id: str
    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None
    label: Optional[str] = None


class FlowGraph:
    """Directed multigraph of flow nodes and their connections."""

    def __init__(self):
        self._g = nx.MultiDiGraph()
        # edge id -> Edge, insertion ordered
        self._edges: Dict[str, Edge] = {}

    # --- Queries ---

    def __len__(self) -> int:
        return self._g.number_of_nodes()

    def has_node(self, node_id: str) -> bool:
        return node_id in self._g

    def get_node(self, node_id: str) -> Optional[Node]:
        if node_id not in self._g:
            return None
        return self._g.nodes[node_id]['node']

    def nodes(self) -> List[Node]:
        return [data['node'] for _, data in self._g.nodes(data=True)]

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        return self._edges.get(edge_id)

    def edges(self) -> List[Edge]:
        return list(self._edges.values())

    def incident_edges(self, node_id: str) -> List[Edge]:
        """Edges touching a node, found in O(degree)."""
        if node_id not in self._g:
            return []
        keys = [k for _, _, k in self._g.out_edges(node_id, keys=True)]
        keys += [k for _, _, k in self._g.in_edges(node_id, keys=True)]
        return [self._edges[k] for k in keys]

    def edges_from_handle(self, node_id: str, handle: str) -> List[Edge]:
        if node_id not in self._g:
            return []
        return [
            self._edges[k] for _, _, k in self._g.out_edges(node_id, keys=True)
            if self._edges[k].source_handle == handle
        ]

    # --- Node Operations ---

    def add_node(self, category: Any, position: Tuple[float, float] = (0.0, 0.0),
                 payload: Optional[Dict[str, Any]] = None, node_id: Optional[str] = None) -> Node:
        """
        Create a node of the given category at a world position.

        Args:
            category: NodeCategory or its string value
            position: (x, y) of the card's top-left corner in world units
            payload: Optional payload; defaults to the category's default payload
            node_id: Optional id (documents being loaded keep their ids)

        Returns:
            The new Node
        """
        category = NodeCategory.parse(category)
        if payload is None:
            payload = get_spec(category).default_payload()
        node_id = node_id or new_id()
        if node_id in self._g:
            raise ValueError(f"Duplicate node id: {node_id}")
        node = Node(id=node_id, category=category, x=float(position[0]),
                    y=float(position[1]), payload=dict(payload))
        self._g.add_node(node_id, node=node)
        return node

    def update_node_payload(self, node_id: str, partial: Dict[str, Any]) -> Optional[Node]:
        """Shallow-merge `partial` into the node's payload."""
        node = self.get_node(node_id)
        if node is None:
            return None
        node.payload = {**node.payload, **partial}
        return node

    def move_node(self, node_id: str, dx: float, dy: float) -> Optional[Node]:
        node = self.get_node(node_id)
        if node is None:
            return None
        node.x += dx
        node.y += dy
        return node

    def delete_node(self, node_id: str) -> bool:
        """Remove a node and every edge touching it in one step."""
        if node_id not in self._g:
            return False
        for edge in self.incident_edges(node_id):
            del self._edges[edge.id]
        # networkx drops incident edges together with the node
        self._g.remove_node(node_id)
        return True

    def duplicate_node(self, node_id: str) -> Optional[Node]:
        """Copy category and payload into a new node offset from the original. No edges are copied."""
        node = self.get_node(node_id)
        if node is None:
            return None
        dx, dy = DUPLICATE_OFFSET
        return self.add_node(node.category, (node.x + dx, node.y + dy),
                             payload=copy.deepcopy(node.payload))

    # --- Edge Operations ---

    def add_edge(self, source: str, target: str, source_handle: Optional[str] = None,
                 target_handle: Optional[str] = None, label: Optional[str] = None,
                 edge_id: Optional[str] = None) -> Optional[Edge]:
        """
        Connect two nodes.

        Returns None (and changes nothing) for self-loops, missing endpoints
        or an id already in use.
        """
        if source == target:
            logger.debug(f"Rejected self-loop on {source}")
            return None
        if source not in self._g or target not in self._g:
            logger.debug(f"Rejected edge {source} -> {target}: missing endpoint")
            return None
        edge_id = edge_id or new_id()
        if edge_id in self._edges:
            logger.debug(f"Rejected edge {edge_id}: duplicate id")
            return None
        edge = Edge(id=edge_id, source=source, target=target, source_handle=source_handle,
                    target_handle=target_handle, label=label)
        self._g.add_edge(source, target, key=edge_id)
        self._edges[edge_id] = edge
        return edge

    def delete_edge(self, edge_id: str) -> bool:
        edge = self._edges.pop(edge_id, None)
        if edge is None:
            return False
        self._g.remove_edge(edge.source, edge.target, key=edge_id)
        return True

    # --- Bulk ---

    def clear(self) -> None:
        self._g.clear()
        self._edges.clear()

    def replace(self, nodes: Iterable[Node], edges: Iterable[Edge]) -> None:
        """Swap the whole content for already-validated nodes and edges."""
        self.clear()
        for node in nodes:
            self.add_node(node.category, node.position, payload=node.payload, node_id=node.id)
        for edge in edges:
            self.add_edge(edge.source, edge.target, edge.source_handle, edge.target_handle,
                          edge.label, edge_id=edge.id)

    def check_integrity(self) -> List[str]:
        """Return a list of invariant violations (empty when consistent)."""
        problems = []
        for edge in self._edges.values():
            if edge.source not in self._g or edge.target not in self._g:
                problems.append(f"edge {edge.id} references a missing node")
            if edge.source == edge.target:
                problems.append(f"edge {edge.id} is a self-loop")
            if not self._g.has_edge(edge.source, edge.target, key=edge.id):
                problems.append(f"edge {edge.id} missing from adjacency")
        if self._g.number_of_edges() != len(self._edges):
            problems.append("edge index out of sync with adjacency")
        return problems
