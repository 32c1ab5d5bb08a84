"""
Flow document serialization.

Canonical document shape:
    {"nodes": [{"id", "type", "position": {"x", "y"}, "data": {...}}],
     "edges": [{"id", "source", "target", "sourceHandle", "targetHandle", "label"}]}

Older flows were stored row-per-record with snake_case columns
(position_x, position_y, content, source_node_id, target_node_id,
source_handle, target_handle) and the node type `actions`. Those records
are normalized on load, and so are payload shapes the runtime writes
(id-less branch rules, the `text` validation mode).
"""

import copy
import logging
from typing import Any, Dict, List, Tuple

from flowcanvas.editor.categories import NodeCategory
from flowcanvas.editor.graph import Edge, FlowGraph, Node, new_id
from flowcanvas.editor.payloads import (
    ACTION_TYPES,
    RULE_OPERATORS,
    VALIDATION_MODES,
    default_action_params,
    make_branch_rule,
)

logger = logging.getLogger(__name__)

# Position used for legacy rows without coordinates
LEGACY_DEFAULT_POSITION = 100.0

LEGACY_TYPE_ALIASES = {
    'actions': 'action',
}

LEGACY_VALIDATION_ALIASES = {
    'text': 'any',
}


class DocumentError(ValueError):
    """Raised when a flow document cannot be turned into a valid graph."""


def _first(record: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def _normalize_node(record: Dict[str, Any]) -> Node:
    if not isinstance(record, dict):
        raise DocumentError(f"Node record must be an object, got {type(record).__name__}")

    raw_type = _first(record, 'type', 'category', 'node_type')
    if raw_type is None:
        raise DocumentError(f"Node {record.get('id')!r} has no type")
    raw_type = LEGACY_TYPE_ALIASES.get(str(raw_type).lower(), str(raw_type).lower())
    try:
        category = NodeCategory.parse(raw_type)
    except ValueError:
        raise DocumentError(f"Unknown node type: {raw_type}")

    position = record.get('position')
    if isinstance(position, dict):
        x, y = position.get('x', LEGACY_DEFAULT_POSITION), position.get('y', LEGACY_DEFAULT_POSITION)
    else:
        x = _first(record, 'position_x', 'x')
        y = _first(record, 'position_y', 'y')
        x = LEGACY_DEFAULT_POSITION if x is None else x
        y = LEGACY_DEFAULT_POSITION if y is None else y
    try:
        x, y = float(x), float(y)
    except (TypeError, ValueError):
        raise DocumentError(f"Node {record.get('id')!r} has a non-numeric position")

    payload = _first(record, 'data', 'content', 'payload')
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise DocumentError(f"Node {record.get('id')!r} payload must be an object")

    node_id = str(record.get('id') or new_id())
    return Node(id=node_id, category=category, x=x, y=y,
                payload=_normalize_payload(category, copy.deepcopy(payload), node_id))


def _list_field(payload: Dict[str, Any], key: str, node_id: str) -> List[Any]:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise DocumentError(f"Node {node_id!r} field '{key}' must be a list")
    return value


def _normalize_rule(rule: Any, node_id: str) -> Dict[str, Any]:
    if not isinstance(rule, dict):
        raise DocumentError(f"Condition {node_id!r} has a rule that is not an object: {rule!r}")
    operator = rule.get('operator') or 'equals'
    if operator not in RULE_OPERATORS:
        raise DocumentError(f"Condition {node_id!r} uses unknown operator {operator!r}")
    if rule.get('id'):
        return {**rule, 'id': str(rule['id']), 'operator': operator}
    # Runtime rules ({value, nextNodeId}) carry no id; give them a handle
    fresh = make_branch_rule(str(rule.get('variable') or ''), operator, rule.get('value', ''))
    return {**rule, **fresh}


def _normalize_action(action: Any, node_id: str) -> Dict[str, Any]:
    if not isinstance(action, dict):
        raise DocumentError(f"Action node {node_id!r} has an action that is not an object: {action!r}")
    action_type = action.get('type')
    if action_type not in ACTION_TYPES:
        raise DocumentError(f"Action node {node_id!r} uses unknown action type {action_type!r}")
    params = action.get('params')
    if params is not None and not isinstance(params, dict):
        raise DocumentError(f"Action node {node_id!r} has non-object params for {action_type}")
    return {**action, 'params': {**default_action_params(action_type), **(params or {})}}


def _normalize_payload(category: NodeCategory, payload: Dict[str, Any], node_id: str) -> Dict[str, Any]:
    """Bring the category-specific parts of a payload into the shapes the editor works with."""
    if category == NodeCategory.QUESTION and payload.get('validation_type') is not None:
        mode = str(payload['validation_type']).lower()
        mode = LEGACY_VALIDATION_ALIASES.get(mode, mode)
        if mode not in VALIDATION_MODES:
            raise DocumentError(f"Question {node_id!r} uses unknown validation type {mode!r}")
        payload['validation_type'] = mode

    elif category == NodeCategory.CONDITION and 'rules' in payload:
        payload['rules'] = [_normalize_rule(r, node_id) for r in _list_field(payload, 'rules', node_id)]

    elif category == NodeCategory.ACTION and 'actions' in payload:
        payload['actions'] = [_normalize_action(a, node_id) for a in _list_field(payload, 'actions', node_id)]

    return payload


def _normalize_edge(record: Dict[str, Any]) -> Edge:
    if not isinstance(record, dict):
        raise DocumentError(f"Edge record must be an object, got {type(record).__name__}")
    source = _first(record, 'source', 'source_node_id')
    target = _first(record, 'target', 'target_node_id')
    if source is None or target is None:
        raise DocumentError(f"Edge {record.get('id')!r} is missing an endpoint")
    return Edge(
        id=str(record.get('id') or new_id()),
        source=str(source),
        target=str(target),
        source_handle=_first(record, 'sourceHandle', 'source_handle'),
        target_handle=_first(record, 'targetHandle', 'target_handle'),
        label=record.get('label'),
    )


def normalize_document(raw: Any) -> Tuple[List[Node], List[Edge]]:
    """
    Turn a canonical or legacy document into validated nodes and edges.

    Raises:
        DocumentError: for a malformed document or an unknown node type.

    Records that would break graph invariants (duplicate ids, self-loops,
    edges pointing at missing nodes) are dropped with a warning.
    """
    if raw is None:
        return [], []
    if not isinstance(raw, dict):
        raise DocumentError(f"Flow document must be an object, got {type(raw).__name__}")
    # Some endpoints wrap the document: {"flow": {...}}
    if 'flow' in raw and isinstance(raw['flow'], dict) and 'nodes' not in raw:
        raw = raw['flow']

    raw_nodes = raw.get('nodes') or []
    raw_edges = raw.get('edges') or []
    if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
        raise DocumentError("Flow document 'nodes' and 'edges' must be lists")

    nodes: List[Node] = []
    seen_nodes = set()
    for record in raw_nodes:
        node = _normalize_node(record)
        if node.id in seen_nodes:
            logger.warning(f"Dropping duplicate node id {node.id}")
            continue
        seen_nodes.add(node.id)
        nodes.append(node)

    edges: List[Edge] = []
    seen_edges = set()
    for record in raw_edges:
        edge = _normalize_edge(record)
        if edge.id in seen_edges:
            logger.warning(f"Dropping duplicate edge id {edge.id}")
            continue
        if edge.source == edge.target:
            logger.warning(f"Dropping self-loop edge {edge.id} on {edge.source}")
            continue
        if edge.source not in seen_nodes or edge.target not in seen_nodes:
            logger.warning(f"Dropping dangling edge {edge.id} ({edge.source} -> {edge.target})")
            continue
        seen_edges.add(edge.id)
        edges.append(edge)

    return nodes, edges


def load_document(graph: FlowGraph, raw: Any) -> FlowGraph:
    """Replace the graph's content with a document. The graph is untouched if normalization fails."""
    nodes, edges = normalize_document(raw)
    graph.replace(nodes, edges)
    logger.info(f"Loaded flow with {len(nodes)} nodes and {len(edges)} edges")
    return graph


def node_to_dict(node: Node) -> Dict[str, Any]:
    return {
        'id': node.id,
        'type': node.category.value,
        'position': {'x': node.x, 'y': node.y},
        'data': copy.deepcopy(node.payload),
    }


def edge_to_dict(edge: Edge) -> Dict[str, Any]:
    record = {'id': edge.id, 'source': edge.source, 'target': edge.target}
    if edge.source_handle is not None:
        record['sourceHandle'] = edge.source_handle
    record['targetHandle'] = edge.target_handle or None
    record['label'] = edge.label or None
    return record


def to_document(graph: FlowGraph) -> Dict[str, Any]:
    return {
        'nodes': [node_to_dict(n) for n in graph.nodes()],
        'edges': [edge_to_dict(e) for e in graph.edges()],
    }
