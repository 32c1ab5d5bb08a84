"""
Inspector Panel Binder.

Every edit is applied to the graph immediately through
FlowGraph.update_node_payload; there is no separate apply step. List-valued
fields (rules, actions) are copied, changed and written back as a whole so a
payload is never mutated behind the graph's back.
"""

import copy
import re
from typing import Any, Dict, List, Optional

from flowcanvas.editor.categories import NodeCategory
from flowcanvas.editor.graph import FlowGraph, Node
from flowcanvas.editor.payloads import (
    ACTION_TYPES,
    RULE_OPERATORS,
    VALIDATION_MODES,
    PayloadError,
    coerce_action_param,
    default_action_params,
    make_action,
    make_branch_rule,
)


class InspectorBinder:
    """Applies inspector edits to the payload of a node."""

    def __init__(self, graph: FlowGraph):
        self._graph = graph

    def payload(self, node_id: str) -> Dict[str, Any]:
        """Current payload of a node (empty if the node is gone)."""
        node = self._graph.get_node(node_id)
        return node.payload if node is not None else {}

    def _require(self, node_id: str, category: Optional[NodeCategory] = None) -> Node:
        node = self._graph.get_node(node_id)
        if node is None:
            raise PayloadError(f"Unknown node: {node_id}")
        if category is not None and node.category != category:
            raise PayloadError(f"Node {node_id} is a {node.category.value}, not a {category.value}")
        return node

    def _set(self, node_id: str, **fields) -> Node:
        return self._graph.update_node_payload(node_id, fields)

    # --- Common ---

    def set_label(self, node_id: str, label: str) -> Node:
        self._require(node_id)
        return self._set(node_id, label=label or '')

    # --- Message ---

    def set_content(self, node_id: str, content: str) -> Node:
        self._require(node_id, NodeCategory.MESSAGE)
        return self._set(node_id, content=content or '')

    # --- Question ---

    def set_question(self, node_id: str, question: str) -> Node:
        self._require(node_id, NodeCategory.QUESTION)
        return self._set(node_id, question=question or '')

    def set_variable(self, node_id: str, variable: str) -> Node:
        self._require(node_id, NodeCategory.QUESTION)
        return self._set(node_id, variable=(variable or '').strip())

    def set_validation_mode(self, node_id: str, mode: str) -> Node:
        node = self._require(node_id, NodeCategory.QUESTION)
        if mode not in VALIDATION_MODES:
            raise PayloadError(f"Unknown validation mode: {mode}")
        fields: Dict[str, Any] = {'validation_type': mode}
        if mode == 'options' and not isinstance(node.payload.get('validation_options'), list):
            fields['validation_options'] = []
        if mode == 'regex' and node.payload.get('validation_regex') is None:
            fields['validation_regex'] = ''
        return self._set(node_id, **fields)

    def set_validation_options(self, node_id: str, options: Any) -> Node:
        self._require(node_id, NodeCategory.QUESTION)
        if isinstance(options, str):
            options = options.split(',')
        cleaned = [str(o).strip() for o in options or [] if str(o).strip()]
        return self._set(node_id, validation_options=cleaned)

    def set_validation_regex(self, node_id: str, pattern: str) -> Node:
        self._require(node_id, NodeCategory.QUESTION)
        try:
            re.compile(pattern or '')
        except re.error as e:
            raise PayloadError(f"Invalid regular expression: {e}")
        return self._set(node_id, validation_regex=pattern or '')

    def set_error_message(self, node_id: str, message: str) -> Node:
        self._require(node_id, NodeCategory.QUESTION)
        return self._set(node_id, error_message=message or '')

    def set_max_attempts(self, node_id: str, attempts: Any) -> Node:
        self._require(node_id, NodeCategory.QUESTION)
        try:
            attempts = int(attempts)
        except (TypeError, ValueError):
            raise PayloadError(f"Max attempts must be a number, got {attempts!r}")
        if attempts < 1:
            raise PayloadError("Max attempts must be at least 1")
        return self._set(node_id, max_attempts=attempts)

    def set_timeout_seconds(self, node_id: str, seconds: Any) -> Node:
        """A positive value enables the timeout handle; None or 0 removes it."""
        self._require(node_id, NodeCategory.QUESTION)
        if seconds in (None, ''):
            return self._set(node_id, timeout_seconds=None)
        try:
            seconds = int(seconds)
        except (TypeError, ValueError):
            raise PayloadError(f"Timeout must be a whole number of seconds, got {seconds!r}")
        if seconds < 0:
            raise PayloadError("Timeout cannot be negative")
        return self._set(node_id, timeout_seconds=seconds or None)

    # --- Condition ---

    def _rules(self, node: Node) -> List[Dict[str, Any]]:
        return copy.deepcopy(node.payload.get('rules') or [])

    def add_rule(self, node_id: str, variable: str = '', operator: str = 'equals', value: str = '') -> Dict[str, Any]:
        """Append a rule. Its id becomes a new output handle."""
        node = self._require(node_id, NodeCategory.CONDITION)
        rule = make_branch_rule(variable, operator, value)
        rules = self._rules(node)
        rules.append(rule)
        self._set(node_id, rules=rules)
        return rule

    def update_rule(self, node_id: str, rule_id: str, **changes) -> Node:
        node = self._require(node_id, NodeCategory.CONDITION)
        unknown = set(changes) - {'variable', 'operator', 'value'}
        if unknown:
            raise PayloadError(f"Unknown rule fields: {sorted(unknown)}")
        if 'operator' in changes and changes['operator'] not in RULE_OPERATORS:
            raise PayloadError(f"Unknown rule operator: {changes['operator']}")
        rules = self._rules(node)
        for rule in rules:
            if rule.get('id') == rule_id:
                rule.update({k: ('' if v is None else v) for k, v in changes.items()})
                break
        else:
            raise PayloadError(f"Unknown rule: {rule_id}")
        return self._set(node_id, rules=rules)

    def remove_rule(self, node_id: str, rule_id: str) -> Node:
        """Remove a rule in place. Edges on its handle are kept and become orphaned."""
        node = self._require(node_id, NodeCategory.CONDITION)
        rules = self._rules(node)
        remaining = [r for r in rules if r.get('id') != rule_id]
        if len(remaining) == len(rules):
            raise PayloadError(f"Unknown rule: {rule_id}")
        return self._set(node_id, rules=remaining)

    # --- Action ---

    def _actions(self, node: Node) -> List[Dict[str, Any]]:
        return copy.deepcopy(node.payload.get('actions') or [])

    def _action_at(self, actions: List[Dict[str, Any]], index: int) -> Dict[str, Any]:
        if not 0 <= index < len(actions):
            raise PayloadError(f"No action at position {index}")
        return actions[index]

    def add_action(self, node_id: str, action_type: str = 'send_message') -> Dict[str, Any]:
        node = self._require(node_id, NodeCategory.ACTION)
        action = make_action(action_type)
        actions = self._actions(node)
        actions.append(action)
        self._set(node_id, actions=actions)
        return action

    def set_action_type(self, node_id: str, index: int, action_type: str) -> Node:
        """Switch an action's type; its parameters reset to the new type's shape."""
        node = self._require(node_id, NodeCategory.ACTION)
        actions = self._actions(node)
        action = self._action_at(actions, index)
        action['type'] = action_type
        action['params'] = default_action_params(action_type)
        return self._set(node_id, actions=actions)

    def update_action_param(self, node_id: str, index: int, key: str, value: Any) -> Node:
        node = self._require(node_id, NodeCategory.ACTION)
        actions = self._actions(node)
        action = self._action_at(actions, index)
        params = dict(action.get('params') or {})
        params[key] = coerce_action_param(action.get('type'), key, value)
        action['params'] = params
        return self._set(node_id, actions=actions)

    def remove_action(self, node_id: str, index: int) -> Node:
        node = self._require(node_id, NodeCategory.ACTION)
        actions = self._actions(node)
        self._action_at(actions, index)
        del actions[index]
        return self._set(node_id, actions=actions)


def form_fields(node: Node) -> List[str]:
    """Payload fields the inspector shows for a node in its current state."""
    fields = ['label']
    if node.category == NodeCategory.MESSAGE:
        fields.append('content')
    elif node.category == NodeCategory.QUESTION:
        fields += ['question', 'variable', 'validation_type']
        mode = node.payload.get('validation_type', 'any')
        if mode == 'options':
            fields.append('validation_options')
        elif mode == 'regex':
            fields.append('validation_regex')
        fields += ['error_message', 'max_attempts', 'timeout_seconds']
    elif node.category == NodeCategory.CONDITION:
        fields.append('rules')
    elif node.category == NodeCategory.ACTION:
        fields.append('actions')
    return fields


def action_fields(action: Dict[str, Any]) -> List[str]:
    """Parameter keys shown for one action, in the order of its default shape."""
    action_type = action.get('type')
    if action_type not in ACTION_TYPES:
        return []
    return list(default_action_params(action_type))
