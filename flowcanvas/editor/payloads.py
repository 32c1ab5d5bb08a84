"""
Payload vocabularies for node categories.

Defines the closed sets the inspector offers (rule operators, validation
modes, action types) and factories for well-formed rules and actions.
"""

import copy
import uuid
from typing import Any, Dict


class PayloadError(ValueError):
    """Raised when a payload edit would produce a malformed payload."""


# --- Condition rules ---

RULE_OPERATORS = {
    'equals': 'Equals',
    'different': 'Is different from',
    'contains': 'Contains',
    'greater_than': 'Greater than',
    'less_than': 'Less than',
    'regex': 'Matches regex',
}

ELSE_HANDLE = 'else'


def make_branch_rule(variable: str = '', operator: str = 'equals', value: str = '') -> Dict[str, Any]:
    if operator not in RULE_OPERATORS:
        raise PayloadError(f"Unknown rule operator: {operator}")
    return {
        'id': str(uuid.uuid4()),
        'variable': variable,
        'operator': operator,
        'value': value,
    }


# --- Question validation ---

VALIDATION_MODES = {
    'any': 'Any answer',
    'number': 'Number',
    'options': 'One of the options',
    'regex': 'Regular expression',
}

QUESTION_HANDLES = ('success', 'invalid')
TIMEOUT_HANDLE = 'timeout'


# --- Actions ---

CONVERSATION_STATUSES = ('PENDING', 'OPEN', 'CLOSED')

DELAY_MIN_SECONDS = 1
DELAY_MAX_SECONDS = 60

# action type -> (display name, default params)
ACTION_TYPES: Dict[str, tuple] = {
    'send_message': ('Send message', {'content': ''}),
    'delay': ('Wait', {'seconds': 3}),
    'move_queue': ('Move to queue', {'queueName': ''}),
    'assign_user': ('Assign agent', {'userId': ''}),
    'change_status': ('Change status', {'status': 'OPEN'}),
    'close_conversation': ('Close conversation', {}),
    'stop_chatbot': ('Stop chatbot', {}),
    'add_tag': ('Add tag', {'tagId': ''}),
    'remove_tag': ('Remove tag', {'tagId': ''}),
    'create_lead': ('Create lead', {'name': '', 'email': ''}),
    'create_task': ('Create task', {'title': '', 'description': ''}),
    'send_notification': ('Notify team', {'message': ''}),
    'set_variable': ('Set variable', {'name': '', 'value': ''}),
    'webhook': ('Call webhook', {'url': ''}),
}


def action_label(action_type: str) -> str:
    return ACTION_TYPES.get(action_type, (action_type, {}))[0]


def default_action_params(action_type: str) -> Dict[str, Any]:
    if action_type not in ACTION_TYPES:
        raise PayloadError(f"Unknown action type: {action_type}")
    return copy.deepcopy(ACTION_TYPES[action_type][1])


def make_action(action_type: str = 'send_message') -> Dict[str, Any]:
    return {'type': action_type, 'params': default_action_params(action_type)}


def coerce_action_param(action_type: str, key: str, value: Any) -> Any:
    """
    Validate a single parameter against the action's parameter shape.

    Returns the normalized value; raises PayloadError for keys the action
    does not have or values outside the allowed range.
    """
    params = default_action_params(action_type)
    if key not in params:
        raise PayloadError(f"Action '{action_type}' has no parameter '{key}'")

    if action_type == 'delay' and key == 'seconds':
        try:
            seconds = int(value)
        except (TypeError, ValueError):
            raise PayloadError(f"Delay must be a whole number of seconds, got {value!r}")
        return max(DELAY_MIN_SECONDS, min(DELAY_MAX_SECONDS, seconds))

    if action_type == 'change_status' and key == 'status':
        if value not in CONVERSATION_STATUSES:
            raise PayloadError(f"Unknown conversation status: {value}")
        return value

    return '' if value is None else str(value)
