"""
Node categories.

Every category is a closed variant with its own default payload and its
own set of output handles. The CATEGORIES registry must cover every
NodeCategory member; this is checked when the module is imported.
"""

from enum import Enum
from typing import Any, Dict, List

from flowcanvas.editor.payloads import ELSE_HANDLE, QUESTION_HANDLES, TIMEOUT_HANDLE

DEFAULT_HANDLE = 'default'


class NodeCategory(str, Enum):
    START = 'start'
    MESSAGE = 'message'
    QUESTION = 'question'
    CONDITION = 'condition'
    ACTION = 'action'
    HANDOFF = 'handoff'

    @classmethod
    def parse(cls, value: Any) -> 'NodeCategory':
        """Accept an enum member or its string value. Raises ValueError otherwise."""
        if isinstance(value, cls):
            return value
        return cls(str(value).lower())


class CategorySpec:
    """Behaviour shared by single-output categories."""
    title = ''
    icon = 'circle'
    color = '#64748b'
    has_input = True
    multi_handle = False

    def __init__(self, category: NodeCategory):
        self.category = category

    def default_label(self) -> str:
        return self.category.value.upper()

    def default_payload(self) -> Dict[str, Any]:
        return {'label': self.default_label()}

    def output_handles(self, payload: Dict[str, Any]) -> List[str]:
        return [DEFAULT_HANDLE]


class StartSpec(CategorySpec):
    title = 'Start'
    icon = 'play_arrow'
    color = '#22c55e'
    has_input = False


class MessageSpec(CategorySpec):
    title = 'Message'
    icon = 'chat'
    color = '#3b82f6'

    def default_label(self) -> str:
        return 'New Message'

    def default_payload(self) -> Dict[str, Any]:
        return {'label': self.default_label(), 'content': ''}


class QuestionSpec(CategorySpec):
    title = 'Question'
    icon = 'help_outline'
    color = '#a855f7'
    multi_handle = True

    def default_payload(self) -> Dict[str, Any]:
        return {
            'label': self.default_label(),
            'question': '',
            'variable': '',
            'validation_type': 'any',
            'max_attempts': 3,
            'error_message': '',
            'timeout_seconds': None,
        }

    def output_handles(self, payload: Dict[str, Any]) -> List[str]:
        handles = list(QUESTION_HANDLES)
        if has_timeout(payload):
            handles.append(TIMEOUT_HANDLE)
        return handles


class ConditionSpec(CategorySpec):
    title = 'Condition'
    icon = 'call_split'
    color = '#f59e0b'
    multi_handle = True

    def default_payload(self) -> Dict[str, Any]:
        return {'label': self.default_label(), 'rules': []}

    def output_handles(self, payload: Dict[str, Any]) -> List[str]:
        rules = payload.get('rules') or []
        return [rule['id'] for rule in rules if isinstance(rule, dict) and rule.get('id')] + [ELSE_HANDLE]


class ActionSpec(CategorySpec):
    title = 'Action'
    icon = 'bolt'
    color = '#ef4444'

    def default_payload(self) -> Dict[str, Any]:
        return {'label': self.default_label(), 'actions': []}


class HandoffSpec(CategorySpec):
    title = 'Handoff'
    icon = 'support_agent'
    color = '#14b8a6'


def has_timeout(payload: Dict[str, Any]) -> bool:
    """A question exposes the timeout handle only when a positive timeout is set."""
    value = payload.get('timeout_seconds')
    try:
        return value is not None and float(value) > 0
    except (TypeError, ValueError):
        return False


CATEGORIES: Dict[NodeCategory, CategorySpec] = {
    NodeCategory.START: StartSpec(NodeCategory.START),
    NodeCategory.MESSAGE: MessageSpec(NodeCategory.MESSAGE),
    NodeCategory.QUESTION: QuestionSpec(NodeCategory.QUESTION),
    NodeCategory.CONDITION: ConditionSpec(NodeCategory.CONDITION),
    NodeCategory.ACTION: ActionSpec(NodeCategory.ACTION),
    NodeCategory.HANDOFF: HandoffSpec(NodeCategory.HANDOFF),
}

_missing = set(NodeCategory) - set(CATEGORIES)
if _missing:
    raise RuntimeError(f"Node categories without a spec: {sorted(c.value for c in _missing)}")


def get_spec(category: Any) -> CategorySpec:
    return CATEGORIES[NodeCategory.parse(category)]
