"""
Message form: the text sent to the contact.
"""

from nicegui import ui
from typing import Any, Callable, Dict, List

from flowcanvas.inspector.base import make_change_handler, section_label


def render_form(node, binder, references: Dict[str, List[Dict[str, Any]]], on_change: Callable[[], None]) -> None:
    section_label('Message')
    content = ui.textarea(value=node.payload.get('content', ''),
                          placeholder='Hello {{name}}, how can we help?').classes('w-full')
    content.props('outlined autogrow')
    content.on_value_change(make_change_handler(lambda v: binder.set_content(node.id, v), on_change))
    ui.label('Use {{variable}} to insert collected values.').classes('text-xs text-gray-500 italic')
