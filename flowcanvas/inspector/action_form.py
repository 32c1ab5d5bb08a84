"""
Action form.

An action node runs its actions in order. Each action has a type and a
parameter set whose shape depends on that type; switching the type resets
the parameters. Queue, agent and tag pickers are filled from the reference
lists fetched when the editor opens.
"""

from nicegui import ui
from typing import Any, Callable, Dict, List

from flowcanvas.editor.payloads import (
    ACTION_TYPES,
    CONVERSATION_STATUSES,
    DELAY_MAX_SECONDS,
    DELAY_MIN_SECONDS,
)
from flowcanvas.inspector.base import make_change_handler, reference_options, section_label, select_options
from flowcanvas.inspector.binder import action_fields

PARAM_LABELS = {
    'content': 'Message',
    'seconds': 'Seconds',
    'queueName': 'Queue',
    'userId': 'Agent',
    'status': 'Status',
    'tagId': 'Tag',
    'name': 'Name',
    'email': 'E-mail',
    'title': 'Title',
    'description': 'Description',
    'message': 'Message',
    'value': 'Value',
    'url': 'URL',
}


def render_form(node, binder, references: Dict[str, List[Dict[str, Any]]], on_change: Callable[[], None]) -> None:
    section_label('Actions')
    actions_container = ui.column().classes('w-full gap-2')
    type_options = {key: label for key, (label, _) in ACTION_TYPES.items()}

    def structural_change():
        refresh_actions()
        on_change()

    def refresh_actions():
        actions_container.clear()
        with actions_container:
            actions = binder.payload(node.id).get('actions') or []
            for index, action in enumerate(actions):
                _render_action(node, binder, index, action, type_options, references,
                               on_change, structural_change)
            if not actions:
                ui.label('No actions yet').classes('text-gray-500 text-xs italic')

    def add_action():
        binder.add_action(node.id)
        structural_change()

    refresh_actions()
    ui.button('Add action', icon='add', on_click=add_action).props('flat dense size=sm')


def _render_action(node, binder, index: int, action: Dict[str, Any], type_options: Dict[str, str],
                   references: Dict[str, List[Dict[str, Any]]],
                   on_change: Callable[[], None], structural_change: Callable[[], None]) -> None:
    with ui.card().classes('w-full p-2 gap-1 bg-slate-800'):
        with ui.row().classes('w-full items-center no-wrap gap-1'):
            type_select = ui.select(select_options(type_options, action.get('type')),
                                    value=action.get('type')).classes('flex-1')
            type_select.props('outlined dense')
            type_select.on_value_change(make_change_handler(
                lambda v, i=index: binder.set_action_type(node.id, i, v), structural_change))

            def remove(i=index):
                binder.remove_action(node.id, i)
                structural_change()

            ui.button(icon='delete', on_click=remove).props('flat dense size=sm color=negative')

        params = action.get('params') or {}
        for key in action_fields(action):
            _render_param(node, binder, index, key, params.get(key),
                          references, on_change)


def _render_param(node, binder, index: int, key: str, value: Any,
                  references: Dict[str, List[Dict[str, Any]]], on_change: Callable[[], None]) -> None:
    """Render the input for a single action parameter."""
    label = PARAM_LABELS.get(key, key)
    apply = make_change_handler(lambda v, i=index, k=key: binder.update_action_param(node.id, i, k, v), on_change)

    if key == 'seconds':
        field = ui.number(label, value=value, min=DELAY_MIN_SECONDS, max=DELAY_MAX_SECONDS, step=1, format='%d')
    elif key == 'status':
        statuses = {status: status for status in CONVERSATION_STATUSES}
        field = ui.select(select_options(statuses, value), value=value, label=label)
    elif key == 'queueName':
        field = ui.select(reference_options(references.get('queues'), key='name', current=value),
                          value=value or None, label=label, with_input=True)
    elif key == 'userId':
        field = ui.select(reference_options(references.get('users'), current=value), value=value or None,
                          label=label, with_input=True)
    elif key == 'tagId':
        field = ui.select(reference_options(references.get('tags'), current=value), value=value or None,
                          label=label, with_input=True)
    elif key in ('content', 'description', 'message'):
        field = ui.textarea(label, value=value or '').props('autogrow')
    else:
        field = ui.input(label, value=value or '')

    field.classes('w-full').props('outlined dense')
    field.on_value_change(apply)
