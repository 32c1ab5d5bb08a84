"""
Question form.

Handles the prompt, the variable the answer is stored in, answer validation
(with mode-specific fields) and the retry/timeout settings that drive the
invalid and timeout outputs.
"""

from nicegui import ui
from typing import Any, Callable, Dict, List

from flowcanvas.editor.payloads import VALIDATION_MODES
from flowcanvas.inspector.base import make_change_handler, section_label, select_options


def render_form(node, binder, references: Dict[str, List[Dict[str, Any]]], on_change: Callable[[], None]) -> None:
    """
    Render the question fields.

    Args:
        node: Selected question node
        binder: InspectorBinder used for every edit
        references: Unused by questions
        on_change: Redraw callback (the timeout field adds/removes a handle)
    """
    section_label('Question')
    question = ui.textarea(value=node.payload.get('question', ''), placeholder='What is your name?').classes('w-full')
    question.props('outlined autogrow')
    question.on_value_change(make_change_handler(lambda v: binder.set_question(node.id, v), on_change))

    variable = ui.input('Save answer as', value=node.payload.get('variable', ''), placeholder='name').classes('w-full')
    variable.props('outlined dense prefix="{{" suffix="}}"')
    variable.on_value_change(make_change_handler(lambda v: binder.set_variable(node.id, v), on_change))

    section_label('Validation')

    def refresh_mode_fields():
        """Rebuild the fields that depend on the validation mode."""
        mode_fields.clear()
        mode = node.payload.get('validation_type', 'any')
        with mode_fields:
            if mode == 'options':
                options = ui.input('Accepted options (comma separated)',
                                   value=', '.join(node.payload.get('validation_options') or [])).classes('w-full')
                options.props('outlined dense')
                options.on_value_change(make_change_handler(
                    lambda v: binder.set_validation_options(node.id, v), on_change))
            elif mode == 'regex':
                pattern = ui.input('Pattern', value=node.payload.get('validation_regex', '')).classes('w-full')
                pattern.props('outlined dense')
                pattern.on_value_change(make_change_handler(
                    lambda v: binder.set_validation_regex(node.id, v), on_change))

    def on_mode_change():
        refresh_mode_fields()
        on_change()

    mode = node.payload.get('validation_type', 'any')
    mode_select = ui.select(select_options(VALIDATION_MODES, mode), value=mode, label='Accept').classes('w-full')
    mode_select.props('outlined dense')
    mode_select.on_value_change(make_change_handler(lambda v: binder.set_validation_mode(node.id, v), on_mode_change))

    mode_fields = ui.column().classes('w-full gap-2')
    refresh_mode_fields()

    error_message = ui.input('Invalid answer reply', value=node.payload.get('error_message', '')).classes('w-full')
    error_message.props('outlined dense')
    error_message.on_value_change(make_change_handler(lambda v: binder.set_error_message(node.id, v), on_change))

    with ui.row().classes('w-full gap-2 no-wrap'):
        attempts = ui.number('Max attempts', value=node.payload.get('max_attempts', 3), min=1, step=1, format='%d')
        attempts.props('outlined dense').classes('flex-1')
        attempts.on_value_change(make_change_handler(lambda v: binder.set_max_attempts(node.id, v), on_change))

        timeout = ui.number('Timeout (s)', value=node.payload.get('timeout_seconds'), min=0, step=1, format='%d')
        timeout.props('outlined dense clearable').classes('flex-1')
        timeout.tooltip('Leave empty to disable the timeout output')
        timeout.on_value_change(make_change_handler(lambda v: binder.set_timeout_seconds(node.id, v), on_change))
