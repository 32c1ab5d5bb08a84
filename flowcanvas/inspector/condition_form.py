"""
Condition form: ordered branch rules. Each rule adds an output on the card;
the `else` output is always present.
"""

from nicegui import ui
from typing import Any, Callable, Dict, List

from flowcanvas.editor.payloads import RULE_OPERATORS
from flowcanvas.inspector.base import make_change_handler, section_label, select_options


def render_form(node, binder, references: Dict[str, List[Dict[str, Any]]], on_change: Callable[[], None]) -> None:
    section_label('Rules')
    rules_container = ui.column().classes('w-full gap-2')

    def structural_change():
        refresh_rules()
        on_change()

    def refresh_rules():
        """Rebuild the rule rows from the node's current payload."""
        rules_container.clear()
        with rules_container:
            rules = [r for r in binder.payload(node.id).get('rules') or []
                     if isinstance(r, dict) and r.get('id')]
            for position, rule in enumerate(rules, start=1):
                _render_rule(node, binder, rule, position, on_change, structural_change)
            if not rules:
                ui.label('No rules: every contact follows "else".').classes('text-gray-500 text-xs italic')

    def add_rule():
        binder.add_rule(node.id)
        structural_change()

    refresh_rules()
    ui.button('Add rule', icon='add', on_click=add_rule).props('flat dense size=sm')


def _render_rule(node, binder, rule: Dict[str, Any], position: int,
                 on_change: Callable[[], None], structural_change: Callable[[], None]) -> None:
    rule_id = rule['id']

    with ui.card().classes('w-full p-2 gap-1 bg-slate-800'):
        with ui.row().classes('w-full items-center justify-between'):
            ui.label(f'If #{position}').classes('text-xs font-bold text-amber-400')

            def remove(rid=rule_id):
                binder.remove_rule(node.id, rid)
                structural_change()

            ui.button(icon='delete', on_click=remove).props('flat dense size=sm color=negative')

        variable = ui.input('Variable', value=rule.get('variable', '')).classes('w-full')
        variable.props('outlined dense')
        variable.on_value_change(make_change_handler(
            lambda v, rid=rule_id: binder.update_rule(node.id, rid, variable=v), on_change))

        current_operator = rule.get('operator', 'equals')
        operator = ui.select(select_options(RULE_OPERATORS, current_operator),
                             value=current_operator).classes('w-full')
        operator.props('outlined dense')
        operator.on_value_change(make_change_handler(
            lambda v, rid=rule_id: binder.update_rule(node.id, rid, operator=v), on_change))

        value = ui.input('Value', value=rule.get('value', '')).classes('w-full')
        value.props('outlined dense')
        value.on_value_change(make_change_handler(
            lambda v, rid=rule_id: binder.update_rule(node.id, rid, value=v), on_change))
