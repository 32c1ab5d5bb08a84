"""
Main inspector renderer.

Shows the common fields of the selected node, then hands over to the form
for its category. Category forms are auto-discovered from *_form.py files in
this folder; each exports render_form.
"""

import importlib
import json
import logging
import pkgutil
from pathlib import Path
from nicegui import ui
from typing import Any, Callable, Dict, List

from flowcanvas.editor.categories import get_spec
from flowcanvas.editor.graph import Node
from flowcanvas.inspector.base import make_change_handler, section_label
from flowcanvas.inspector.binder import InspectorBinder

logger = logging.getLogger(__name__)


def _discover_form_renderers() -> Dict[str, Callable]:
    """
    Auto-discover category forms from *_form.py files in this folder.

    Returns:
        Dict mapping category names to their render functions.
    """
    renderers = {}
    package_dir = Path(__file__).parent

    for module_info in pkgutil.iter_modules([str(package_dir)]):
        module_name = module_info.name
        if not module_name.endswith('_form'):
            continue

        # "question_form" -> "question"
        category = module_name.rsplit('_form', 1)[0]

        try:
            module = importlib.import_module(f'.{module_name}', package='flowcanvas.inspector')
            if hasattr(module, 'render_form'):
                renderers[category] = getattr(module, 'render_form')
        except Exception as e:
            logger.warning(f"Failed to load inspector form '{module_name}': {e}")

    return renderers


FORM_RENDERERS = _discover_form_renderers()


def render_inspector(
    node: Node,
    binder: InspectorBinder,
    references: Dict[str, List[Dict[str, Any]]],
    on_change: Callable[[], None],
) -> None:
    """
    Render the inspector for one node.

    Args:
        node: The selected node
        binder: Binder that applies edits to the graph
        references: Read-only lists keyed 'queues', 'tags', 'users'
        on_change: Called after every applied edit (redraws the node)
    """
    spec = get_spec(node.category)

    with ui.row().classes('w-full items-center gap-2'):
        ui.icon(spec.icon).style(f'color: {spec.color}')
        ui.label(spec.title).classes('text-lg font-bold')

    label_input = ui.input('Label', value=node.payload.get('label', '')).classes('w-full')
    label_input.props('outlined dense')
    label_input.on_value_change(make_change_handler(lambda v: binder.set_label(node.id, v), on_change))

    renderer = FORM_RENDERERS.get(node.category.value)
    if renderer:
        renderer(node=node, binder=binder, references=references, on_change=on_change)
    else:
        # Categories without a form only carry a label
        section_label('Data')
        ui.code(json.dumps(node.payload, indent=2, ensure_ascii=False), language='json').classes('w-full text-xs')
