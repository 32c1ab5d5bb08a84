"""
Base utilities for inspector form rendering.
"""

import logging
from nicegui import ui
from typing import Any, Callable, Dict, List

from flowcanvas.editor.payloads import PayloadError

logger = logging.getLogger(__name__)


def section_label(text: str):
    ui.label(text.upper()).classes('text-xs font-bold text-gray-400 mt-3')


def make_change_handler(apply: Callable[[Any], Any], on_change: Callable[[], None]) -> Callable:
    """
    Create a value change handler that writes through the binder.

    Args:
        apply: Binder call taking the new value
        on_change: Callback to refresh the node on the canvas

    Returns:
        Event handler function
    """
    def handler(e):
        try:
            apply(e.value)
        except PayloadError as err:
            logger.debug(f"Rejected inspector edit: {err}")
            ui.notify(str(err), type='warning', position='bottom')
            return
        on_change()
    return handler


def select_options(options: Dict[str, str], current: Any) -> Dict[str, str]:
    """Select options that also contain the stored value, so a select never rejects it."""
    if current is None or current in options:
        return dict(options)
    return {**options, current: str(current)}


def reference_options(items: List[Dict[str, Any]], key: str = 'id', current: Any = None) -> Dict[str, str]:
    """
    Map a reference list (queues, tags, users) to select options {value: name}.

    A stored value missing from the list (deleted queue, lists unavailable)
    is kept as its own option so the select can still show it.
    """
    options = {str(item.get(key)): item.get('name') or str(item.get(key)) for item in items or []}
    if current and str(current) not in options:
        options[str(current)] = str(current)
    return options
