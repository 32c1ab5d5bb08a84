"""
Canvas Handlers - browser pointer/keyboard events for the flow canvas.

Pointer events are forwarded to the session's InteractionMachine with the
canvas bounding box attached; the machine reports what changed and the view
redraws only that.
"""

import logging
from nicegui import ui
from typing import Callable, Optional

from flowcanvas.canvas.view import CanvasView
from flowcanvas.editor.interaction import Change, PointerEvent
from flowcanvas.editor.session import EditorSession

logger = logging.getLogger(__name__)

# Runs in the browser: forwards the fields the machine needs plus the canvas rect
POINTER_JS = '''(e) => {
    if (e.button === 1) e.preventDefault();
    const r = e.currentTarget.getBoundingClientRect();
    emit({clientX: e.clientX, clientY: e.clientY, button: e.button, shiftKey: e.shiftKey,
          rect: {left: r.left, top: r.top, width: r.width, height: r.height}});
}'''

WHEEL_JS = '''(e) => {
    e.preventDefault();
    emit({deltaX: e.deltaX, deltaY: e.deltaY, zoom: e.ctrlKey || e.metaKey});
}'''

# Pointer moves are throttled to roughly one per animation frame
MOVE_THROTTLE = 0.016


def setup_canvas_handlers(
    session: EditorSession,
    view: CanvasView,
    on_selection_change: Optional[Callable[[], None]] = None,
    on_graph_change: Optional[Callable[[], None]] = None,
):
    """
    Wire canvas events to the editor session.

    Args:
        session: EditorSession being edited
        view: CanvasView drawing that session (build() already called)
        on_selection_change: Called when the selected node changes (inspector refresh)
        on_graph_change: Called after a structural change (edge created or removed, node deleted)

    Returns:
        Dict with handler functions, for toolbar buttons that need them
    """
    selection = {'previous': session.selected_id, 'previous_edge': session.selected_edge_id}

    def on_change(change: Change):
        """Map a machine change to the smallest view update."""
        if change.kind == 'viewport':
            view.update_viewport()
        elif change.kind == 'node_moved':
            view.move_node(change.node_id)
        elif change.kind == 'preview':
            view.update_preview()
        elif change.kind == 'edge_added':
            view.add_edge(change.edge)
            if on_graph_change:
                on_graph_change()
        elif change.kind == 'selection':
            selection_changed()
        elif change.kind == 'state':
            view.update_preview()

    def selection_changed():
        previous, previous_edge = selection['previous'], selection['previous_edge']
        if previous == session.selected_id and previous_edge == session.selected_edge_id:
            return
        view.update_selection(previous, previous_edge)
        selection['previous'] = session.selected_id
        selection['previous_edge'] = session.selected_edge_id
        if previous != session.selected_id and on_selection_change:
            on_selection_change()

    session.machine.set_on_state_change(on_change)

    def pointer_event(e) -> PointerEvent:
        event = PointerEvent.from_dict(e.args or {})
        session.canvas = event.canvas
        return event

    def handle_pointer_down(e):
        session.machine.pointer_down(pointer_event(e))

    def handle_pointer_move(e):
        if session.machine.is_idle:
            return
        session.machine.pointer_move(pointer_event(e))

    def handle_pointer_up(e):
        session.machine.pointer_up(pointer_event(e))

    def handle_pointer_leave(e):
        session.machine.pointer_leave()

    def handle_wheel(e):
        args = e.args or {}
        session.machine.wheel(float(args.get('deltaX', 0) or 0), float(args.get('deltaY', 0) or 0),
                              bool(args.get('zoom')))

    def delete_selected():
        """Delete the selected node with its edges, or the selected edge alone."""
        node_id = session.selected_id
        if not session.delete_selected():
            return
        if node_id:
            view.remove_node(node_id)
        else:
            view.prune_edges()
        selection_changed()
        if on_graph_change:
            on_graph_change()

    def remove_orphaned():
        removed = session.remove_orphaned_edges()
        if removed:
            view.prune_edges()
            selection_changed()
            if on_graph_change:
                on_graph_change()
        return removed

    def handle_keyboard(e):
        if not e.action.keydown:
            return
        key = e.key.name
        if key in ('Delete', 'Backspace'):
            delete_selected()
        elif key == 'Escape':
            session.handle_key(key)
            view.update_preview()
            selection_changed()

    view.canvas.on('pointerdown', handle_pointer_down, js_handler=POINTER_JS)
    view.canvas.on('pointermove', handle_pointer_move, js_handler=POINTER_JS, throttle=MOVE_THROTTLE)
    view.canvas.on('pointerup', handle_pointer_up, js_handler=POINTER_JS)
    view.canvas.on('pointerleave', handle_pointer_leave)
    view.canvas.on('wheel', handle_wheel, js_handler=WHEEL_JS)
    ui.keyboard(on_key=handle_keyboard)

    return {
        'delete_selected': delete_selected,
        'selection_changed': selection_changed,
        'remove_orphaned': remove_orphaned,
    }
