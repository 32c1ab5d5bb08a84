"""
Main NiceGUI application for FlowCanvas.

Serves the flow editor: a toolbar, the pan/zoom canvas and an inspector
panel for the selected node. Flows are loaded, saved and published through
the configured FlowStore; those calls run off the UI loop via run.io_bound
and report their outcome with non-blocking notifications.
"""

import logging
import sys

from nicegui import ui, run

from dotenv import load_dotenv
load_dotenv()

from flowcanvas.config import get_settings
from flowcanvas.paths import ensure_dir
from flowcanvas.canvas import CanvasView, setup_canvas_handlers
from flowcanvas.editor import CATEGORIES, CanvasRect, DocumentError, EditorSession
from flowcanvas.inspector import InspectorBinder, render_inspector
from flowcanvas.storage import PersistenceError, create_backend

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, str(settings['log_level']).upper(), logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger('flowcanvas.app')

if settings['storage_backend'] == 'file':
    ensure_dir(settings['data_dir'])

DEFAULT_FLOW_ID = 'default'

# Global Styles
ui.add_head_html('''
    <style>
        ::-webkit-scrollbar {
            width: 8px;
            height: 8px;
        }
        ::-webkit-scrollbar-thumb {
            background: #475569;
            border-radius: 9999px;
        }
        body {
            overscroll-behavior: none;
        }
    </style>
''', shared=True)


@ui.page('/')
def index():
    ui.navigate.to(f'/flows/{DEFAULT_FLOW_ID}')


@ui.page('/flows/{flow_id}')
def flow_page(flow_id: str):
    ui.dark_mode().enable()
    ui.query('.nicegui-content').classes('p-0')

    # A fresh session per page mount: viewport starts at (0, 0, 1.0)
    session = EditorSession(flow_id)
    binder = InspectorBinder(session.graph)
    store = create_backend(settings)
    state = {
        'references': {'queues': [], 'tags': [], 'users': []},
        'busy': False,
    }

    view = CanvasView(session)

    # --- Inspector ---

    def refresh_inspector():
        """Show the inspector for the selected node, or hide it."""
        state['details_container'].clear()
        node = session.selected_node
        state['context_card'].set_visibility(node is not None)
        if node is None:
            return
        with state['details_container']:
            render_inspector(
                node=node,
                binder=binder,
                references=state['references'],
                on_change=lambda: view.refresh_node(node.id),
            )

    # --- Commands ---

    async def current_canvas_rect() -> CanvasRect:
        """Ask the browser for the canvas box; fall back to the last one seen."""
        try:
            rect = await ui.run_javascript(
                f'const r = document.getElementById("c{view.canvas.id}").getBoundingClientRect();'
                'return {left: r.left, top: r.top, width: r.width, height: r.height};'
            )
        except TimeoutError:
            return session.canvas
        return CanvasRect.from_dict(rect or {})

    async def add_node(category):
        node = session.add_node(category, await current_canvas_rect())
        view.refresh_node(node.id)
        handlers['selection_changed']()

    def duplicate_selected():
        node = session.duplicate_selected()
        if node is None:
            ui.notify('Select a node to duplicate', position='bottom')
            return
        view.refresh_node(node.id)
        handlers['selection_changed']()

    def remove_orphaned():
        removed = handlers['remove_orphaned']()
        if removed:
            ui.notify(f'Removed {len(removed)} broken connection(s)', type='positive', position='bottom')
        else:
            ui.notify('No broken connections', position='bottom')

    def zoom(step_in: bool):
        if step_in:
            session.zoom_in()
        else:
            session.zoom_out()
        view.update_viewport()

    def reset_view():
        session.reset_view()
        view.update_viewport()

    # --- Persistence ---

    async def load_flow():
        try:
            raw = await run.io_bound(store.load_flow, flow_id)
            session.load(raw)
        except (PersistenceError, DocumentError) as e:
            logger.error(f"Failed to load flow {flow_id}: {e}")
            ui.notify(f'Could not load flow: {e}', type='negative', position='bottom')
            return
        view.render_all()
        refresh_inspector()

    async def load_references():
        fetchers = {
            'queues': store.list_queues,
            'tags': store.list_tags,
            'users': store.list_users,
        }
        for key, fetch in fetchers.items():
            try:
                state['references'][key] = await run.io_bound(fetch)
            except PersistenceError as e:
                logger.warning(f"Could not fetch {key}: {e}")

    async def save_flow() -> bool:
        if state['busy']:
            return False
        state['busy'] = True
        try:
            await run.io_bound(store.save_flow, flow_id, session.to_document())
        except PersistenceError as e:
            logger.error(f"Failed to save flow {flow_id}: {e}")
            ui.notify(f'Save failed: {e}', type='negative', position='bottom')
            return False
        finally:
            state['busy'] = False
        ui.notify('Flow saved', type='positive', position='bottom')
        return True

    async def publish_flow():
        if not await save_flow():
            return
        try:
            await run.io_bound(store.publish_flow, flow_id)
        except PersistenceError as e:
            logger.error(f"Failed to publish flow {flow_id}: {e}")
            ui.notify(f'Publish failed: {e}', type='negative', position='bottom')
            return
        ui.notify('Flow published', type='positive', position='bottom')

    # --- Layout ---

    with ui.column().classes('w-full h-screen gap-0'):
        # 1. Toolbar
        with ui.row().classes('w-full items-center gap-1 px-4 py-2 bg-slate-900 border-b border-slate-700'):
            ui.label(f'Flow: {flow_id}').classes('text-sm font-bold text-gray-300 mr-4')

            for spec in CATEGORIES.values():
                def make_handler(category):
                    return lambda: add_node(category)
                ui.button(spec.title, icon=spec.icon, on_click=make_handler(spec.category)) \
                    .props('flat dense no-caps size=sm').style(f'color: {spec.color}')

            ui.separator().props('vertical')
            ui.button(icon='content_copy', on_click=duplicate_selected).props('flat dense size=sm').tooltip('Duplicate')
            ui.button(icon='delete', on_click=lambda: handlers['delete_selected']()) \
                .props('flat dense size=sm color=negative').tooltip('Delete node or connection (Del)')
            ui.button(icon='link_off', on_click=remove_orphaned).props('flat dense size=sm') \
                .tooltip('Remove broken connections')

            ui.separator().props('vertical')
            ui.button(icon='remove', on_click=lambda: zoom(False)).props('flat dense size=sm').tooltip('Zoom out')
            ui.button(icon='add', on_click=lambda: zoom(True)).props('flat dense size=sm').tooltip('Zoom in')
            ui.button(icon='center_focus_strong', on_click=reset_view).props('flat dense size=sm').tooltip('Reset view')

            ui.space()
            ui.button('Save', icon='save', on_click=save_flow).props('dense no-caps')
            ui.button('Publish', icon='publish', on_click=publish_flow).props('dense no-caps color=positive')

        # 2. Canvas
        with ui.element('div').classes('w-full flex-1 relative'):
            view.build()

    handlers = setup_canvas_handlers(
        session,
        view,
        on_selection_change=refresh_inspector,
    )

    # 3. Context Panel, hidden until a node is selected
    state['context_card'] = ui.card().classes('fixed right-6 top-20 w-96 max-h-[85vh] overflow-y-auto z-20 shadow-2xl flex flex-col gap-3 bg-slate-900/95 border-t-4 border-primary border-x border-b border-slate-700')
    state['context_card'].set_visibility(False)
    with state['context_card']:
        state['details_container'] = ui.column().classes('w-full gap-2')

    async def initial_load():
        await load_references()
        await load_flow()

    ui.timer(0.1, initial_load, once=True)


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='FlowCanvas',
        port=int(settings['port']),
        reload=not getattr(sys, 'frozen', False),
    )
