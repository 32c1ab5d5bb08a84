"""
NiceGUI canvas for the flow editor.

- CanvasView: DOM elements for nodes, edges and the connection preview
- setup_canvas_handlers: pointer/wheel/keyboard wiring

Usage:
    from flowcanvas.canvas import CanvasView, setup_canvas_handlers
"""

from flowcanvas.canvas.view import CanvasView
from flowcanvas.canvas.handlers import setup_canvas_handlers

__all__ = [
    'CanvasView',
    'setup_canvas_handlers',
]
