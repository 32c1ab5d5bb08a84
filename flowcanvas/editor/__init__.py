"""
Headless flow editor engine.

This package has no UI dependency:
- FlowGraph: node/edge store (networkx MultiDiGraph)
- Viewport: pan/zoom and coordinate conversion
- InteractionMachine: pointer gestures -> viewport/graph changes
- handles / routing: connection anchor geometry and Bezier edges
- document: flow (de)serialization including legacy records
- EditorSession: one editor instance tying it all together

Usage:
    from flowcanvas.editor import EditorSession, NodeCategory
"""

from flowcanvas.editor.categories import CATEGORIES, NodeCategory, get_spec
from flowcanvas.editor.document import DocumentError, normalize_document, to_document
from flowcanvas.editor.graph import Edge, FlowGraph, Node
from flowcanvas.editor.interaction import (
    ConnectingEdge,
    DraggingNode,
    Idle,
    InteractionMachine,
    Panning,
    PointerEvent,
)
from flowcanvas.editor.payloads import PayloadError
from flowcanvas.editor.routing import BezierPath, compute_path
from flowcanvas.editor.session import EditorSession
from flowcanvas.editor.viewport import CanvasRect, Viewport

__all__ = [
    'CATEGORIES',
    'NodeCategory',
    'get_spec',
    'DocumentError',
    'normalize_document',
    'to_document',
    'Edge',
    'FlowGraph',
    'Node',
    'ConnectingEdge',
    'DraggingNode',
    'Idle',
    'InteractionMachine',
    'Panning',
    'PointerEvent',
    'PayloadError',
    'BezierPath',
    'compute_path',
    'EditorSession',
    'CanvasRect',
    'Viewport',
]
