"""
Inspector Module

Edits the payload of the selected node.
- InspectorBinder: applies edits to the graph (no UI dependency)
- render_inspector: NiceGUI panel; one *_form.py renderer per node category
"""

from .binder import InspectorBinder, action_fields, form_fields
from .renderer import render_inspector

__all__ = ['InspectorBinder', 'action_fields', 'form_fields', 'render_inspector']
