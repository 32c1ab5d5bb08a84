"""
FlowCanvas - visual automation-flow designer.

Subpackages:
- editor: headless editor engine (graph model, viewport, interaction, geometry)
- inspector: payload binder and per-category NiceGUI forms
- canvas: NiceGUI canvas rendering and pointer wiring
- storage: flow persistence backends
"""

__version__ = "0.1.0"
