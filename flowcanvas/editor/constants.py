"""
Shared layout constants for the flow editor.

These values are used both for drawing (canvas view, CSS) and for
hit-testing (handles, interaction). Keep them in sync!
All sizes are in world units (pixels at zoom 1.0).
"""

# Node card
NODE_WIDTH = 250
HEADER_HEIGHT = 40
NODE_MIN_HEIGHT = 100

# Connection handles sit this far outside the left/right card edges
HANDLE_OUTSET = 10
HANDLE_HIT_RADIUS = 10

# Single-handle anchor row (input + default output)
DEFAULT_ANCHOR_Y = HEADER_HEIGHT // 2 + 20

# Multi-handle nodes (condition rules, question outcomes)
BRANCH_HEADER_OFFSET = 72
BRANCH_ROW_HEIGHT = 32

# Viewport
ZOOM_MIN = 0.2
ZOOM_MAX = 3.0
ZOOM_STEP = 0.1
WHEEL_ZOOM_SENSITIVITY = 0.001
GRID_SIZE = 20

# New nodes are centered on the view: offset from the visual center
NEW_NODE_OFFSET = (-NODE_WIDTH / 2, -50)

# Duplicates land down-right of the original
DUPLICATE_OFFSET = (50, 50)

# Minimum horizontal control-point distance for edge curves
MIN_CONTROL_OFFSET = 50

# Clicking within this distance of a curve selects the edge
EDGE_HIT_DISTANCE = 6
EDGE_HIT_SAMPLES = 24

# Pointer buttons
BUTTON_LEFT = 0
BUTTON_MIDDLE = 1
