"""
Viewport Controller - pan/zoom state and screen <-> world conversion.

One Viewport exists per editor session and is reset when the page mounts.
Zooming is anchored at the canvas origin: pan is never adjusted by a zoom.
"""

from dataclasses import dataclass
from typing import Tuple

from flowcanvas.editor.constants import (
    GRID_SIZE,
    WHEEL_ZOOM_SENSITIVITY,
    ZOOM_MAX,
    ZOOM_MIN,
)

Point = Tuple[float, float]


def clamp_zoom(value: float) -> float:
    return max(ZOOM_MIN, min(ZOOM_MAX, value))


@dataclass(frozen=True)
class CanvasRect:
    """Bounding box of the canvas element in screen coordinates."""
    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def center(self) -> Point:
        return (self.left + self.width / 2, self.top + self.height / 2)

    @classmethod
    def from_dict(cls, data: dict) -> 'CanvasRect':
        """Build from a DOMRect-like dict (left/top/width/height, x/y accepted)."""
        if not data:
            return cls()
        return cls(
            left=float(data.get('left', data.get('x', 0.0)) or 0.0),
            top=float(data.get('top', data.get('y', 0.0)) or 0.0),
            width=float(data.get('width', 0.0) or 0.0),
            height=float(data.get('height', 0.0) or 0.0),
        )


@dataclass
class Viewport:
    """Pan offset (screen pixels) and zoom factor of the canvas."""
    pan_x: float = 0.0
    pan_y: float = 0.0
    zoom: float = 1.0

    def __post_init__(self):
        self.zoom = clamp_zoom(self.zoom)

    def screen_to_world(self, point: Point, canvas: CanvasRect) -> Point:
        sx, sy = point
        return (
            (sx - canvas.left - self.pan_x) / self.zoom,
            (sy - canvas.top - self.pan_y) / self.zoom,
        )

    def world_to_screen(self, point: Point, canvas: CanvasRect) -> Point:
        wx, wy = point
        return (
            wx * self.zoom + self.pan_x + canvas.left,
            wy * self.zoom + self.pan_y + canvas.top,
        )

    def pan(self, dx: float, dy: float) -> None:
        """Shift the view by a screen delta. The canvas is unbounded."""
        self.pan_x += dx
        self.pan_y += dy

    def zoom_by(self, delta: float) -> float:
        """Add `delta` to the zoom factor, clamped. Returns the new zoom."""
        self.zoom = clamp_zoom(self.zoom + delta)
        return self.zoom

    def set_zoom(self, value: float) -> float:
        self.zoom = clamp_zoom(value)
        return self.zoom

    def wheel(self, delta_x: float, delta_y: float, zoom_modifier: bool) -> None:
        """
        Apply a wheel event.

        With ctrl/meta held the wheel zooms, otherwise it pans the view.
        """
        if zoom_modifier:
            self.zoom_by(-delta_y * WHEEL_ZOOM_SENSITIVITY)
        else:
            self.pan(-delta_x, -delta_y)

    def visual_center(self, canvas: CanvasRect) -> Point:
        """World point currently under the center of the canvas."""
        return self.screen_to_world(canvas.center, canvas)

    def reset(self) -> None:
        self.pan_x = 0.0
        self.pan_y = 0.0
        self.zoom = 1.0

    # --- CSS helpers for the world layer ---

    def css_transform(self) -> str:
        return f'translate({self.pan_x}px, {self.pan_y}px) scale({self.zoom})'

    def grid_style(self) -> str:
        size = GRID_SIZE * self.zoom
        return (
            f'background-size: {size}px {size}px; '
            f'background-position: {self.pan_x}px {self.pan_y}px;'
        )
