"""
Edge Router - horizontal cubic Bezier curves between two anchors.

The same routine draws committed edges and the live connection preview.
"""

from dataclasses import dataclass
from typing import Tuple

from flowcanvas.editor.constants import MIN_CONTROL_OFFSET

Point = Tuple[float, float]


@dataclass(frozen=True)
class BezierPath:
    start: Point
    control1: Point
    control2: Point
    end: Point

    def to_svg(self) -> str:
        (sx, sy), (c1x, c1y), (c2x, c2y), (tx, ty) = self.start, self.control1, self.control2, self.end
        return f'M {sx:g} {sy:g} C {c1x:g} {c1y:g}, {c2x:g} {c2y:g}, {tx:g} {ty:g}'

    def point_at(self, t: float) -> Point:
        """Evaluate the curve at parameter t in [0, 1]."""
        u = 1 - t
        a, b, c, d = u ** 3, 3 * u * u * t, 3 * u * t * t, t ** 3
        return (
            a * self.start[0] + b * self.control1[0] + c * self.control2[0] + d * self.end[0],
            a * self.start[1] + b * self.control1[1] + c * self.control2[1] + d * self.end[1],
        )


def control_offset(source: Point, target: Point, min_offset: float = MIN_CONTROL_OFFSET) -> float:
    return max(abs(target[0] - source[0]) / 2, min_offset)


def compute_path(source: Point, target: Point, min_offset: float = MIN_CONTROL_OFFSET) -> BezierPath:
    """
    Route an edge from an output anchor to an input anchor.

    Control points leave the source to the right and enter the target from
    the left, so backward edges still loop around instead of cutting
    through the cards.
    """
    d = control_offset(source, target, min_offset)
    return BezierPath(
        start=source,
        control1=(source[0] + d, source[1]),
        control2=(target[0] - d, target[1]),
        end=target,
    )
