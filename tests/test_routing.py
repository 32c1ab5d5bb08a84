"""
Tests for the Edge Router.
"""

import pytest

from flowcanvas.editor.routing import compute_path


class TestComputePath:

    def test_control_points_half_horizontal_distance(self):
        path = compute_path((0, 0), (200, 100))
        assert path.control1 == (100, 0)
        assert path.control2 == (100, 100)

    def test_minimum_offset_for_close_nodes(self):
        path = compute_path((0, 0), (20, 0), min_offset=50)
        assert path.control1 == (50, 0)
        assert path.control2 == (-30, 0)

    def test_backward_edge_loops_outward(self):
        path = compute_path((300, 0), (0, 50))
        # Leaves to the right of the source, enters from the left of the target
        assert path.control1[0] > 300
        assert path.control2[0] < 0

    def test_svg_path(self):
        assert compute_path((0, 0), (200, 100)).to_svg() == 'M 0 0 C 100 0, 100 100, 200 100'

    def test_curve_endpoints(self):
        path = compute_path((10, 20), (300, 400))
        assert path.point_at(0) == pytest.approx((10, 20))
        assert path.point_at(1) == pytest.approx((300, 400))
