"""End-to-end tests for fusion with curve preservation.

These run the real boolean engine over small boards and check that
circles and arcs come back out of the fused outline as analytic curves.
"""

import math

import pytest

from tracecam.config import FusionConfig
from tracecam.core.fusion import GeometryProcessor
from tracecam.domain import (
    Circle,
    Obround,
    Path,
    Point,
    Polarity,
    PrimitiveProperties,
    Rectangle,
)

CLEAR = PrimitiveProperties(polarity=Polarity.CLEAR)


@pytest.fixture
def processor() -> GeometryProcessor:
    return GeometryProcessor(FusionConfig())


class TestCircleRecovery:
    """Test circles survive fusion."""

    def test_circle_union_with_itself(self, processor):
        """Test a circle fused with a copy of itself comes back as that circle."""
        circle = Circle(Point(3, 4), 2.5)

        result = processor.fuse([circle, Circle(Point(3, 4), 2.5)])

        assert len(result) == 1
        fused = result[0]
        assert isinstance(fused, Circle)
        assert fused.center.x == pytest.approx(3, abs=1e-3)
        assert fused.center.y == pytest.approx(4, abs=1e-3)
        assert fused.radius == pytest.approx(2.5, abs=1e-3)
        assert fused.properties.reconstructed
        assert fused.properties.coverage == pytest.approx(1.0, abs=0.01)
        assert processor.stats()["reconstruction_full_circles"] == 1

    def test_circle_with_quadrant_removed(self, processor):
        """Test subtracting a quadrant leaves a 270 degree arc."""
        board = [
            Circle(Point(0, 0), 10.0),
            Rectangle(Point(0, 0), 12, 12, CLEAR),
        ]

        result = processor.fuse(board)

        assert len(result) == 1
        fused = result[0]
        assert isinstance(fused, Path)
        arcs = fused.contours[0].arc_segments
        assert len(arcs) == 1
        arc = arcs[0]
        assert abs(arc.sweep) == pytest.approx(1.5 * math.pi, abs=0.01)
        assert arc.radius == pytest.approx(10.0)
        assert arc.coverage == pytest.approx(0.75, abs=0.03)
        assert fused.area() == pytest.approx(0.75 * math.pi * 100, rel=0.01)

    def test_overlapping_circles_keep_both_arcs(self, processor):
        """Test each circle keeps its own arc where the outlines meet."""
        board = [Circle(Point(0, 0), 5.0), Circle(Point(6, 0), 5.0)]

        result = processor.fuse(board)

        assert len(result) == 1
        arcs = result[0].contours[0].arc_segments
        assert sorted(arc.curve_id for arc in arcs) == [1, 2]
        centers = {arc.curve_id: arc.center.to_tuple() for arc in arcs}
        assert centers[1] == pytest.approx((0.0, 0.0))
        assert centers[2] == pytest.approx((6.0, 0.0))

    def test_hole_in_pad(self, processor):
        """Test a clear drill hole inside a pad becomes a full-circle hole."""
        board = [Rectangle(Point(0, 0), 4, 4), Circle(Point(2, 2), 0.5, CLEAR)]

        result = processor.fuse(board)

        assert len(result) == 1
        hole = [c for c in result[0].contours if c.is_hole]
        assert len(hole) == 1
        assert hole[0].arc_segments[0].is_full_circle
        assert hole[0].arc_segments[0].clockwise


class TestTagSurvival:
    """Test curve tags through the boolean engine."""

    def test_tags_match_source_circles(self, processor):
        """Test every tagged vertex lies on the circle its tag names."""
        board = [Circle(Point(0, 0), 5.0), Circle(Point(6, 0), 5.0)]
        centers = {1: (0.0, 0.0), 2: (6.0, 0.0)}

        result = processor.fuse(board, enable_arc_reconstruction=False)

        tagged = [p for p in result[0].contours[0].points if p.curve_id]
        assert tagged
        for p in tagged:
            cx, cy = centers[p.curve_id]
            assert math.hypot(p.x - cx, p.y - cy) == pytest.approx(5.0, abs=5e-3)

    def test_intersection_takes_lower_curve(self, processor):
        """Test vertices where both outlines cross carry the lower curve id."""
        board = [Circle(Point(0, 0), 5.0), Circle(Point(6, 0), 5.0)]

        result = processor.fuse(board, enable_arc_reconstruction=False)

        # The outlines cross at x = 3.
        crossings = [p for p in result[0].contours[0].points if p.x == pytest.approx(3.0, abs=1e-3)]
        assert crossings
        assert all(p.curve_id == 1 for p in crossings)

    def test_difference_keeps_circle_tags(self, processor):
        """Test a clear notch leaves every vertex on the circle tagged with it."""
        board = [
            Circle(Point(0, 0), 10.0),
            Rectangle(Point(0, -3), 12, 6, CLEAR),
        ]

        result = processor.fuse(board, enable_arc_reconstruction=False)

        assert len(result) == 1
        points = result[0].contours[0].points
        on_circle = [p for p in points if math.hypot(p.x, p.y) == pytest.approx(10.0, abs=5e-3)]
        # The notch meets the circle where y = +/-3.
        crossings = [p for p in on_circle if abs(p.y) == pytest.approx(3.0, abs=1e-3)]
        assert len(crossings) == 2
        assert all(p.curve_id == 1 for p in on_circle)

        corners = [p for p in points if abs(p.x) < 1e-3 and abs(p.y) < 5]
        assert sorted(p.y for p in corners) == pytest.approx([-3.0, 3.0], abs=1e-3)
        assert all(p.curve_id == 0 for p in corners)


class TestWinding:
    """Test winding direction of fused output."""

    def test_mixed_board(self, processor):
        """Test outer rings are counter-clockwise and holes clockwise."""
        board = [
            Rectangle(Point(0, 0), 10, 10),
            Obround(Point(20, 0), 6, 2),
            Path.from_points(
                [Point(0, 20), Point(10, 20), Point(10, 25)],
                closed=False,
                properties=PrimitiveProperties(stroke_width=0.5),
            ),
            Circle(Point(5, 5), 1.0, CLEAR),
            Rectangle(Point(2, 2), 1, 1, CLEAR),
        ]

        result = processor.fuse(board, enable_arc_reconstruction=False)

        assert len(result) == 3
        holes = 0
        for path in result:
            for contour in path.contours:
                if contour.is_hole:
                    holes += 1
                    assert contour.is_clockwise()
                else:
                    assert not contour.is_clockwise()
        assert holes == 2


class TestNoOp:
    """Test fusion leaves simple input unchanged."""

    def test_single_rectangle(self, processor):
        result = processor.fuse([Rectangle(Point(1, 1), 4, 2)])

        assert len(result) == 1
        path = result[0]
        assert isinstance(path, Path)
        assert len(path.contours) == 1
        assert len(path.points) == 4
        assert path.area() == pytest.approx(8.0)
        assert path.bounding_box() == pytest.approx((1, 1, 5, 3))
        assert not path.has_arcs
