"""Unit tests for the pyclipper boolean engine adapter."""

import pyclipper
import pytest

from tracecam.config import FillRule, FusionConfig
from tracecam.core.clipper import ClipperEngine, prefer_lower_curve
from tracecam.core.registry import CurveRegistry
from tracecam.core.standardizer import PrimitiveStandardizer
from tracecam.domain import Circle, Contour, Point, pack_tag
from tracecam.exceptions import OffsetError


def square(x: float, y: float, size: float, clockwise: bool = False) -> Contour:
    points = [Point(x, y), Point(x + size, y), Point(x + size, y + size), Point(x, y + size)]
    if clockwise:
        points.reverse()
    return Contour(points=points)


@pytest.fixture
def engine() -> ClipperEngine:
    return ClipperEngine(FusionConfig())


class TestPreferLowerCurve:
    """Tests for the default intersection callback."""

    def test_lower_id_wins(self):
        assert prefer_lower_curve(pack_tag(2, 5), pack_tag(1, 9)) == pack_tag(1, 9)
        assert prefer_lower_curve(pack_tag(1, 5), pack_tag(3, 0)) == pack_tag(1, 5)

    def test_untagged_loses(self):
        assert prefer_lower_curve(0, pack_tag(4, 1)) == pack_tag(4, 1)
        assert prefer_lower_curve(pack_tag(4, 1), 0) == pack_tag(4, 1)

    def test_both_untagged(self):
        assert prefer_lower_curve(0, 0) == 0


class TestConversion:
    """Tests for fixed-point conversion."""

    def test_round_trip(self, engine):
        """Test coordinates are scaled by 10000 units per mm."""
        path = engine.to_int([Point(1.23456, -0.5)])
        assert path == [(12346, -5000)]
        assert engine.to_points(path)[0].to_tuple() == (1.2346, -0.5)


class TestBooleans:
    """Tests for union and difference."""

    def test_union_of_overlapping_squares(self, engine):
        """Test overlapping squares merge into one ring."""
        rings = engine.union([square(0, 0, 10), square(5, 5, 10)])
        assert len(rings) == 1
        assert abs(rings[0].signed_area()) == pytest.approx(175.0)

    def test_union_of_disjoint_squares(self, engine):
        rings = engine.union([square(0, 0, 1), square(5, 5, 1)])
        assert len(rings) == 2
        assert all(r.nesting_level == 0 and r.parent_id is None for r in rings)

    def test_difference_makes_hole(self, engine):
        """Test subtracting an inner square yields an outer ring and a hole."""
        rings = engine.difference([square(0, 0, 10)], [square(4, 4, 2, clockwise=True)])
        assert len(rings) == 2
        outer = next(r for r in rings if not r.is_hole)
        hole = next(r for r in rings if r.is_hole)
        assert hole.parent_id == rings.index(outer)
        assert hole.nesting_level == 1
        assert abs(outer.signed_area()) - abs(hole.signed_area()) == pytest.approx(96.0)

    def test_difference_removes_everything(self, engine):
        assert engine.difference([square(2, 2, 1)], [square(0, 0, 10)]) == []

    def test_empty_input(self, engine):
        assert engine.union([]) == []

    def test_degenerate_rings_skipped(self, engine):
        """Test rings with fewer than three points are ignored."""
        sliver = Contour(points=[Point(0, 0), Point(1, 1)])
        rings = engine.union([sliver, square(0, 0, 1)])
        assert len(rings) == 1

    def test_union_fill_rule(self, engine):
        """Test nested same-direction squares: one ring under nonzero, a hole under even-odd."""
        nested = [square(0, 0, 10), square(3, 3, 4)]

        assert len(engine.union(nested)) == 1

        rings = engine.union(nested, fill_rule=FillRule.EVENODD)
        assert len(rings) == 2
        assert [r.is_hole for r in rings] == [False, True]

    def test_fill_rule_from_config(self):
        engine = ClipperEngine(FusionConfig(fill_rule=FillRule.EVENODD))
        rings = engine.union([square(0, 0, 10), square(3, 3, 4)])
        assert len(rings) == 2

    def test_difference_fill_rule(self, engine):
        """Test the fill rule also applies to the clip polygons."""
        clips = [square(2, 2, 6), square(4, 4, 2)]

        assert engine.difference([square(0, 0, 10)], clips, fill_rule=FillRule.NONZERO)[1].is_hole
        rings = engine.difference([square(0, 0, 10)], clips, fill_rule=FillRule.EVENODD)
        assert len(rings) == 3
        assert abs(sum(r.signed_area() for r in rings)) == pytest.approx(100 - 36 + 4)

    def test_preserve_collinear(self, engine):
        """Test the collinear override drops a midpoint the default keeps."""
        ring = Contour(points=[Point(0, 0), Point(5, 0), Point(10, 0), Point(10, 10), Point(0, 10)])

        assert len(engine.union([ring])[0].points) == 5
        assert len(engine.union([ring], preserve_collinear=False)[0].points) == 4


class TestTagPreservation:
    """Tests for curve tags surviving boolean operations."""

    def test_input_vertices_keep_tags(self, engine):
        """Test untouched input vertices come back with their tags."""
        registry = CurveRegistry()
        path = PrimitiveStandardizer(registry).standardize(Circle(Point(0, 0), 2.0))
        rings = engine.union(path.contours)

        assert len(rings) == 1
        assert len(rings[0].points) == 128
        assert all(p.curve_id == 1 for p in rings[0].points)
        assert sorted(p.segment_index for p in rings[0].points) == list(range(128))

    def test_intersections_prefer_lower_curve(self, engine):
        """Test new intersection vertices inherit the lower curve id."""
        registry = CurveRegistry()
        standardizer = PrimitiveStandardizer(registry)
        a = standardizer.standardize(Circle(Point(0, 0), 2.0))
        b = standardizer.standardize(Circle(Point(3, 0), 2.0))
        inputs = {engine.to_int([p])[0] for p in a.points + b.points}

        rings = engine.union(a.contours + b.contours)

        assert len(rings) == 1
        new_points = [p for p in rings[0].points if engine.to_int([p])[0] not in inputs]
        assert new_points
        assert all(p.curve_id == 1 for p in new_points)

    def test_custom_callback(self):
        """Test a custom callback decides intersection tags."""
        engine = ClipperEngine(FusionConfig(), intersection_callback=max)
        registry = CurveRegistry()
        standardizer = PrimitiveStandardizer(registry)
        a = standardizer.standardize(Circle(Point(0, 0), 2.0))
        b = standardizer.standardize(Circle(Point(3, 0), 2.0))
        inputs = {engine.to_int([p])[0] for p in a.points + b.points}

        rings = engine.union(a.contours + b.contours)

        new_points = [p for p in rings[0].points if engine.to_int([p])[0] not in inputs]
        assert new_points
        assert all(p.curve_id == 2 for p in new_points)

    def test_untagged_polygon_stays_untagged(self, engine):
        rings = engine.union([square(0, 0, 1)])
        assert not any(p.is_tagged for p in rings[0].points)


class TestOffset:
    """Tests for polygon offsetting."""

    def test_outward_offset(self, engine):
        """Test growing a square by 1mm with round corners."""
        rings = engine.offset([square(0, 0, 10)], 1.0)
        assert len(rings) == 1
        assert rings[0].bounding_box() == pytest.approx((-1.0, -1.0, 11.0, 11.0), abs=1e-3)

    def test_inward_offset(self, engine):
        rings = engine.offset([square(0, 0, 10)], -1.0)
        assert rings[0].bounding_box() == pytest.approx((1.0, 1.0, 9.0, 9.0), abs=1e-3)

    def test_inward_offset_collapses(self, engine):
        """Test shrinking past the centre leaves nothing."""
        assert engine.offset([square(0, 0, 1)], -1.0) == []

    def test_offset_failure_raised(self, engine, monkeypatch):
        """Test Clipper errors surface as OffsetError."""

        class Broken:
            def __init__(self, *args):
                pass

            def AddPath(self, *args):
                pass

            def Execute2(self, delta):
                raise pyclipper.ClipperException("boom")

        monkeypatch.setattr(pyclipper, "PyclipperOffset", Broken)
        with pytest.raises(OffsetError):
            engine.offset([square(0, 0, 1)], 0.1)


class TestClipLines:
    """Tests for clipping open lines."""

    def test_line_clipped_to_square(self, engine):
        """Test a horizontal line is cut at the square's edges."""
        lines = [[Point(-5, 5), Point(15, 5)]]
        pieces = engine.clip_lines(lines, [square(0, 0, 10)])
        assert len(pieces) == 1
        xs = sorted(p.x for p in pieces[0])
        assert xs[0] == pytest.approx(0.0)
        assert xs[-1] == pytest.approx(10.0)

    def test_line_outside(self, engine):
        assert engine.clip_lines([[Point(-5, 20), Point(15, 20)]], [square(0, 0, 10)]) == []

    def test_no_boundary(self, engine):
        assert engine.clip_lines([[Point(0, 0), Point(1, 0)]], []) == []
