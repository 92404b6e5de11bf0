"""Unit tests for fusion orchestration."""

from unittest.mock import Mock

import pytest

from tracecam.config import FusionConfig
from tracecam.core.fusion import GeometryProcessor, enforce_winding, group_rings
from tracecam.core.registry import CurveRegistry
from tracecam.domain import Circle, Contour, Path, Point, Polarity, PrimitiveProperties, Rectangle
from tracecam.exceptions import BooleanOperationError

CLEAR = PrimitiveProperties(polarity=Polarity.CLEAR)


def ring(x: float, y: float, size: float, clockwise: bool = False, **kwargs) -> Contour:
    points = [Point(x, y), Point(x + size, y), Point(x + size, y + size), Point(x, y + size)]
    if clockwise:
        points.reverse()
    return Contour(points=points, **kwargs)


@pytest.fixture
def processor() -> GeometryProcessor:
    return GeometryProcessor(FusionConfig())


class TestEnforceWinding:
    """Tests for winding normalisation before the boolean step."""

    def test_dark_outer_made_counterclockwise(self):
        contours = [ring(0, 0, 1, clockwise=True)]
        assert enforce_winding(contours, Polarity.DARK) == 1
        assert not contours[0].is_clockwise()

    def test_dark_hole_made_clockwise(self):
        contours = [ring(0, 0, 1, is_hole=True)]
        assert enforce_winding(contours, Polarity.DARK) == 1
        assert contours[0].is_clockwise()

    def test_clear_outer_made_clockwise(self):
        """Test clear primitives wind opposite to dark ones."""
        contours = [ring(0, 0, 1)]
        assert enforce_winding(contours, Polarity.CLEAR) == 1
        assert contours[0].is_clockwise()

    def test_already_correct(self):
        assert enforce_winding([ring(0, 0, 1)], Polarity.DARK) == 0


class TestGroupRings:
    """Tests for grouping a flat ring list into paths."""

    def test_hole_attached_to_parent(self):
        """Test holes join their outer ring; islands become new paths."""
        rings = [
            ring(0, 0, 10),
            ring(2, 2, 6, is_hole=True, nesting_level=1, parent_id=0),
            ring(4, 4, 2, clockwise=True, nesting_level=2, parent_id=1),
        ]

        paths = group_rings(rings)

        assert len(paths) == 2
        assert len(paths[0].contours) == 2
        assert paths[0].contours[1].parent_id == 0
        assert paths[0].contours[1].is_clockwise()
        assert len(paths[1].contours) == 1
        assert not paths[1].contours[0].is_clockwise()
        assert paths[1].contours[0].parent_id is None

    def test_properties(self):
        paths = group_rings([ring(0, 0, 1)], source="isolation", operation="isolation")
        props = paths[0].properties
        assert props.polarity == Polarity.DARK
        assert props.fill is True
        assert props.source == "isolation"
        assert props.operation == "isolation"

    def test_orphan_hole_dropped(self):
        rings = [ring(0, 0, 1, is_hole=True, parent_id=None)]
        assert group_rings(rings) == []


class TestGeometryProcessor:
    """Tests for GeometryProcessor.fuse."""

    def test_overlapping_rectangles_union(self, processor):
        """Test two overlapping rectangles fuse into one path."""
        fused = processor.fuse([Rectangle(Point(0, 0), 10, 10), Rectangle(Point(5, 5), 10, 10)])

        assert len(fused) == 1
        assert isinstance(fused[0], Path)
        assert fused[0].area() == pytest.approx(175.0)
        assert processor.stats()["dark"] == 2

    def test_disjoint_primitives_stay_separate(self, processor):
        fused = processor.fuse([Rectangle(Point(0, 0), 1, 1), Rectangle(Point(5, 5), 1, 1)])
        assert len(fused) == 2

    def test_clear_primitive_cuts_hole(self, processor):
        """Test a clear circle inside a rectangle becomes a reconstructed hole."""
        fused = processor.fuse(
            [Rectangle(Point(0, 0), 10, 10), Circle(Point(5, 5), 2.0, CLEAR)]
        )

        assert len(fused) == 1
        path = fused[0]
        assert isinstance(path, Path)
        assert len(path.holes) == 1
        hole = path.contours[1]
        assert hole.is_clockwise()
        assert len(hole.arc_segments) == 1
        arc = hole.arc_segments[0]
        assert arc.is_full_circle
        assert arc.clockwise
        assert arc.radius == pytest.approx(2.0)
        assert path.properties.reconstructed
        assert processor.stats()["holes"] == 1
        assert processor.stats()["reconstruction_full_circles"] == 1

    def test_reconstruction_disabled(self, processor):
        """Test the per-call override skips reconstruction."""
        fused = processor.fuse([Circle(Point(0, 0), 1.0)], enable_arc_reconstruction=False)
        assert isinstance(fused[0], Path)
        assert len(fused[0].points) == 128
        assert processor.reconstruction_stats == {}

    def test_only_clear_primitives(self, processor):
        """Test clear-only input yields nothing."""
        assert processor.fuse([Circle(Point(0, 0), 1.0, CLEAR)]) == []

    def test_empty_input(self, processor):
        assert processor.fuse([]) == []

    def test_invalid_primitive_skipped(self, processor):
        fused = processor.fuse([Circle(Point(0, 0), -1.0), Rectangle(Point(0, 0), 1, 1)])
        assert len(fused) == 1
        assert processor.stats()["skipped"] == 1

    def test_registry_cleared_between_runs(self, processor):
        """Test curve ids restart for every run."""
        processor.fuse([Circle(Point(0, 0), 1.0), Circle(Point(5, 0), 1.0)])
        assert len(processor.registry) == 2
        fused = processor.fuse([Circle(Point(9, 9), 1.0)])
        assert len(processor.registry) == 1
        assert fused[0].properties.curve_id == 1

    def test_caller_registry(self, processor):
        registry = CurveRegistry()
        processor.fuse([Circle(Point(0, 0), 1.0)], registry=registry)
        assert len(registry) == 1
        assert len(processor.registry) == 0

    def test_engine_failure_propagates(self):
        """Test boolean engine errors are not swallowed by fusion."""
        engine = Mock()
        engine.union.side_effect = BooleanOperationError("union", "boom")
        processor = GeometryProcessor(FusionConfig(), engine=engine)

        with pytest.raises(BooleanOperationError):
            processor.fuse([Rectangle(Point(0, 0), 1, 1)])
