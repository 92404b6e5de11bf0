"""Tests for the curve registry."""

import pytest

from tracecam.core.registry import CurveRegistry
from tracecam.domain import CurveDescriptor, CurveType, Point


@pytest.fixture
def registry() -> CurveRegistry:
    return CurveRegistry()


def circle(x: float, y: float, r: float, source: str = "circle") -> CurveDescriptor:
    return CurveDescriptor(CurveType.CIRCLE, Point(x, y), r, source=source, original_point_count=128)


class TestCurveRegistry:
    """Tests for CurveRegistry class."""

    def test_ids_start_at_one(self, registry):
        """Test sequential id assignment."""
        assert registry.register(circle(0, 0, 1)) == 1
        assert registry.register(circle(5, 0, 1)) == 2
        assert len(registry) == 2

    def test_registered_descriptor_carries_id(self, registry):
        """Test that the stored descriptor has its id filled in."""
        curve_id = registry.register(circle(1, 2, 3))
        stored = registry.get(curve_id)
        assert stored is not None
        assert stored.id == curve_id
        assert stored.radius == 3
        assert curve_id in registry

    def test_duplicate_resolves_to_same_id(self, registry):
        """Test identical curves share one id."""
        first = registry.register(circle(1, 1, 0.5))
        second = registry.register(circle(1, 1, 0.5, source="pad"))
        assert first == second
        assert len(registry) == 1
        assert registry.stats()["duplicates"] == 1

    def test_rounding_merges_nearly_equal_curves(self, registry):
        """Test centres equal to three decimals hash together."""
        first = registry.register(circle(1.0, 1.0, 0.5))
        second = registry.register(circle(1.0001, 0.9999, 0.5))
        assert first == second

    def test_negative_zero_folds(self, registry):
        """Test -0.0 and 0.0 produce the same key."""
        assert registry.register(circle(-0.0, 0.0, 1)) == registry.register(circle(0.0, -0.0, 1))

    def test_arcs_differ_by_direction(self, registry):
        """Test arc keys include angles and direction."""
        ccw = CurveDescriptor(CurveType.ARC, Point(0, 0), 1.0, 0.0, 1.0, clockwise=False)
        cw = CurveDescriptor(CurveType.ARC, Point(0, 0), 1.0, 0.0, 1.0, clockwise=True)
        assert registry.register(ccw) != registry.register(cw)

    def test_missing_geometry_not_registered(self, registry):
        """Test descriptors without centre or radius are refused."""
        assert registry.register(CurveDescriptor(CurveType.CIRCLE, None, 1.0)) is None
        assert registry.register(CurveDescriptor(CurveType.CIRCLE, Point(0, 0), None)) is None
        assert len(registry) == 0

    def test_key_requires_geometry(self):
        """Test keying a curve without a radius raises instead of asserting."""
        with pytest.raises(ValueError, match="no centre or radius"):
            CurveRegistry._curve_key(CurveDescriptor(CurveType.CIRCLE, Point(0, 0), None, source="pad"))

    def test_unknown_id(self, registry):
        assert registry.get(42) is None
        assert 42 not in registry

    def test_clear_restarts_ids(self, registry):
        """Test clearing forgets curves and restarts numbering."""
        registry.register(circle(0, 0, 1))
        registry.register(circle(0, 0, 2))
        registry.clear()
        assert len(registry) == 0
        assert registry.register(circle(0, 0, 3)) == 1

    def test_stats(self, registry):
        """Test registration counters."""
        registry.register(circle(0, 0, 1))
        registry.register(
            CurveDescriptor(CurveType.ARC, Point(0, 0), 1.0, 0.0, 3.14, source="end_cap")
        )
        stats = registry.stats()
        assert stats["registered"] == 2
        assert stats["circles"] == 1
        assert stats["arcs"] == 1
        assert stats["end_caps"] == 1
        assert stats["size"] == 2
