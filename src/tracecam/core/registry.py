"""Curve registry: integer curve ids for tessellated analytic curves.

The registry is the only link between a tessellated point and the circle or
arc it was sampled from. Identical curves registered twice (for example the
same pad flashed by two primitives) resolve to one id, which is what lets the
reconstructor group points that came from unrelated primitives.

One registry instance serves one fusion run: ``GeometryProcessor`` clears it
at the start of every run, so ids never carry meaning across runs.
"""

from dataclasses import replace

import structlog

from tracecam.domain import CurveDescriptor, CurveType

logger = structlog.get_logger(__name__)

# Fixed so that id assignment is reproducible across runs and configurations.
HASH_DECIMALS = 3

CurveKey = tuple[object, ...]


class CurveRegistry:
    """Append-only mapping from curve id to ``CurveDescriptor``.

    Example:
        registry = CurveRegistry()
        curve_id = registry.register(
            CurveDescriptor(CurveType.CIRCLE, Point(0, 0), 10.0)
        )
        registry.get(curve_id).radius  # 10.0
    """

    def __init__(self) -> None:
        self._curves: dict[int, CurveDescriptor] = {}
        self._key_to_id: dict[CurveKey, int] = {}
        self._next_id = 1
        self._stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> dict[str, int]:
        return {"registered": 0, "circles": 0, "arcs": 0, "end_caps": 0, "duplicates": 0}

    @staticmethod
    def _curve_key(descriptor: CurveDescriptor) -> CurveKey:
        """Rounding-stabilised identity of a curve.

        Args:
            descriptor: Curve to identify

        Returns:
            Hashable key of type, centre, radius and (for arcs) angles and
            direction, rounded to ``HASH_DECIMALS`` places

        Raises:
            ValueError: If the curve has no centre or radius
        """
        if descriptor.center is None or descriptor.radius is None:
            raise ValueError(f"Curve from {descriptor.source!r} has no centre or radius")

        def r(value: float) -> float:
            # +0.0 folds negative zero into the same key.
            return round(value, HASH_DECIMALS) + 0.0

        key: tuple[object, ...] = (
            descriptor.type.value,
            r(descriptor.center.x),
            r(descriptor.center.y),
            r(descriptor.radius),
        )
        if descriptor.type == CurveType.ARC:
            key += (
                r(descriptor.start_angle or 0.0),
                r(descriptor.end_angle if descriptor.end_angle is not None else 0.0),
                bool(descriptor.clockwise),
            )
        return key

    def register(self, descriptor: CurveDescriptor) -> int | None:
        """Register a curve and return its id.

        Args:
            descriptor: Curve to register; its ``id`` field is ignored

        Returns:
            Existing id for an equal curve, a new id otherwise, or None when
            the descriptor lacks a centre or radius (callers must then leave
            their points untagged)
        """
        if descriptor.center is None or descriptor.radius is None:
            logger.debug("Curve not registered: missing geometry", source=descriptor.source)
            return None

        key = self._curve_key(descriptor)
        existing = self._key_to_id.get(key)
        if existing is not None:
            self._stats["duplicates"] += 1
            return existing

        curve_id = self._next_id
        self._next_id += 1
        self._curves[curve_id] = replace(descriptor, id=curve_id)
        self._key_to_id[key] = curve_id

        self._stats["registered"] += 1
        if descriptor.type == CurveType.CIRCLE:
            self._stats["circles"] += 1
        else:
            self._stats["arcs"] += 1
        if descriptor.source == "end_cap":
            self._stats["end_caps"] += 1

        return curve_id

    def get(self, curve_id: int) -> CurveDescriptor | None:
        """Look up a registered curve, or None for unknown ids."""
        return self._curves.get(curve_id)

    def clear(self) -> None:
        """Forget every curve and restart ids at 1."""
        self._curves.clear()
        self._key_to_id.clear()
        self._next_id = 1
        self._stats = self._empty_stats()

    def stats(self) -> dict[str, int]:
        """Registration counters plus the current registry size."""
        return {**self._stats, "size": len(self._curves)}

    def __len__(self) -> int:
        return len(self._curves)

    def __contains__(self, curve_id: object) -> bool:
        return curve_id in self._curves
