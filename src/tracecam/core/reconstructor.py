"""Arc reconstruction from tagged points that survived a boolean operation.

After fusion every contour vertex still carries the curve id it was
tessellated from (or 0). Consecutive vertices sharing an id form a *run*.
A run that closes a whole ring of a circle without gaps is the full circle;
any other run is a partial arc spanning from its first to its last point.

Reconstruction is verified against the registry: a point farther than the
tolerance from its registered circle is treated as a straight-edge point.
"""

import math
from dataclasses import dataclass, replace

import structlog

from tracecam.config import FusionConfig
from tracecam.core.geometry import TWO_PI, sagitta, signed_angle_delta
from tracecam.core.registry import CurveRegistry
from tracecam.domain import (
    ArcSegment,
    Circle,
    Contour,
    CurveDescriptor,
    Path,
    Point,
    Primitive,
)

logger = structlog.get_logger(__name__)

# Consecutive points further apart than this many nominal steps split a run.
GAP_STEPS = 3

# Two surviving points and the registered centre define an arc.
MIN_ARC_POINTS = 2

# Fewer points than this cannot form a ring.
MIN_RING_POINTS = 3


@dataclass
class _Run:
    """A maximal stretch of consecutive points sharing one curve id."""

    curve_id: int
    start: int
    end: int  # inclusive

    @property
    def count(self) -> int:
        return self.end - self.start + 1


class ArcReconstructor:
    """Replaces runs of tagged points with ``ArcSegment`` or ``Circle`` output.

    Example:
        reconstructor = ArcReconstructor(registry, config)
        primitives = reconstructor.reconstruct(fused_paths)
        reconstructor.stats()["full_circles"]
    """

    def __init__(self, registry: CurveRegistry, config: FusionConfig | None = None) -> None:
        self.registry = registry
        self.config = config or FusionConfig()
        self._reset()

    def _reset(self) -> None:
        self._reconstructed_ids: set[int] = set()
        self._coverages: list[float] = []
        self._unknown_ids: set[int] = set()
        self._counts = {
            "full_circles": 0,
            "partial_arcs": 0,
            "fallback_points": 0,
            "multi_gap_runs": 0,
        }

    def reconstruct(self, paths: list[Path]) -> list[Primitive]:
        """Recover analytic curves from fused paths.

        Args:
            paths: Fused closed paths whose points carry curve tags

        Returns:
            One primitive per input path, in order: a ``Circle`` for a path
            that is a lone full circle, otherwise a ``Path`` whose contours
            carry ``ArcSegment`` entries
        """
        self._reset()
        result: list[Primitive] = []
        for path in paths:
            result.append(self._reconstruct_path(path))

        stats = self.stats()
        logger.info("Arc reconstruction complete", **stats)
        return result

    def stats(self) -> dict[str, float]:
        """Statistics of the last ``reconstruct`` call."""
        coverage = sum(self._coverages) / len(self._coverages) if self._coverages else 0.0
        return {
            "curves_registered": len(self.registry),
            "reconstructed": len(self._reconstructed_ids),
            **self._counts,
            "unknown_curves": len(self._unknown_ids),
            "average_coverage": round(coverage, 4),
        }

    # Paths

    def _reconstruct_path(self, path: Path) -> Primitive:
        contours = [self._reconstruct_contour(c) for c in path.contours]
        arcs = [arc for c in contours for arc in c.arc_segments]
        if not arcs:
            return Path(contours=contours, closed=path.closed, properties=path.properties)

        if len(contours) == 1 and len(contours[0].points) == 1 and arcs[0].is_full_circle:
            arc = arcs[0]
            return Circle(
                center=arc.center,
                radius=arc.radius,
                properties=replace(
                    path.properties,
                    source=arc.source,
                    curve_ids=(arc.curve_id,),
                    reconstructed=True,
                    coverage=arc.coverage,
                    curve_id=arc.curve_id,
                ),
            )

        properties = replace(
            path.properties,
            reconstructed=True,
            coverage=round(min(arc.coverage for arc in arcs), 4),
        )
        return Path(contours=contours, closed=path.closed, properties=properties)

    # Contours

    def _effective_ids(self, points: list[Point]) -> list[int]:
        """Per-point curve ids after registry and radius verification."""
        ids: list[int] = []
        for p in points:
            curve_id = p.curve_id
            if curve_id:
                descriptor = self.registry.get(curve_id)
                if descriptor is None:
                    if curve_id not in self._unknown_ids:
                        logger.warning("Point tagged with unknown curve id", curve_id=curve_id)
                        self._unknown_ids.add(curve_id)
                    curve_id = 0
                elif not self._on_curve(p, descriptor):
                    self._counts["fallback_points"] += 1
                    curve_id = 0
            ids.append(curve_id)
        return ids

    @staticmethod
    def _geometry(descriptor: CurveDescriptor) -> tuple[Point, float]:
        """Centre and radius of a registered curve."""
        if descriptor.center is None or descriptor.radius is None:
            raise ValueError(f"Curve {descriptor.id} has no centre or radius")
        return descriptor.center, descriptor.radius

    def _tolerance(self, descriptor: CurveDescriptor) -> float:
        _, radius = self._geometry(descriptor)
        chord_error = sagitta(radius, self.config.circle_segments) + self.config.unit
        return max(self.config.reconstruction_tolerance, chord_error)

    def _on_curve(self, p: Point, descriptor: CurveDescriptor) -> bool:
        center, radius = self._geometry(descriptor)
        distance = math.hypot(p.x - center.x, p.y - center.y)
        return abs(distance - radius) <= self._tolerance(descriptor)

    def _nominal_step(self, descriptor: CurveDescriptor) -> float:
        """Angle between neighbouring tessellation vertices of a curve."""
        if descriptor.is_circle:
            return TWO_PI / max(1, descriptor.original_point_count)
        span = abs((descriptor.end_angle or 0.0) - (descriptor.start_angle or 0.0))
        return span / max(1, descriptor.original_point_count - 1)

    def _angles(self, points: list[Point], descriptor: CurveDescriptor) -> list[float]:
        center, _ = self._geometry(descriptor)
        cx, cy = center.x, center.y
        return [math.atan2(p.y - cy, p.x - cx) for p in points]

    def _reconstruct_contour(self, contour: Contour) -> Contour:
        points = contour.points
        n = len(points)
        if n < MIN_RING_POINTS or contour.arc_segments:
            return contour

        ids = self._effective_ids(points)
        if not any(ids):
            return contour

        # Rotate so index 0 starts a run; runs then never wrap.
        shift = next((i for i in range(n) if ids[i] != ids[i - 1]), None)
        if shift is None:
            return self._reconstruct_single_run(contour, ids[0])
        points = points[shift:] + points[:shift]
        ids = ids[shift:] + ids[:shift]

        runs: list[_Run] = []
        for i, curve_id in enumerate(ids):
            if runs and runs[-1].curve_id == curve_id:
                runs[-1].end = i
            else:
                runs.append(_Run(curve_id, i, i))

        return self._rebuild(contour, points, runs)

    def _reconstruct_single_run(self, contour: Contour, curve_id: int) -> Contour:
        """Whole ring tagged with one curve: full circle, or an arc plus chord(s)."""
        descriptor = self.registry.get(curve_id)
        if descriptor is None:
            return contour
        center, radius = self._geometry(descriptor)
        points = contour.points
        n = len(points)
        angles = self._angles(points, descriptor)
        deltas = [signed_angle_delta(angles[i], angles[(i + 1) % n]) for i in range(n)]
        threshold = GAP_STEPS * self._nominal_step(descriptor)
        largest = max(range(n), key=lambda i: abs(deltas[i]))

        if (
            descriptor.is_circle
            and abs(deltas[largest]) <= threshold
            and n >= descriptor.original_point_count - 1
        ):
            sweep = math.copysign(TWO_PI, sum(deltas))
            coverage = min(1.0, n / max(1, descriptor.original_point_count))
            arc = ArcSegment(
                start_index=0,
                end_index=0,
                center=Point(center.x, center.y),
                radius=radius,
                start_angle=angles[0],
                end_angle=angles[0] + sweep,
                clockwise=sweep < 0,
                curve_id=curve_id,
                coverage=round(coverage, 4),
                source=descriptor.source,
            )
            self._record(arc, full=True)
            return Contour(
                points=[points[0]],
                is_hole=contour.is_hole,
                nesting_level=contour.nesting_level,
                parent_id=contour.parent_id,
                arc_segments=[arc],
            )

        # Start right after the largest jump; the closing edge is then a chord.
        shift = (largest + 1) % n
        points = points[shift:] + points[:shift]
        return self._rebuild(contour, points, [_Run(curve_id, 0, n - 1)])

    def _rebuild(self, contour: Contour, points: list[Point], runs: list[_Run]) -> Contour:
        new_points: list[Point] = []
        arcs: list[ArcSegment] = []

        for run in runs:
            descriptor = self.registry.get(run.curve_id) if run.curve_id else None
            if descriptor is None or run.count < MIN_ARC_POINTS:
                new_points.extend(points[run.start : run.end + 1])
                continue

            clusters = self._split(points[run.start : run.end + 1], descriptor)
            if len(clusters) > 1:
                self._counts["multi_gap_runs"] += 1
                logger.warning(
                    "Run has several angular gaps, splitting into separate arcs",
                    curve_id=run.curve_id,
                    clusters=len(clusters),
                )

            for first, last in clusters:
                cluster = points[run.start + first : run.start + last + 1]
                if len(cluster) < MIN_ARC_POINTS:
                    new_points.extend(cluster)
                    continue
                arc = self._arc_for(cluster, descriptor, len(new_points))
                new_points.append(cluster[0])
                new_points.append(cluster[-1])
                arcs.append(arc)
                self._record(arc, full=False)

        if not arcs:
            return contour
        return Contour(
            points=new_points,
            is_hole=contour.is_hole,
            nesting_level=contour.nesting_level,
            parent_id=contour.parent_id,
            arc_segments=arcs,
        )

    def _split(self, points: list[Point], descriptor: CurveDescriptor) -> list[tuple[int, int]]:
        """Split a run where consecutive points jump by more than ``GAP_STEPS``."""
        angles = self._angles(points, descriptor)
        threshold = GAP_STEPS * self._nominal_step(descriptor)
        clusters: list[tuple[int, int]] = []
        first = 0
        for i in range(1, len(points)):
            if abs(signed_angle_delta(angles[i - 1], angles[i])) > threshold:
                clusters.append((first, i - 1))
                first = i
        clusters.append((first, len(points) - 1))
        return clusters

    def _arc_for(self, cluster: list[Point], descriptor: CurveDescriptor, start_index: int) -> ArcSegment:
        center, radius = self._geometry(descriptor)
        angles = self._angles(cluster, descriptor)
        sweep = sum(signed_angle_delta(angles[i - 1], angles[i]) for i in range(1, len(angles)))
        coverage = min(1.0, len(cluster) / max(1, descriptor.original_point_count))
        return ArcSegment(
            start_index=start_index,
            end_index=start_index + 1,
            center=Point(center.x, center.y),
            radius=radius,
            start_angle=angles[0],
            end_angle=angles[0] + sweep,
            clockwise=sweep < 0,
            curve_id=descriptor.id,
            coverage=round(coverage, 4),
            source=descriptor.source,
        )

    def _record(self, arc: ArcSegment, full: bool) -> None:
        self._reconstructed_ids.add(arc.curve_id)
        self._coverages.append(arc.coverage)
        if full:
            self._counts["full_circles"] += 1
        else:
            self._counts["partial_arcs"] += 1
