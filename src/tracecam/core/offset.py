"""Offset toolpath generation from fused copper geometry.

Every operation takes the fused polygons plus its settings model and returns
a list of immutable ``OffsetPass`` objects. A failure to offset one polygon
is logged and skipped; the rest of the batch is still produced.
"""

import math
from collections.abc import Sequence

import structlog

from tracecam.config import (
    ClearingPattern,
    ClearingSettings,
    CutoutSettings,
    DrillSettings,
    FusionConfig,
    IsolationSettings,
    OperationType,
)
from tracecam.core.clipper import BooleanEngine, ClipperEngine
from tracecam.core.fusion import group_rings
from tracecam.core.tabs import insert_tabs
from tracecam.domain import (
    Circle,
    Contour,
    OffsetPass,
    Path,
    Point,
    Primitive,
    PrimitiveProperties,
)
from tracecam.exceptions import OffsetError

logger = structlog.get_logger(__name__)


def _operation_properties(operation: OperationType) -> PrimitiveProperties:
    return PrimitiveProperties(source=operation.value, operation=operation.value)


class OffsetEngine:
    """Generates isolation, clearing, cutout and drill passes.

    Example:
        engine = OffsetEngine()
        passes = engine.generate_isolation_paths(fused, IsolationSettings(passes=3))
        [p.distance for p in passes]  # [0.05, 0.1, 0.15]
    """

    def __init__(
        self,
        engine: BooleanEngine | None = None,
        config: FusionConfig | None = None,
    ) -> None:
        self.config = config or FusionConfig()
        self.engine = engine or ClipperEngine(self.config)
        self.failures = 0

    def contours_of(self, primitive: Primitive) -> list[Contour]:
        """Closed rings of a fused primitive, arcs re-tessellated.

        Open paths and unsupported primitives yield no rings.
        """
        segments = self.config.circle_segments
        match primitive:
            case Circle(center=center, radius=radius):
                points = [
                    Point(
                        center.x + radius * math.cos(2 * math.pi * i / segments),
                        center.y + radius * math.sin(2 * math.pi * i / segments),
                    )
                    for i in range(segments)
                ]
                return [Contour(points=points)]
            case Path(closed=True):
                return [
                    Contour(
                        points=contour.to_polyline(segments),
                        is_hole=contour.is_hole,
                        nesting_level=contour.nesting_level,
                        parent_id=contour.parent_id,
                    )
                    for contour in primitive.contours
                    if contour.points
                ]
            case _:
                return []

    def _offset(self, primitive: Primitive, distance: float) -> list[Contour]:
        contours = self.contours_of(primitive)
        if not contours:
            return []
        try:
            return self.engine.offset(contours, distance)
        except OffsetError as e:
            self.failures += 1
            logger.warning("Offset failed, polygon skipped", distance=distance, reason=e.reason)
            return []

    def generate_isolation_paths(
        self, polygons: Sequence[Primitive], settings: IsolationSettings
    ) -> list[OffsetPass]:
        """Outward offsets around every polygon, one pass per tool step.

        Pass ``k`` lies at ``tool_radius + k * step_distance`` from the
        original boundary, never from the previous pass.
        """
        operation = OperationType.ISOLATION
        passes: list[OffsetPass] = []
        for k in range(settings.passes):
            distance = settings.tool_radius + k * settings.step_distance
            primitives: list[Primitive] = []
            rings: list[Contour] = []

            for polygon in polygons:
                if isinstance(polygon, Circle) and not settings.combine_passes:
                    primitives.append(
                        Circle(
                            center=polygon.center,
                            radius=polygon.radius + distance,
                            properties=_operation_properties(operation),
                        )
                    )
                    continue
                offset = self._offset(polygon, distance)
                if settings.combine_passes:
                    rings.extend(offset)
                else:
                    primitives.extend(group_rings(offset, operation.value, operation.value))

            if settings.combine_passes and rings:
                merged = self.engine.union(rings)
                primitives.extend(group_rings(merged, operation.value, operation.value))

            logger.debug(
                "Offset pass generated",
                operation=operation.value,
                pass_index=k,
                distance=round(distance, 4),
                primitives=len(primitives),
            )
            passes.append(
                OffsetPass(
                    pass_index=k,
                    distance=distance,
                    combined=settings.combine_passes,
                    operation=operation.value,
                    primitives=tuple(primitives),
                )
            )
        return passes

    def generate_clearing_paths(
        self, polygons: Sequence[Primitive], settings: ClearingSettings
    ) -> list[OffsetPass]:
        """Raster fill of the unioned polygons, one pass per raster angle."""
        operation = OperationType.CLEARING
        rings: list[Contour] = []
        for polygon in polygons:
            rings.extend(self.contours_of(polygon))
        if not rings:
            return []

        boundary = self.engine.union(rings)
        if not boundary:
            return []

        angles = [settings.angle]
        if settings.pattern == ClearingPattern.CROSSHATCH:
            angles.append(settings.angle + 90.0)

        passes: list[OffsetPass] = []
        for index, angle in enumerate(angles):
            lines = self._raster_lines(boundary, settings.stepover, math.radians(angle))
            segments = self.engine.clip_lines(lines, boundary)
            kept = [s for s in segments if self._inside(s[0], s[-1], boundary)]

            primitives: list[Primitive] = []
            for i, segment in enumerate(kept):
                # Alternate direction so consecutive lines join end to start.
                points = segment if i % 2 == 0 else list(reversed(segment))
                primitives.append(
                    Path.from_points(points, closed=False, properties=_operation_properties(operation))
                )

            logger.debug(
                "Clearing pass generated",
                angle=angle,
                lines=len(lines),
                segments=len(kept),
            )
            passes.append(
                OffsetPass(
                    pass_index=index,
                    distance=0.0,
                    combined=True,
                    operation=operation.value,
                    primitives=tuple(primitives),
                )
            )
        return passes

    @staticmethod
    def _raster_lines(boundary: list[Contour], stepover: float, angle: float) -> list[list[Point]]:
        """Parallel lines at ``angle`` covering the boundary's bounding box."""
        boxes = [c.bounding_box() for c in boundary]
        min_x = min(b[0] for b in boxes)
        min_y = min(b[1] for b in boxes)
        max_x = max(b[2] for b in boxes)
        max_y = max(b[3] for b in boxes)
        cx, cy = (min_x + max_x) / 2, (min_y + max_y) / 2
        half = math.hypot(max_x - min_x, max_y - min_y) / 2 + stepover

        ux, uy = math.cos(angle), math.sin(angle)
        vx, vy = -uy, ux
        count = int(math.ceil(2 * half / stepover))
        lines = []
        for i in range(count + 1):
            t = -half + i * stepover
            ox, oy = cx + vx * t, cy + vy * t
            lines.append([Point(ox - ux * half, oy - uy * half), Point(ox + ux * half, oy + uy * half)])
        return lines

    @staticmethod
    def _inside(a: Point, b: Point, boundary: list[Contour]) -> bool:
        """Whether a clipped segment lies inside the boundary (tested at its midpoint)."""
        mx, my = (a.x + b.x) / 2, (a.y + b.y) / 2
        depth = 0
        for contour in boundary:
            if contour.contains_point(mx, my):
                depth += -1 if contour.is_hole else 1
        return depth > 0

    def generate_cutout_paths(
        self, polygons: Sequence[Primitive], settings: CutoutSettings
    ) -> list[OffsetPass]:
        """Inward offset of each board outline, interrupted by holding tabs."""
        operation = OperationType.CUTOUT
        distance = -settings.tool_radius
        primitives: list[Primitive] = []
        tabs = []

        for polygon in polygons:
            for ring in self._offset(polygon, distance):
                if ring.is_hole:
                    continue
                if ring.is_clockwise():
                    ring.reverse()
                runs, ring_tabs = insert_tabs(ring.points, settings.tabs, settings.tab_width)
                closed = not ring_tabs
                for run in runs:
                    points = run[:-1] if closed else run
                    primitives.append(
                        Path.from_points(
                            points, closed=closed, properties=_operation_properties(operation)
                        )
                    )
                tabs.extend(ring_tabs)

        logger.debug("Cutout generated", primitives=len(primitives), tabs=len(tabs))
        return [
            OffsetPass(
                pass_index=0,
                distance=distance,
                combined=False,
                operation=operation.value,
                primitives=tuple(primitives),
                tabs=tuple(tabs),
            )
        ]

    def generate_drill_paths(
        self, holes: Sequence[Primitive], settings: DrillSettings
    ) -> list[OffsetPass]:
        """One drill hit per hole position; no offsetting."""
        operation = OperationType.DRILL
        primitives: list[Primitive] = []
        for hole in holes:
            match hole:
                case Circle(center=center):
                    pass
                case Path() if hole.points:
                    min_x, min_y, max_x, max_y = hole.bounding_box()
                    center = Point((min_x + max_x) / 2, (min_y + max_y) / 2)
                case _:
                    logger.warning("Drill hole without position skipped", kind=hole.kind)
                    continue
            primitives.append(
                Circle(
                    center=Point(center.x, center.y),
                    radius=settings.tool_diameter / 2,
                    properties=PrimitiveProperties(
                        source=hole.properties.source or operation.value,
                        operation=operation.value,
                    ),
                )
            )

        return [
            OffsetPass(
                pass_index=0,
                distance=0.0,
                combined=False,
                operation=operation.value,
                primitives=tuple(primitives),
            )
        ]
