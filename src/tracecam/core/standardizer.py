"""Primitive standardization: every primitive variant to a tagged polygon.

The boolean engine only understands polygons, so circles, arcs, obround caps
and stroke end caps are tessellated here. Every tessellated vertex carries the
registry id of its curve and its index along that curve's tessellation.
Composite primitives are decomposed: an obround registers its two end caps
separately so the reconstructor can recover each one on its own.
"""

import math
from collections.abc import Iterable
from dataclasses import replace

import structlog

from tracecam.config import FusionConfig
from tracecam.core.geometry import TWO_PI, arc_points
from tracecam.core.registry import CurveRegistry
from tracecam.domain import (
    Arc,
    Circle,
    Contour,
    CurveDescriptor,
    CurveType,
    Obround,
    Path,
    Point,
    Primitive,
    PrimitiveProperties,
    Rectangle,
)
from tracecam.exceptions import InvalidPrimitiveError

logger = structlog.get_logger(__name__)

_EPS = 1e-12


def _finite(*values: float | None) -> bool:
    return all(v is not None and math.isfinite(v) for v in values)


class _RingBuilder:
    """Accumulates ring vertices, dropping exact repeats at piece joins."""

    def __init__(self) -> None:
        self.points: list[Point] = []

    def extend(self, points: Iterable[Point]) -> None:
        for p in points:
            if self.points:
                last = self.points[-1]
                if abs(last.x - p.x) < _EPS and abs(last.y - p.y) < _EPS:
                    continue
            self.points.append(p)

    def close(self) -> list[Point]:
        if len(self.points) > 1:
            first, last = self.points[0], self.points[-1]
            if abs(first.x - last.x) < _EPS and abs(first.y - last.y) < _EPS:
                self.points.pop()
        return self.points


class PrimitiveStandardizer:
    """Converts primitives into closed, tagged ``Path`` polygons.

    Example:
        registry = CurveRegistry()
        standardizer = PrimitiveStandardizer(registry)
        path = standardizer.standardize(Circle(Point(0, 0), 1.0))
        path.points[0].curve_id  # 1
    """

    def __init__(self, registry: CurveRegistry, config: FusionConfig | None = None) -> None:
        self.registry = registry
        self.config = config or FusionConfig()

    def standardize(self, primitive: Primitive) -> Path | None:
        """Convert one primitive to a closed polygon path.

        Args:
            primitive: Any primitive variant

        Returns:
            Filled ``Path`` whose contours carry curve tags, or None when the
            primitive lacks usable geometry (the caller drops it)
        """
        try:
            match primitive:
                case Circle():
                    return self._circle(primitive)
                case Arc():
                    return self._arc(primitive)
                case Rectangle():
                    return self._rectangle(primitive)
                case Obround():
                    return self._obround(primitive)
                case Path():
                    if primitive.properties.is_stroke:
                        return self._stroke(primitive)
                    return self._filled_path(primitive)
                case _:
                    raise InvalidPrimitiveError(type(primitive).__name__, "unknown primitive type")
        except InvalidPrimitiveError as e:
            logger.warning("Primitive not standardized", kind=e.kind, reason=e.reason)
            return None

    # Curve tessellation

    def _register(
        self,
        curve_type: CurveType,
        center: Point,
        radius: float,
        point_count: int,
        source: str,
        start_angle: float | None = None,
        end_angle: float | None = None,
        clockwise: bool = False,
    ) -> int:
        curve_id = self.registry.register(
            CurveDescriptor(
                type=curve_type,
                center=Point(center.x, center.y),
                radius=radius,
                start_angle=start_angle,
                end_angle=end_angle,
                clockwise=clockwise,
                source=source,
                original_point_count=point_count,
            )
        )
        return curve_id or 0

    def _circle_points(self, center: Point, radius: float, source: str) -> list[Point]:
        segments = self.config.circle_segments
        curve_id = self._register(CurveType.CIRCLE, center, radius, segments, source)
        coords = arc_points(center.x, center.y, radius, 0.0, TWO_PI, segments, include_end=False)
        return [Point(x, y, curve_id, i) for i, (x, y) in enumerate(coords)]

    def _arc_points(
        self,
        center: Point,
        radius: float,
        start_angle: float,
        sweep: float,
        source: str,
    ) -> list[Point]:
        """Tessellate an arc including both end points, tagging every vertex."""
        segments = self.config.arc_segments(sweep)
        clockwise = sweep < 0
        curve_id = self._register(
            CurveType.ARC,
            center,
            radius,
            segments + 1,
            source,
            start_angle=start_angle,
            end_angle=start_angle + sweep,
            clockwise=clockwise,
        )
        coords = arc_points(center.x, center.y, radius, start_angle, sweep, segments)
        return [Point(x, y, curve_id, i) for i, (x, y) in enumerate(coords)]

    def _end_cap(self, center: Point, radius: float, start_angle: float) -> list[Point]:
        """Counter-clockwise semicircle about ``center`` starting at ``start_angle``."""
        return self._arc_points(center, radius, start_angle, math.pi, "end_cap")

    def _annular_sector(
        self,
        center: Point,
        radius: float,
        width: float,
        start_angle: float,
        sweep: float,
        source: str,
    ) -> list[Contour]:
        """Thick arc: outer arc, end cap, inner arc, start cap (CCW ring)."""
        half = width / 2
        if sweep < 0:
            start_angle, sweep = start_angle + sweep, -sweep
        outer_r = radius + half
        inner_r = radius - half

        if sweep >= TWO_PI - 1e-9:
            outer = Contour(points=self._circle_points(center, outer_r, source))
            if inner_r <= _EPS:
                return [outer]
            inner = Contour(
                points=list(reversed(self._circle_points(center, inner_r, source))),
                is_hole=True,
                nesting_level=1,
                parent_id=0,
            )
            return [outer, inner]

        end_angle = start_angle + sweep
        start_center = Point(
            center.x + radius * math.cos(start_angle), center.y + radius * math.sin(start_angle)
        )
        end_center = Point(
            center.x + radius * math.cos(end_angle), center.y + radius * math.sin(end_angle)
        )

        ring = _RingBuilder()
        ring.extend(self._arc_points(center, outer_r, start_angle, sweep, source))
        ring.extend(self._end_cap(end_center, half, end_angle))
        if inner_r > _EPS:
            ring.extend(self._arc_points(center, inner_r, end_angle, -sweep, source))
        else:
            ring.extend([Point(center.x, center.y)])
        ring.extend(self._end_cap(start_center, half, start_angle + math.pi))
        return [Contour(points=ring.close())]

    def _capsule(self, a: Point, b: Point, width: float) -> list[Contour]:
        """Straight stroke segment with round end caps (CCW ring)."""
        half = width / 2
        length = math.hypot(b.x - a.x, b.y - a.y)
        if length < _EPS:
            return [Contour(points=self._circle_points(a, half, "end_cap"))]

        theta = math.atan2(b.y - a.y, b.x - a.x)
        ring = _RingBuilder()
        ring.extend(self._end_cap(b, half, theta - math.pi / 2))
        ring.extend(self._end_cap(a, half, theta + math.pi / 2))
        return [Contour(points=ring.close())]

    # Variants

    def _circle(self, circle: Circle) -> Path:
        if circle.center is None or circle.radius is None:
            raise InvalidPrimitiveError("circle", "missing center or radius")
        if not _finite(circle.center.x, circle.center.y, circle.radius) or circle.radius <= 0:
            raise InvalidPrimitiveError("circle", f"invalid radius {circle.radius!r}")

        source = circle.properties.source or "circle"
        points = self._circle_points(circle.center, circle.radius, source)
        return self._path([Contour(points=points)], circle.properties)

    def _arc(self, arc: Arc) -> Path:
        if arc.center is None or arc.radius is None:
            raise InvalidPrimitiveError("arc", "missing center or radius")
        if not _finite(arc.center.x, arc.center.y, arc.radius, arc.start_angle, arc.end_angle):
            raise InvalidPrimitiveError("arc", "non-finite geometry")
        if arc.radius <= 0:
            raise InvalidPrimitiveError("arc", f"invalid radius {arc.radius!r}")

        source = arc.properties.source or "arc"
        if arc.properties.is_stroke:
            contours = self._annular_sector(
                arc.center,
                arc.radius,
                arc.properties.stroke_width,
                arc.start_angle,
                arc.sweep,
                source,
            )
            return self._path(contours, arc.properties)

        # Filled arc: the region between the arc and its chord.
        points = self._arc_points(arc.center, arc.radius, arc.start_angle, arc.sweep, source)
        if abs(arc.sweep) >= TWO_PI - 1e-9:
            points = points[:-1]
        return self._path([Contour(points=points)], arc.properties)

    def _rectangle(self, rect: Rectangle) -> Path:
        if rect.origin is None or not _finite(rect.origin.x, rect.origin.y, rect.width, rect.height):
            raise InvalidPrimitiveError("rectangle", "missing or non-finite geometry")
        if rect.width <= 0 or rect.height <= 0:
            raise InvalidPrimitiveError("rectangle", f"invalid size {rect.width}x{rect.height}")

        x, y = rect.origin.x, rect.origin.y
        points = [
            Point(x, y),
            Point(x + rect.width, y),
            Point(x + rect.width, y + rect.height),
            Point(x, y + rect.height),
        ]
        return self._path([Contour(points=points)], rect.properties)

    def _obround(self, obround: Obround) -> Path:
        if obround.origin is None or not _finite(
            obround.origin.x, obround.origin.y, obround.width, obround.height
        ):
            raise InvalidPrimitiveError("obround", "missing or non-finite geometry")
        w, h = obround.width, obround.height
        if w <= 0 or h <= 0:
            raise InvalidPrimitiveError("obround", f"invalid size {w}x{h}")

        x, y = obround.origin.x, obround.origin.y
        source = obround.properties.source or "obround"
        r = min(w, h) / 2

        if abs(w - h) < _EPS:
            points = self._circle_points(Point(x + r, y + r), r, source)
            return self._path([Contour(points=points)], obround.properties)

        ring = _RingBuilder()
        if w > h:
            left = Point(x + r, y + r)
            right = Point(x + w - r, y + r)
            ring.extend(self._arc_points(right, r, -math.pi / 2, math.pi, source))
            ring.extend(self._arc_points(left, r, math.pi / 2, math.pi, source))
        else:
            bottom = Point(x + r, y + r)
            top = Point(x + r, y + h - r)
            ring.extend(self._arc_points(bottom, r, math.pi, math.pi, source))
            ring.extend(self._arc_points(top, r, 0.0, math.pi, source))
        return self._path([Contour(points=ring.close())], obround.properties)

    def _stroke(self, path: Path) -> Path:
        """Buffer an open (or closed) centreline into overlapping capsules.

        The stroke itself registers nothing; its end caps and any embedded
        arc segments are registered as curves.
        """
        width = path.properties.stroke_width
        if not _finite(width):
            raise InvalidPrimitiveError("path", "non-finite stroke width")
        centerline = path.outer
        if centerline is None or not centerline.points:
            raise InvalidPrimitiveError("path", "stroke has no points")
        self._check_points(centerline.points)

        points = centerline.points
        arcs = {arc.start_index: arc for arc in centerline.arc_segments}
        contours: list[Contour] = []

        if len(points) == 1:
            contours.extend(self._capsule(points[0], points[0], width))

        n = len(points)
        last = n if path.closed and n > 2 else n - 1
        i = 0
        while i < last:
            arc = arcs.get(i)
            if arc is not None and not arc.is_full_circle and arc.end_index > i:
                contours.extend(
                    self._annular_sector(
                        arc.center, arc.radius, width, arc.start_angle, arc.sweep, "path_arc"
                    )
                )
                i = arc.end_index
                continue
            contours.extend(self._capsule(points[i], points[(i + 1) % n], width))
            i += 1

        return self._path(contours, path.properties)

    def _filled_path(self, path: Path) -> Path:
        if not path.contours or len(path.points) < 3:
            raise InvalidPrimitiveError("path", "filled region needs at least 3 points")

        contours: list[Contour] = []
        for contour in path.contours:
            self._check_points(contour.points)
            points = self._tessellate_contour(contour)
            if len(points) < 3:
                continue
            contours.append(
                Contour(
                    points=points,
                    is_hole=contour.is_hole,
                    nesting_level=contour.nesting_level,
                    parent_id=contour.parent_id,
                )
            )
        if not contours or contours[0].is_hole:
            raise InvalidPrimitiveError("path", "no usable outer contour")
        return self._path(contours, path.properties)

    def _tessellate_contour(self, contour: Contour) -> list[Point]:
        """Expand a contour's arc segments into tagged vertices."""
        if not contour.arc_segments:
            return list(contour.points)

        arcs = {arc.start_index: arc for arc in contour.arc_segments}
        ring = _RingBuilder()
        n = len(contour.points)
        i = 0
        while i < n:
            arc = arcs.get(i)
            if arc is None:
                ring.extend([contour.points[i]])
                i += 1
                continue
            if arc.is_full_circle:
                ring.extend(self._circle_points(arc.center, arc.radius, "path_arc"))
                i += 1
                continue
            ring.extend(
                self._arc_points(arc.center, arc.radius, arc.start_angle, arc.sweep, "path_arc")
            )
            if arc.end_index <= i:
                break
            i = arc.end_index + 1
        return ring.close()

    @staticmethod
    def _check_points(points: list[Point]) -> None:
        for p in points:
            if not _finite(p.x, p.y):
                raise InvalidPrimitiveError("path", f"non-finite point ({p.x}, {p.y})")

    @staticmethod
    def _path(contours: list[Contour], properties: PrimitiveProperties) -> Path:
        curve_ids: dict[int, None] = {}
        for contour in contours:
            for curve_id in contour.curve_ids:
                curve_ids.setdefault(curve_id, None)
        return Path(
            contours=contours,
            closed=True,
            properties=replace(properties.as_filled(), curve_ids=tuple(curve_ids)),
        )
