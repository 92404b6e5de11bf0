"""Core geometric types for contour representation.

This module defines the fundamental geometric types used throughout tracecam:
- Point: A 2D point carrying a curve tag (curve id + segment index)
- ArcSegment: A reconstructed arc spanning two contour vertices
- Contour: A closed ring of a polygon (outer boundary or hole)
- WindingDirection: Enum for contour winding direction

Coordinates are millimetres in a Y-up frame: positive signed area means
counter-clockwise winding.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Any

# Layout of the 64-bit tag channel carried through the boolean engine.
TAG_SHIFT = 32
SEGMENT_MASK = (1 << TAG_SHIFT) - 1

TWO_PI = 2 * math.pi


def pack_tag(curve_id: int, segment_index: int) -> int:
    """Pack a curve id and segment index into one 64-bit integer.

    Args:
        curve_id: Registered curve id (0 = no curve)
        segment_index: Vertex index along the curve's tessellation

    Returns:
        ``curve_id << 32 | segment_index``, or 0 for untagged points
    """
    if curve_id <= 0:
        return 0
    return (curve_id << TAG_SHIFT) | (segment_index & SEGMENT_MASK)


def unpack_tag(tag: int) -> tuple[int, int]:
    """Split a packed tag back into ``(curve_id, segment_index)``."""
    if tag <= 0:
        return 0, 0
    return tag >> TAG_SHIFT, tag & SEGMENT_MASK


class WindingDirection(Enum):
    """Contour winding direction.

    tracecam convention:
    - Outer contours wind counter-clockwise
    - Hole contours wind clockwise
    """

    CLOCKWISE = auto()
    COUNTER_CLOCKWISE = auto()


@dataclass(frozen=True, slots=True)
class Point:
    """A point in 2D space with curve metadata.

    Immutable and hashable for use in sets/dicts.

    Attributes:
        x: X coordinate in millimetres
        y: Y coordinate in millimetres
        curve_id: Registered curve this point was tessellated from (0 = none)
        segment_index: Index of the point along its curve's tessellation
    """

    x: float
    y: float
    curve_id: int = 0
    segment_index: int = 0

    @property
    def tag(self) -> int:
        """Packed 64-bit tag for the boolean engine's metadata channel."""
        return pack_tag(self.curve_id, self.segment_index)

    @property
    def is_tagged(self) -> bool:
        return self.curve_id > 0

    def with_tag(self, tag: int) -> "Point":
        """Return a copy of this point carrying ``tag``."""
        curve_id, segment_index = unpack_tag(tag)
        return Point(self.x, self.y, curve_id, segment_index)

    def untagged(self) -> "Point":
        """Return a copy of this point with no curve metadata."""
        return Point(self.x, self.y)

    def distance_to(self, other: "Point") -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def to_tuple(self) -> tuple[float, float]:
        """Convert to simple (x, y) tuple.

        Returns:
            Tuple of (x, y) coordinates
        """
        return (self.x, self.y)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary.

        Tag fields are only written for tagged points.
        """
        data: dict[str, Any] = {"x": self.x, "y": self.y}
        if self.curve_id:
            data["curveId"] = self.curve_id
            data["segmentIndex"] = self.segment_index
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Point":
        """Deserialize from dictionary.

        Args:
            data: Dictionary with x, y and optional curveId/segmentIndex

        Returns:
            Point instance
        """
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            curve_id=int(data.get("curveId", 0)),
            segment_index=int(data.get("segmentIndex", 0)),
        )


@dataclass(frozen=True)
class ArcSegment:
    """An analytic arc replacing a run of tessellated contour points.

    The arc runs from ``points[start_index]`` to ``points[end_index]`` of the
    owning contour. Angles are stored unwrapped so that
    ``end_angle - start_angle`` is the signed sweep (negative when clockwise).
    A full circle has ``start_index == end_index`` and a sweep of 2*pi.

    Attributes:
        start_index: Contour index of the arc's first point
        end_index: Contour index of the arc's last point
        center: Arc centre
        radius: Arc radius
        start_angle: Angle of the start point about the centre (radians)
        end_angle: Unwrapped angle of the end point (radians)
        clockwise: Traversal direction along the contour
        curve_id: Registered curve the arc was recovered from
        coverage: Surviving points / originally tessellated points
        source: Source tag of the registered curve
    """

    start_index: int
    end_index: int
    center: Point
    radius: float
    start_angle: float
    end_angle: float
    clockwise: bool
    curve_id: int = 0
    coverage: float = 1.0
    source: str | None = None

    @property
    def sweep(self) -> float:
        """Signed sweep angle in radians."""
        return self.end_angle - self.start_angle

    @property
    def is_full_circle(self) -> bool:
        return abs(abs(self.sweep) - TWO_PI) < 1e-9

    @property
    def length(self) -> float:
        return abs(self.sweep) * self.radius

    def point_at(self, angle: float) -> Point:
        return Point(
            self.center.x + self.radius * math.cos(angle),
            self.center.y + self.radius * math.sin(angle),
        )

    def tessellate(self, segments_per_turn: int = 128) -> list[Point]:
        """Sample the arc from start to end inclusive.

        Args:
            segments_per_turn: Segment count a full turn would use

        Returns:
            Untagged points along the arc
        """
        steps = max(1, math.ceil(segments_per_turn * abs(self.sweep) / TWO_PI))
        return [
            self.point_at(self.start_angle + self.sweep * i / steps)
            for i in range(steps + 1)
        ]

    def reversed(self, point_count: int) -> "ArcSegment":
        """Return the same arc as seen on the reversed contour."""
        return replace(
            self,
            start_index=(point_count - 1 - self.end_index) % point_count,
            end_index=(point_count - 1 - self.start_index) % point_count,
            start_angle=self.end_angle,
            end_angle=self.start_angle,
            clockwise=not self.clockwise,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "startIndex": self.start_index,
            "endIndex": self.end_index,
            "center": {"x": self.center.x, "y": self.center.y},
            "radius": self.radius,
            "startAngle": self.start_angle,
            "endAngle": self.end_angle,
            "clockwise": self.clockwise,
            "curveId": self.curve_id,
            "coverage": self.coverage,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ArcSegment":
        return cls(
            start_index=int(data["startIndex"]),
            end_index=int(data["endIndex"]),
            center=Point.from_dict(data["center"]),
            radius=float(data["radius"]),
            start_angle=float(data["startAngle"]),
            end_angle=float(data["endAngle"]),
            clockwise=bool(data.get("clockwise", False)),
            curve_id=int(data.get("curveId", 0)),
            coverage=float(data.get("coverage", 1.0)),
            source=data.get("source"),
        )


@dataclass
class Contour:
    """One ring of a polygon.

    Outer contours wind counter-clockwise, holes clockwise. Winding is
    normalised in place by the fusion step, which is the only mutation a
    contour sees after creation.

    Attributes:
        points: Ring vertices (closing edge implied)
        is_hole: Whether the ring bounds a hole
        nesting_level: Depth in the polygon tree (0 = top-level outer)
        parent_id: Index of the enclosing contour within its path, if any
        arc_segments: Reconstructed arcs spanning pairs of vertices
    """

    points: list[Point]
    is_hole: bool = False
    nesting_level: int = 0
    parent_id: int | None = None
    arc_segments: list[ArcSegment] = field(default_factory=list)

    def signed_area(self) -> float:
        """Calculate signed area using shoelace formula.

        The sign of the area indicates winding direction:
        - Positive area: counter-clockwise winding
        - Negative area: clockwise winding

        Returns:
            Signed area of the contour
        """
        points = self.to_polyline() if self.arc_segments else self.points
        n = len(points)
        if n < 3:
            return 0.0

        area = 0.0
        for i in range(n):
            j = (i + 1) % n
            area += points[i].x * points[j].y
            area -= points[j].x * points[i].y

        return area / 2.0

    @property
    def direction(self) -> WindingDirection:
        if self.signed_area() < 0:
            return WindingDirection.CLOCKWISE
        return WindingDirection.COUNTER_CLOCKWISE

    def is_clockwise(self) -> bool:
        return self.signed_area() < 0

    def reverse(self) -> None:
        """Reverse the point order in place, keeping arc segments aligned."""
        n = len(self.points)
        self.points.reverse()
        self.arc_segments = [arc.reversed(n) for arc in self.arc_segments]

    @property
    def curve_ids(self) -> list[int]:
        """Distinct non-zero curve ids in traversal order."""
        seen: dict[int, None] = {}
        for p in self.points:
            if p.curve_id:
                seen.setdefault(p.curve_id, None)
        for arc in self.arc_segments:
            if arc.curve_id:
                seen.setdefault(arc.curve_id, None)
        return list(seen)

    def bounding_box(self) -> tuple[float, float, float, float]:
        """Calculate bounding box of the contour.

        Returns:
            Tuple of (min_x, min_y, max_x, max_y)
        """
        points = self.to_polyline() if self.arc_segments else self.points
        if not points:
            return (0.0, 0.0, 0.0, 0.0)

        xs = [p.x for p in points]
        ys = [p.y for p in points]
        return (min(xs), min(ys), max(xs), max(ys))

    def contains_point(self, x: float, y: float) -> bool:
        """Check if point is inside contour using ray casting algorithm.

        Casts a ray from the point to the right and counts intersections
        with contour edges. Odd count means inside, even means outside.

        Args:
            x: X coordinate of point to test
            y: Y coordinate of point to test

        Returns:
            True if point is inside contour, False otherwise
        """
        points = self.to_polyline() if self.arc_segments else self.points
        n = len(points)
        if n < 3:
            return False

        inside = False
        j = n - 1

        for i in range(n):
            xi, yi = points[i].x, points[i].y
            xj, yj = points[j].x, points[j].y

            if ((yi > y) != (yj > y)) and (x < (xj - xi) * (y - yi) / (yj - yi) + xi):
                inside = not inside

            j = i

        return inside

    def to_polyline(self, segments_per_turn: int = 128) -> list[Point]:
        """Return the ring as plain vertices, re-tessellating arc segments.

        Args:
            segments_per_turn: Segment count a full turn would use

        Returns:
            Vertices of the ring; arc interiors are untagged samples
        """
        if not self.arc_segments:
            return list(self.points)

        by_start = {arc.start_index: arc for arc in self.arc_segments}
        result: list[Point] = []
        n = len(self.points)
        i = 0
        while i < n:
            arc = by_start.get(i)
            if arc is None:
                result.append(self.points[i])
                i += 1
                continue
            samples = arc.tessellate(segments_per_turn)
            if arc.is_full_circle:
                result.extend(samples[:-1])
                i += 1
                continue
            # Arc endpoints keep the contour's own vertices.
            result.append(self.points[i])
            result.extend(samples[1:-1])
            if arc.end_index <= i:
                break
            i = arc.end_index
        return result

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary.

        Returns:
            Dictionary representation of the contour
        """
        return {
            "points": [p.to_dict() for p in self.points],
            "isHole": self.is_hole,
            "nestingLevel": self.nesting_level,
            "parentId": self.parent_id,
            "curveIds": self.curve_ids,
            "arcSegments": [arc.to_dict() for arc in self.arc_segments],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Contour":
        """Deserialize from dictionary.

        Args:
            data: Dictionary representation of a contour

        Returns:
            Contour instance
        """
        return cls(
            points=[Point.from_dict(p) for p in data["points"]],
            is_hole=bool(data.get("isHole", False)),
            nesting_level=int(data.get("nestingLevel", 0)),
            parent_id=data.get("parentId"),
            arc_segments=[ArcSegment.from_dict(a) for a in data.get("arcSegments", [])],
        )
