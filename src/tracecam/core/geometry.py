"""Geometric helpers shared by the pipeline stages.

This module provides core mathematical utilities for:
- Signed area and winding (shoelace formula)
- Point-in-polygon testing (ray casting algorithm)
- Distance from a point to a segment
- Arc tessellation and angle normalisation
- Arc-length walking along polylines

All functions are pure and stateless.
"""

import math

from tracecam.domain import Point

TWO_PI = 2 * math.pi


def signed_area(points: list[Point]) -> float:
    """Calculate signed area of a polygon using the shoelace formula.

    The sign of the area indicates winding direction:
    - Positive area: counter-clockwise winding
    - Negative area: clockwise winding

    Args:
        points: List of points forming the polygon boundary

    Returns:
        Signed area in square units. Returns 0.0 for degenerate polygons.

    Examples:
        >>> p1 = Point(0.0, 0.0)
        >>> p2 = Point(1.0, 0.0)
        >>> p3 = Point(1.0, 1.0)
        >>> p4 = Point(0.0, 1.0)
        >>> signed_area([p1, p2, p3, p4])  # CCW square
        1.0
        >>> signed_area([p1, p4, p3, p2])  # CW square
        -1.0
    """
    n = len(points)
    if n < 3:
        return 0.0

    area = 0.0
    for i in range(n):
        j = (i + 1) % n
        area += points[i].x * points[j].y
        area -= points[j].x * points[i].y

    return area / 2.0


def is_clockwise(points: list[Point]) -> bool:
    """Return True when the ring winds clockwise (negative signed area)."""
    return signed_area(points) < 0


def point_in_polygon(point: Point, polygon: list[Point]) -> bool:
    """Determine if a point is inside a polygon using ray casting algorithm.

    Casts a horizontal ray from the point to the right and counts intersections
    with polygon edges. Odd number of intersections = inside, even = outside.

    Args:
        point: The point to test
        polygon: List of points forming the polygon boundary

    Returns:
        True if point is inside polygon, False otherwise
    """
    n = len(polygon)
    if n < 3:
        return False

    inside = False
    x, y = point.x, point.y
    j = n - 1

    for i in range(n):
        xi, yi = polygon[i].x, polygon[i].y
        xj, yj = polygon[j].x, polygon[j].y

        # Check if ray from point intersects edge (j, i)
        if ((yi > y) != (yj > y)) and (x < (xj - xi) * (y - yi) / (yj - yi) + xi):
            inside = not inside

        j = i

    return inside


def distance_to_segment(
    px: float, py: float, ax: float, ay: float, bx: float, by: float
) -> float:
    """Euclidean distance from point P to segment AB.

    Projects the point onto the infinite line, then clamps to the segment
    endpoints. Works on raw coordinates so it can be used on fixed-point
    integer rings as well as on millimetre points.
    """
    dx = bx - ax
    dy = by - ay
    length_sq = dx * dx + dy * dy
    if length_sq < 1e-20:
        return math.hypot(px - ax, py - ay)

    t = ((px - ax) * dx + (py - ay) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return math.hypot(px - (ax + t * dx), py - (ay + t * dy))


def normalize_angle(angle: float) -> float:
    """Map an angle to the range [0, 2*pi)."""
    result = math.fmod(angle, TWO_PI)
    if result < 0:
        result += TWO_PI
    if result >= TWO_PI:
        result -= TWO_PI
    return result


def angle_of(point: Point, center: Point) -> float:
    """Polar angle of ``point`` about ``center`` in [0, 2*pi)."""
    return normalize_angle(math.atan2(point.y - center.y, point.x - center.x))


def signed_angle_delta(a: float, b: float) -> float:
    """Shortest signed rotation from angle ``a`` to angle ``b``, in (-pi, pi]."""
    delta = math.fmod(b - a, TWO_PI)
    if delta > math.pi:
        delta -= TWO_PI
    elif delta <= -math.pi:
        delta += TWO_PI
    return delta


def arc_points(
    cx: float,
    cy: float,
    radius: float,
    start_angle: float,
    sweep: float,
    segments: int,
    include_end: bool = True,
) -> list[tuple[float, float]]:
    """Sample an arc into evenly spaced coordinates.

    Args:
        cx: Centre X
        cy: Centre Y
        radius: Arc radius
        start_angle: Angle of the first sample (radians)
        sweep: Signed sweep (negative = clockwise)
        segments: Number of segments along the arc
        include_end: Whether to emit the final sample

    Returns:
        ``segments + 1`` samples, or ``segments`` without the end point
    """
    count = segments + 1 if include_end else segments
    return [
        (
            cx + radius * math.cos(start_angle + sweep * i / segments),
            cy + radius * math.sin(start_angle + sweep * i / segments),
        )
        for i in range(count)
    ]


def sagitta(radius: float, segments_per_turn: int) -> float:
    """Maximum chord-to-arc distance of a circle tessellated into equal segments."""
    if segments_per_turn <= 0:
        return radius
    return radius * (1 - math.cos(math.pi / segments_per_turn))


def polyline_length(points: list[Point], closed: bool = False) -> float:
    """Total length of a polyline, including the closing edge if requested."""
    total = 0.0
    for i in range(len(points) - 1):
        total += points[i].distance_to(points[i + 1])
    if closed and len(points) > 1:
        total += points[-1].distance_to(points[0])
    return total


def cumulative_lengths(points: list[Point]) -> list[float]:
    """Arc length at every vertex of an open polyline, starting at 0."""
    lengths = [0.0]
    for i in range(1, len(points)):
        lengths.append(lengths[-1] + points[i - 1].distance_to(points[i]))
    return lengths


def point_at_distance(points: list[Point], lengths: list[float], distance: float) -> tuple[Point, int]:
    """Interpolate the point at a given arc length along an open polyline.

    Args:
        points: Polyline vertices
        lengths: Output of ``cumulative_lengths(points)``
        distance: Arc length to locate, clamped to the polyline

    Returns:
        Tuple of (point, index of the segment's start vertex)
    """
    if distance <= 0:
        return points[0], 0
    if distance >= lengths[-1]:
        return points[-1], len(points) - 2

    lo, hi = 0, len(lengths) - 1
    while hi - lo > 1:
        mid = (lo + hi) // 2
        if lengths[mid] <= distance:
            lo = mid
        else:
            hi = mid

    seg_len = lengths[hi] - lengths[lo]
    t = 0.0 if seg_len == 0 else (distance - lengths[lo]) / seg_len
    a, b = points[lo], points[hi]
    return Point(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t), lo
