"""Holding tab placement along closed cutout paths."""

import structlog

from tracecam.core.geometry import cumulative_lengths, point_at_distance
from tracecam.domain import Point, Tab

logger = structlog.get_logger(__name__)


def _slice(points: list[Point], lengths: list[float], start: float, end: float) -> list[Point]:
    """Sub-polyline between two arc lengths of an open polyline."""
    first, _ = point_at_distance(points, lengths, start)
    last, _ = point_at_distance(points, lengths, end)
    result = [first]
    for point, length in zip(points, lengths):
        if start < length < end:
            result.append(point)
    result.append(last)
    return result


def insert_tabs(
    points: list[Point], tab_count: int, tab_width: float
) -> tuple[list[list[Point]], list[Tab]]:
    """Split a closed ring into cut runs separated by holding tabs.

    Tab ``k`` starts at ``k * perimeter / tab_count`` and is ``tab_width``
    long, wrapping past the ring's start point when needed. Run ``k`` goes
    from the end of tab ``k`` to the start of tab ``k + 1``.

    Args:
        points: Closed ring vertices (closing edge implied)
        tab_count: Number of tabs
        tab_width: Tab length along the ring (mm)

    Returns:
        Tuple of (cut runs as open polylines, tabs)
    """
    ring = list(points) + [points[0]] if points else []
    if len(ring) < 3:
        return [], []

    lengths = cumulative_lengths(ring)
    perimeter = lengths[-1]
    if tab_count <= 0 or tab_width <= 0 or perimeter <= 0:
        return [ring], []

    if tab_count * tab_width >= perimeter:
        logger.warning(
            "Tabs cover the whole path, cutting without tabs",
            tabs=tab_count,
            tab_width=tab_width,
            perimeter=round(perimeter, 4),
        )
        return [ring], []

    # Walk the ring twice so that wrapped intervals are plain slices.
    doubled = ring + ring[1:]
    doubled_lengths = lengths + [perimeter + d for d in lengths[1:]]

    spacing = perimeter / tab_count
    tabs: list[Tab] = []
    for k in range(tab_count):
        start = k * spacing
        end = start + tab_width
        start_point, _ = point_at_distance(doubled, doubled_lengths, start)
        end_point, _ = point_at_distance(doubled, doubled_lengths, end)
        tabs.append(Tab(start_distance=start, end_distance=end, start=start_point, end=end_point))

    runs: list[list[Point]] = []
    for k, tab in enumerate(tabs):
        next_start = tabs[k + 1].start_distance if k + 1 < tab_count else perimeter
        runs.append(_slice(doubled, doubled_lengths, tab.end_distance, next_start))

    logger.debug("Tabs inserted", tabs=tab_count, perimeter=round(perimeter, 4))
    return runs, tabs
