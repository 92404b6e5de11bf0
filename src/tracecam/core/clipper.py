"""Polygon boolean engine adapter built on pyclipper.

Clipper works on integer coordinates, so every ring is scaled by
``FusionConfig.scale`` on the way in and divided back on the way out.

pyclipper exposes no per-vertex Z channel, so curve tags travel through a
side table instead: before each operation every input vertex's integer
coordinate is mapped to its packed tag. Clipper keeps input vertices
bit-exact, so output vertices found in the table get their tag back. Output
vertices missing from the table are new edge intersections; those are
matched against the input edges they lie on and the intersection callback
decides which edge's tag they inherit.
"""

import math
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from typing import Protocol

import pyclipper
import structlog

from tracecam.config import FillRule, FusionConfig
from tracecam.core.geometry import distance_to_segment
from tracecam.domain import Contour, Point, pack_tag, unpack_tag
from tracecam.exceptions import BooleanOperationError, OffsetError

logger = structlog.get_logger(__name__)

IntPoint = tuple[int, int]
IntPath = list[IntPoint]

# An intersection vertex must lie this close (in integer units) to an input edge.
EDGE_MATCH_TOLERANCE = 2.0

IntersectionCallback = Callable[[int, int], int]

_FILL_TYPES = {
    FillRule.NONZERO: pyclipper.PFT_NONZERO,
    FillRule.EVENODD: pyclipper.PFT_EVENODD,
    FillRule.POSITIVE: pyclipper.PFT_POSITIVE,
    FillRule.NEGATIVE: pyclipper.PFT_NEGATIVE,
}


def prefer_lower_curve(tag_a: int, tag_b: int) -> int:
    """Default intersection callback: keep the tag with the lower non-zero curve id.

    Args:
        tag_a: Packed tag of the first intersecting edge (0 = untagged)
        tag_b: Packed tag of the second intersecting edge

    Returns:
        The winning packed tag, or 0 when neither edge is tagged
    """
    curve_a, _ = unpack_tag(tag_a)
    curve_b, _ = unpack_tag(tag_b)
    if curve_a == 0:
        return tag_b
    if curve_b == 0:
        return tag_a
    return tag_a if curve_a <= curve_b else tag_b


class BooleanEngine(Protocol):
    """Operations the fusion and offset stages need from a polygon library.

    ``fill_rule`` and ``preserve_collinear`` default to the engine's
    configuration when not given.
    """

    def union(
        self,
        subjects: Sequence[Contour],
        *,
        fill_rule: FillRule | None = None,
        preserve_collinear: bool | None = None,
    ) -> list[Contour]: ...

    def difference(
        self,
        subjects: Sequence[Contour],
        clips: Sequence[Contour],
        *,
        fill_rule: FillRule | None = None,
        preserve_collinear: bool | None = None,
    ) -> list[Contour]: ...

    def offset(self, contours: Sequence[Contour], delta: float) -> list[Contour]: ...

    def clip_lines(
        self, lines: Sequence[Sequence[Point]], boundary: Sequence[Contour]
    ) -> list[list[Point]]: ...


class _EdgeIndex:
    """Uniform grid over tagged input edges, built only when needed."""

    def __init__(self, rings: Iterable[tuple[IntPath, list[int]]], cell: float) -> None:
        self.cell = cell
        self.cells: dict[tuple[int, int], list[tuple[IntPoint, IntPoint, int]]] = defaultdict(list)
        for path, tags in rings:
            n = len(path)
            for i in range(n):
                a, b = path[i], path[(i + 1) % n]
                tag = self._edge_tag(tags[i], tags[(i + 1) % n])
                if tag:
                    self._insert(a, b, tag)

    @staticmethod
    def _edge_tag(start: int, end: int) -> int:
        start_curve, start_index = unpack_tag(start)
        end_curve, _ = unpack_tag(end)
        if start_curve and start_curve == end_curve:
            return pack_tag(start_curve, start_index)
        return 0

    def _key(self, x: float, y: float) -> tuple[int, int]:
        return (math.floor(x / self.cell), math.floor(y / self.cell))

    def _insert(self, a: IntPoint, b: IntPoint, tag: int) -> None:
        length = math.hypot(b[0] - a[0], b[1] - a[1])
        steps = max(1, math.ceil(2 * length / self.cell))
        keys: set[tuple[int, int]] = set()
        for s in range(steps + 1):
            t = s / steps
            kx, ky = self._key(a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)
            for dx in (-1, 0, 1):
                for dy in (-1, 0, 1):
                    keys.add((kx + dx, ky + dy))
        for key in keys:
            self.cells[key].append((a, b, tag))

    def tags_near(self, x: int, y: int) -> list[int]:
        found: list[int] = []
        for a, b, tag in self.cells.get(self._key(x, y), ()):
            if distance_to_segment(x, y, a[0], a[1], b[0], b[1]) <= EDGE_MATCH_TOLERANCE:
                found.append(tag)
        return found


class _TagTable:
    """Integer coordinate -> packed tag for the inputs of one operation."""

    def __init__(self, callback: IntersectionCallback) -> None:
        self.callback = callback
        self.tags: dict[IntPoint, int] = {}
        self.rings: list[tuple[IntPath, list[int]]] = []
        self._index: _EdgeIndex | None = None

    def add(self, path: IntPath, tags: list[int]) -> None:
        self.rings.append((path, tags))
        for pt, tag in zip(path, tags):
            existing = self.tags.get(pt)
            if existing is None:
                self.tags[pt] = tag
            elif existing != tag:
                self.tags[pt] = self.callback(existing, tag)

    def lookup(self, pt: IntPoint) -> int:
        tag = self.tags.get(pt)
        if tag is not None:
            return tag
        if self._index is None:
            self._index = _EdgeIndex(self.rings, self._cell_size())
        result = 0
        for candidate in self._index.tags_near(pt[0], pt[1]):
            result = candidate if result == 0 else self.callback(result, candidate)
        return result

    def _cell_size(self) -> float:
        lengths = sorted(
            math.dist(path[i - 1], path[i]) for path, _ in self.rings for i in range(len(path))
        )
        if not lengths:
            return 1.0
        return max(4.0 * EDGE_MATCH_TOLERANCE, 2.0 * lengths[len(lengths) // 2])


class ClipperEngine:
    """``BooleanEngine`` implementation on pyclipper with tag preservation.

    Example:
        engine = ClipperEngine(FusionConfig())
        rings = engine.union([contour_a, contour_b])
    """

    def __init__(
        self,
        config: FusionConfig | None = None,
        intersection_callback: IntersectionCallback = prefer_lower_curve,
    ) -> None:
        self.config = config or FusionConfig()
        self.intersection_callback = intersection_callback

    # Conversion

    def to_int(self, points: Iterable[Point]) -> IntPath:
        scale = self.config.scale
        return [(round(p.x * scale), round(p.y * scale)) for p in points]

    def to_points(self, path: Iterable[IntPoint], table: _TagTable | None = None) -> list[Point]:
        scale = self.config.scale
        result = []
        for ix, iy in path:
            curve_id, segment_index = unpack_tag(table.lookup((ix, iy))) if table else (0, 0)
            result.append(Point(ix / scale, iy / scale, curve_id, segment_index))
        return result

    # Boolean operations

    def union(
        self,
        subjects: Sequence[Contour],
        *,
        fill_rule: FillRule | None = None,
        preserve_collinear: bool | None = None,
    ) -> list[Contour]:
        """Union of all subject rings."""
        return self._execute(
            "union", pyclipper.CT_UNION, subjects, (), fill_rule, preserve_collinear
        )

    def difference(
        self,
        subjects: Sequence[Contour],
        clips: Sequence[Contour],
        *,
        fill_rule: FillRule | None = None,
        preserve_collinear: bool | None = None,
    ) -> list[Contour]:
        """Subject rings minus clip rings, both under the same fill rule."""
        return self._execute(
            "difference", pyclipper.CT_DIFFERENCE, subjects, clips, fill_rule, preserve_collinear
        )

    def _execute(
        self,
        operation: str,
        clip_type: int,
        subjects: Sequence[Contour],
        clips: Sequence[Contour],
        fill_rule: FillRule | None,
        preserve_collinear: bool | None,
    ) -> list[Contour]:
        fill_type = _FILL_TYPES[fill_rule or self.config.fill_rule]
        table = _TagTable(self.intersection_callback)
        pc = pyclipper.Pyclipper()
        pc.PreserveCollinear = (
            self.config.preserve_collinear if preserve_collinear is None else preserve_collinear
        )

        added = 0
        for poly_type, contours in ((pyclipper.PT_SUBJECT, subjects), (pyclipper.PT_CLIP, clips)):
            for contour in contours:
                path = self.to_int(contour.points)
                if len(path) < 3:
                    continue
                try:
                    pc.AddPath(path, poly_type, True)
                except pyclipper.ClipperException:
                    logger.debug("Degenerate ring skipped", operation=operation, points=len(path))
                    continue
                table.add(path, [p.tag for p in contour.points])
                added += 1

        if added == 0:
            return []

        try:
            tree = pc.Execute2(clip_type, fill_type, fill_type)
        except pyclipper.ClipperException as e:
            raise BooleanOperationError(operation, str(e)) from e

        return self._flatten(tree, table)

    def _flatten(self, tree: pyclipper.PyPolyNode, table: _TagTable | None) -> list[Contour]:
        """Walk a PolyTree depth-first into a flat contour list.

        ``parent_id`` is the index of the enclosing contour within the
        returned list; ``nesting_level`` is the depth below the root.
        """
        result: list[Contour] = []

        def visit(node: pyclipper.PyPolyNode, parent: int | None, depth: int) -> None:
            for child in node.Childs:
                if len(child.Contour) < 3:
                    continue
                result.append(
                    Contour(
                        points=self.to_points(child.Contour, table),
                        is_hole=bool(child.IsHole),
                        nesting_level=depth,
                        parent_id=parent,
                    )
                )
                visit(child, len(result) - 1, depth + 1)

        visit(tree, None, 0)
        return result

    # Offsetting and line clipping

    def offset(self, contours: Sequence[Contour], delta: float) -> list[Contour]:
        """Offset closed rings by ``delta`` mm with round joins.

        Positive deltas grow outer rings; holes shrink correspondingly when
        they wind opposite to their outer ring.

        Raises:
            OffsetError: If Clipper rejects the input or fails
        """
        scale = self.config.scale
        int_delta = delta * scale
        arc_tolerance = max(
            0.25, abs(int_delta) * (1 - math.cos(math.pi / self.config.circle_segments))
        )
        pco = pyclipper.PyclipperOffset(2.0, arc_tolerance)

        added = 0
        for contour in contours:
            path = self.to_int(contour.points)
            if len(path) < 3:
                continue
            pco.AddPath(path, pyclipper.JT_ROUND, pyclipper.ET_CLOSEDPOLYGON)
            added += 1
        if added == 0:
            return []

        try:
            tree = pco.Execute2(int_delta)
        except pyclipper.ClipperException as e:
            raise OffsetError(delta, str(e)) from e
        return self._flatten(tree, None)

    def clip_lines(
        self, lines: Sequence[Sequence[Point]], boundary: Sequence[Contour]
    ) -> list[list[Point]]:
        """Clip open polylines against a closed boundary.

        Returns:
            The pieces of ``lines`` inside ``boundary`` as open polylines
        """
        pc = pyclipper.Pyclipper()
        has_clip = False
        for contour in boundary:
            path = self.to_int(contour.points)
            if len(path) < 3:
                continue
            try:
                pc.AddPath(path, pyclipper.PT_CLIP, True)
                has_clip = True
            except pyclipper.ClipperException:
                logger.debug("Degenerate boundary ring skipped", points=len(path))

        has_subject = False
        for line in lines:
            path = self.to_int(line)
            if len(path) < 2:
                continue
            try:
                pc.AddPath(path, pyclipper.PT_SUBJECT, False)
                has_subject = True
            except pyclipper.ClipperException:
                logger.debug("Degenerate line skipped", points=len(path))

        if not (has_clip and has_subject):
            return []

        try:
            tree = pc.Execute2(pyclipper.CT_INTERSECTION, pyclipper.PFT_NONZERO, pyclipper.PFT_NONZERO)
        except pyclipper.ClipperException as e:
            raise BooleanOperationError("clip_lines", str(e)) from e

        return [self.to_points(path) for path in pyclipper.OpenPathsFromPolyTree(tree) if len(path) >= 2]
