"""Artwork primitives.

The primitive set is a closed sum type: ``Circle``, ``Arc``, ``Rectangle``,
``Obround`` and ``Path``. Every primitive carries ``PrimitiveProperties``
(polarity, stroke width, source back-reference and reconstruction
diagnostics). Primitives are value objects; pipeline stages build new ones
instead of editing their inputs.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, ClassVar, Union

from tracecam.domain.contour import TWO_PI, ArcSegment, Contour, Point


class Polarity(str, Enum):
    """Whether a primitive adds (dark) or removes (clear) copper."""

    DARK = "dark"
    CLEAR = "clear"

    @classmethod
    def parse(cls, value: Any) -> "Polarity":
        """Parse a polarity value, defaulting to dark when missing or unknown."""
        if isinstance(value, Polarity):
            return value
        if isinstance(value, str) and value.lower() == "clear":
            return cls.CLEAR
        return cls.DARK


@dataclass(frozen=True)
class PrimitiveProperties:
    """Properties shared by every primitive.

    Attributes:
        polarity: Dark (adds material) or clear (removes material)
        stroke_width: Stroke width for stroked geometry, 0 for filled regions
        fill: Explicit fill flag; None means implied by stroke_width
        source: Back-reference to the operation/layer that produced it
        curve_ids: Curve ids tagged on this primitive's points
        reconstructed: Whether this primitive was recovered from tagged points
        coverage: Fraction of the original curve's points that survived
        curve_id: Registered curve a reconstructed primitive came from
        operation: Toolpath operation that produced this primitive
    """

    polarity: Polarity = Polarity.DARK
    stroke_width: float = 0.0
    fill: bool | None = None
    source: str | None = None
    curve_ids: tuple[int, ...] = ()
    reconstructed: bool = False
    coverage: float | None = None
    curve_id: int | None = None
    operation: str | None = None

    @property
    def is_stroke(self) -> bool:
        """A positive stroke width without an explicit fill is a stroke."""
        return self.stroke_width > 0 and self.fill is not True

    def as_filled(self) -> "PrimitiveProperties":
        """Properties after converting a stroke to a filled polygon."""
        return replace(self, stroke_width=0.0, fill=True)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"polarity": self.polarity.value}
        if self.stroke_width:
            data["strokeWidth"] = self.stroke_width
        if self.fill is not None:
            data["fill"] = self.fill
        if self.source is not None:
            data["source"] = self.source
        if self.curve_ids:
            data["curveIds"] = list(self.curve_ids)
        if self.reconstructed:
            data["reconstructed"] = True
            data["coverage"] = self.coverage
            data["curveId"] = self.curve_id
        if self.operation is not None:
            data["operation"] = self.operation
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "PrimitiveProperties":
        data = data or {}
        return cls(
            polarity=Polarity.parse(data.get("polarity")),
            stroke_width=float(data.get("strokeWidth", 0.0) or 0.0),
            fill=data.get("fill"),
            source=data.get("source"),
            curve_ids=tuple(int(i) for i in data.get("curveIds", ())),
            reconstructed=bool(data.get("reconstructed", False)),
            coverage=data.get("coverage"),
            curve_id=data.get("curveId"),
            operation=data.get("operation"),
        )


@dataclass(frozen=True)
class Circle:
    """A filled circle (flash of a round aperture, pad or drill hit)."""

    kind: ClassVar[str] = "circle"

    center: Point
    radius: float
    properties: PrimitiveProperties = field(default_factory=PrimitiveProperties)

    @property
    def area(self) -> float:
        return math.pi * self.radius * self.radius

    def bounding_box(self) -> tuple[float, float, float, float]:
        c, r = self.center, self.radius
        return (c.x - r, c.y - r, c.x + r, c.y + r)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "center": {"x": self.center.x, "y": self.center.y},
            "radius": self.radius,
            "properties": self.properties.to_dict(),
        }


@dataclass(frozen=True)
class Arc:
    """A circular arc, stroked when ``properties.stroke_width`` is set.

    Angles are in radians. ``clockwise`` selects the direction of travel
    from ``start_angle`` to ``end_angle``.
    """

    kind: ClassVar[str] = "arc"

    center: Point
    radius: float
    start_angle: float
    end_angle: float
    clockwise: bool = False
    properties: PrimitiveProperties = field(default_factory=PrimitiveProperties)

    @property
    def sweep(self) -> float:
        """Signed sweep from start to end in the arc's direction."""
        span = self.end_angle - self.start_angle
        if self.clockwise:
            while span >= 0:
                span -= TWO_PI
            return max(span, -TWO_PI)
        while span <= 0:
            span += TWO_PI
        return min(span, TWO_PI)

    @property
    def start_point(self) -> Point:
        return Point(
            self.center.x + self.radius * math.cos(self.start_angle),
            self.center.y + self.radius * math.sin(self.start_angle),
        )

    @property
    def end_point(self) -> Point:
        return Point(
            self.center.x + self.radius * math.cos(self.end_angle),
            self.center.y + self.radius * math.sin(self.end_angle),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "center": {"x": self.center.x, "y": self.center.y},
            "radius": self.radius,
            "startAngle": self.start_angle,
            "endAngle": self.end_angle,
            "clockwise": self.clockwise,
            "properties": self.properties.to_dict(),
        }


@dataclass(frozen=True)
class Rectangle:
    """An axis-aligned rectangle anchored at its lower-left corner."""

    kind: ClassVar[str] = "rectangle"

    origin: Point
    width: float
    height: float
    properties: PrimitiveProperties = field(default_factory=PrimitiveProperties)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "origin": {"x": self.origin.x, "y": self.origin.y},
            "width": self.width,
            "height": self.height,
            "properties": self.properties.to_dict(),
        }


@dataclass(frozen=True)
class Obround:
    """A stadium shape anchored at its lower-left corner.

    The shorter side is fully rounded: two straight edges joined by two
    semicircular end caps.
    """

    kind: ClassVar[str] = "obround"

    origin: Point
    width: float
    height: float
    properties: PrimitiveProperties = field(default_factory=PrimitiveProperties)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "origin": {"x": self.origin.x, "y": self.origin.y},
            "width": self.width,
            "height": self.height,
            "properties": self.properties.to_dict(),
        }


@dataclass
class Path:
    """A polyline or polygon with optional holes.

    Closed paths keep their outer ring in ``contours[0]`` followed by holes;
    fused output may also carry nested islands as separate paths. Open paths
    (strokes, raster lines, cut runs) use a single contour.

    Attributes:
        contours: Outer ring first, then holes
        closed: Whether the first contour is a closed ring
        properties: Shared primitive properties
    """

    kind: ClassVar[str] = "path"

    contours: list[Contour]
    closed: bool = True
    properties: PrimitiveProperties = field(default_factory=PrimitiveProperties)

    @classmethod
    def from_points(
        cls,
        points: list[Point],
        holes: list[list[Point]] | None = None,
        closed: bool = True,
        properties: PrimitiveProperties | None = None,
        arc_segments: list[ArcSegment] | None = None,
    ) -> "Path":
        """Build a path from an outer point list and optional holes."""
        contours = [Contour(points=list(points), arc_segments=list(arc_segments or []))]
        for hole in holes or []:
            contours.append(
                Contour(points=list(hole), is_hole=True, nesting_level=1, parent_id=0)
            )
        return cls(
            contours=contours,
            closed=closed,
            properties=properties or PrimitiveProperties(),
        )

    @property
    def points(self) -> list[Point]:
        """Outer ring (or polyline) points."""
        return self.contours[0].points if self.contours else []

    @property
    def holes(self) -> list[list[Point]]:
        return [c.points for c in self.contours if c.is_hole]

    @property
    def outer(self) -> Contour | None:
        return self.contours[0] if self.contours else None

    @property
    def curve_ids(self) -> list[int]:
        seen: dict[int, None] = {}
        for contour in self.contours:
            for curve_id in contour.curve_ids:
                seen.setdefault(curve_id, None)
        return list(seen)

    @property
    def has_arcs(self) -> bool:
        return any(c.arc_segments for c in self.contours)

    def area(self) -> float:
        """Net area: outer rings minus holes."""
        return sum(
            -abs(c.signed_area()) if c.is_hole else abs(c.signed_area())
            for c in self.contours
        )

    def length(self) -> float:
        """Length of the first contour, including the closing edge when closed."""
        if not self.contours:
            return 0.0
        pts = self.contours[0].to_polyline()
        total = sum(pts[i].distance_to(pts[i + 1]) for i in range(len(pts) - 1))
        if self.closed and len(pts) > 2:
            total += pts[-1].distance_to(pts[0])
        return total

    def bounding_box(self) -> tuple[float, float, float, float]:
        boxes = [c.bounding_box() for c in self.contours if c.points]
        if not boxes:
            return (0.0, 0.0, 0.0, 0.0)
        return (
            min(b[0] for b in boxes),
            min(b[1] for b in boxes),
            max(b[2] for b in boxes),
            max(b[3] for b in boxes),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "closed": self.closed,
            "contours": [c.to_dict() for c in self.contours],
            "curveIds": self.curve_ids,
            "properties": self.properties.to_dict(),
        }


Primitive = Union[Circle, Arc, Rectangle, Obround, Path]
