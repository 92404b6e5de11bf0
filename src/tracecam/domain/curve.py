"""Analytic curve descriptors stored in the curve registry."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from tracecam.domain.contour import Point


class CurveType(str, Enum):
    """Analytic curve kind."""

    CIRCLE = "circle"
    ARC = "arc"


@dataclass(frozen=True)
class CurveDescriptor:
    """Analytic description of a tessellated curve.

    ``center`` and ``radius`` may be None only on descriptors handed to the
    registry by callers that could not compute them; the registry refuses
    such descriptors and never stores them.

    Attributes:
        type: Circle or arc
        center: Curve centre
        radius: Curve radius
        start_angle: Arc start angle (radians), None for circles
        end_angle: Arc end angle (radians), None for circles
        clockwise: Arc direction
        source: What produced the curve (e.g. "circle", "obround", "end_cap")
        original_point_count: Points emitted when the curve was tessellated
        id: Registry id, 0 until registered
    """

    type: CurveType
    center: Point | None
    radius: float | None
    start_angle: float | None = None
    end_angle: float | None = None
    clockwise: bool = False
    source: str | None = None
    original_point_count: int = 0
    id: int = 0

    @property
    def is_circle(self) -> bool:
        return self.type == CurveType.CIRCLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "center": {"x": self.center.x, "y": self.center.y} if self.center else None,
            "radius": self.radius,
            "startAngle": self.start_angle,
            "endAngle": self.end_angle,
            "clockwise": self.clockwise,
            "source": self.source,
            "originalPointCount": self.original_point_count,
        }
