"""Offset passes, holding tabs and structured motion commands.

These types are the output contract of the core: the offset engine produces
``OffsetPass`` objects and the planner turns them into ``ToolpathPlan``
command lists for an external G-code post-processor.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from tracecam.domain.contour import Point
from tracecam.domain.primitives import Primitive


@dataclass(frozen=True)
class Tab:
    """A holding tab left uncut along a cutout path.

    Attributes:
        start_distance: Arc length along the path where the tab begins
        end_distance: Arc length where the tab ends (may wrap past the start)
        start: Point on the path at ``start_distance``
        end: Point on the path at ``end_distance``
    """

    start_distance: float
    end_distance: float
    start: Point
    end: Point

    @property
    def width(self) -> float:
        return self.end_distance - self.start_distance

    def to_dict(self) -> dict[str, Any]:
        return {
            "startDistance": self.start_distance,
            "endDistance": self.end_distance,
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
        }


@dataclass(frozen=True)
class OffsetPass:
    """One set of toolpath primitives generated by the offset engine.

    Never mutated after creation; recomputing an operation replaces the whole
    list of passes.

    Attributes:
        pass_index: Zero-based pass number
        distance: Signed offset from the original boundary (negative = inward)
        combined: Whether the per-polygon results were unioned
        operation: Operation name (isolation, clearing, cutout, drill)
        primitives: Toolpath geometry of this pass
        tabs: Holding tabs (cutout only)
    """

    pass_index: int
    distance: float
    combined: bool
    operation: str
    primitives: tuple[Primitive, ...] = ()
    tabs: tuple[Tab, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "pass": self.pass_index,
            "distance": self.distance,
            "combined": self.combined,
            "operation": self.operation,
            "primitives": [p.to_dict() for p in self.primitives],
            "tabs": [t.to_dict() for t in self.tabs],
        }


class MotionType(str, Enum):
    """Kinds of machine motion handed to the G-code emitter."""

    RAPID = "RAPID"
    LINEAR = "LINEAR"
    ARC_CW = "ARC_CW"
    ARC_CCW = "ARC_CCW"
    PLUNGE = "PLUNGE"
    RETRACT = "RETRACT"
    DWELL = "DWELL"


@dataclass(frozen=True, slots=True)
class MotionCommand:
    """A single motion; unset axes keep their previous value.

    ``i`` and ``j`` are arc centre offsets relative to the move's start point.
    """

    type: MotionType
    x: float | None = None
    y: float | None = None
    z: float | None = None
    i: float | None = None
    j: float | None = None
    f: float | None = None
    dwell: float | None = None
    comment: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type.value}
        for name in ("x", "y", "z", "i", "j", "f", "dwell", "comment"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


@dataclass
class ToolpathPlan:
    """Ordered motion commands for one offset pass."""

    operation: str
    pass_index: int = 0
    commands: list[MotionCommand] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def add_rapid(self, x: float | None = None, y: float | None = None, z: float | None = None) -> None:
        self.commands.append(MotionCommand(MotionType.RAPID, x=x, y=y, z=z))

    def add_linear(
        self, x: float | None, y: float | None, z: float | None = None, feed: float | None = None
    ) -> None:
        self.commands.append(MotionCommand(MotionType.LINEAR, x=x, y=y, z=z, f=feed))

    def add_plunge(self, z: float, feed: float) -> None:
        self.commands.append(MotionCommand(MotionType.PLUNGE, z=z, f=feed))

    def add_retract(self, z: float) -> None:
        self.commands.append(MotionCommand(MotionType.RETRACT, z=z))

    def add_arc(
        self, x: float, y: float, i: float, j: float, clockwise: bool, feed: float | None = None
    ) -> None:
        kind = MotionType.ARC_CW if clockwise else MotionType.ARC_CCW
        self.commands.append(MotionCommand(kind, x=x, y=y, i=i, j=j, f=feed))

    def add_dwell(self, seconds: float) -> None:
        self.commands.append(MotionCommand(MotionType.DWELL, dwell=seconds))

    @property
    def has_arcs(self) -> bool:
        return any(c.type in (MotionType.ARC_CW, MotionType.ARC_CCW) for c in self.commands)

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "pass": self.pass_index,
            "metadata": self.metadata,
            "commands": [c.to_dict() for c in self.commands],
        }
