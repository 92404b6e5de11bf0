"""Configuration settings for tracecam."""

import math
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class OperationType(str, Enum):
    """Toolpath operation generated from fused geometry."""

    ISOLATION = "isolation"
    CLEARING = "clearing"
    CUTOUT = "cutout"
    DRILL = "drill"


class ClearingPattern(str, Enum):
    """Raster pattern used for copper clearing."""

    PARALLEL = "parallel"
    CROSSHATCH = "crosshatch"


class FillRule(str, Enum):
    """Polygon fill rule for boolean operations."""

    NONZERO = "nonzero"
    EVENODD = "evenodd"
    POSITIVE = "positive"
    NEGATIVE = "negative"


class FusionConfig(BaseModel):
    """Configuration for tessellation, boolean fusion and arc reconstruction.

    All lengths are in millimetres. The fixed-point scale is the number of
    boolean-engine integer units per millimetre.
    """

    scale: int = Field(
        default=10_000,
        ge=100,
        le=1_000_000,
        description="Fixed-point units per millimetre for the boolean engine",
    )
    circle_segments: int = Field(
        default=128,
        ge=32,
        le=1024,
        description="Tessellation segments for a full circle",
    )
    min_arc_segments: int = Field(
        default=32,
        ge=2,
        le=512,
        description="Minimum tessellation segments for any arc",
    )
    enable_arc_reconstruction: bool = Field(
        default=True,
        description="Recover circles and arcs from tagged points after fusion",
    )
    reconstruction_tolerance: float = Field(
        default=0.01,
        gt=0.0,
        le=1.0,
        description="Allowed radial deviation of a point from its registered curve (mm)",
    )
    fill_rule: FillRule = Field(
        default=FillRule.NONZERO,
        description="Fill rule for union and difference",
    )
    preserve_collinear: bool = Field(
        default=True,
        description="Keep collinear vertices through boolean operations",
    )

    @property
    def unit(self) -> float:
        """Size of one fixed-point unit in millimetres."""
        return 1.0 / self.scale

    def arc_segments(self, span: float) -> int:
        """Number of tessellation segments for an arc spanning ``span`` radians.

        A full turn gets ``circle_segments``; shorter spans scale down
        proportionally but never below ``min_arc_segments``.
        """
        fraction = min(abs(span), 2 * math.pi) / (2 * math.pi)
        return max(self.min_arc_segments, math.ceil(self.circle_segments * fraction))


class IsolationSettings(BaseModel):
    """Configuration for multi-pass isolation routing."""

    tool_diameter: float = Field(default=0.1, gt=0.0, description="Tool diameter (mm)")
    passes: int = Field(default=2, ge=1, le=20, description="Number of isolation passes")
    overlap: float = Field(
        default=50.0,
        ge=0.0,
        lt=100.0,
        description="Overlap between passes as percentage of tool diameter",
    )
    combine_passes: bool = Field(
        default=True,
        description="Union the per-polygon offsets of each pass",
    )

    @property
    def tool_radius(self) -> float:
        return self.tool_diameter / 2

    @property
    def step_distance(self) -> float:
        return self.tool_diameter * (1 - self.overlap / 100)


class ClearingSettings(BaseModel):
    """Configuration for copper clearing."""

    tool_diameter: float = Field(default=0.8, gt=0.0, description="Tool diameter (mm)")
    overlap: float = Field(
        default=50.0,
        ge=0.0,
        lt=100.0,
        description="Overlap between raster lines as percentage of tool diameter",
    )
    pattern: ClearingPattern = Field(
        default=ClearingPattern.PARALLEL,
        description="Raster pattern",
    )
    angle: float = Field(default=0.0, description="Raster angle in degrees")

    @property
    def stepover(self) -> float:
        return self.tool_diameter * (1 - self.overlap / 100)


class CutoutSettings(BaseModel):
    """Configuration for board cutout."""

    tool_diameter: float = Field(default=1.0, gt=0.0, description="Tool diameter (mm)")
    tabs: int = Field(default=4, ge=0, le=64, description="Number of holding tabs")
    tab_width: float = Field(default=3.0, ge=0.0, description="Tab width along the path (mm)")
    tab_height: float = Field(
        default=0.5,
        ge=0.0,
        description="Material left under a tab (mm)",
    )

    @property
    def tool_radius(self) -> float:
        return self.tool_diameter / 2


class DrillSettings(BaseModel):
    """Configuration for drilling."""

    tool_diameter: float = Field(default=1.0, gt=0.0, description="Drill diameter (mm)")
    peck_depth: float = Field(default=0.0, ge=0.0, description="Peck increment, 0 = single plunge")
    dwell_time: float = Field(default=0.1, ge=0.0, description="Dwell at the bottom (s)")


class MachineSettings(BaseModel):
    """Depths and feeds used when planning motion commands."""

    travel_z: float = Field(default=2.0, description="Z height for rapid moves (mm)")
    cut_depth: float = Field(default=-0.1, le=0.0, description="Isolation/clearing depth (mm)")
    cutout_depth: float = Field(default=-1.8, le=0.0, description="Cutout depth (mm)")
    drill_depth: float = Field(default=-1.8, le=0.0, description="Drill depth (mm)")
    cut_feed: float = Field(default=150.0, gt=0.0, description="Cutting feed (mm/min)")
    plunge_feed: float = Field(default=50.0, gt=0.0, description="Plunge feed (mm/min)")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file",
    )
    log_level: str = Field(
        default="WARNING",
        description="Console log level",
    )
    file_log_level: str = Field(
        default="DEBUG",
        description="File log level (more verbose)",
    )


class TracecamSettings(BaseModel):
    """Main application settings."""

    fusion: FusionConfig = Field(default_factory=FusionConfig)
    isolation: IsolationSettings = Field(default_factory=IsolationSettings)
    clearing: ClearingSettings = Field(default_factory=ClearingSettings)
    cutout: CutoutSettings = Field(default_factory=CutoutSettings)
    drill: DrillSettings = Field(default_factory=DrillSettings)
    machine: MachineSettings = Field(default_factory=MachineSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_settings() -> TracecamSettings:
    """Get default application settings."""
    return TracecamSettings()
