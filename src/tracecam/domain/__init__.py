"""Domain models for tracecam.

This module contains the core domain models representing artwork primitives,
contours, curve descriptors and toolpath output. All models are designed to be:

- Immutable where possible (using frozen dataclasses)
- Serializable to plain dictionaries for JSON output
- Independent of the boolean engine's data structures

Key classes:
- Point: A 2D point with curve tag metadata
- Contour: One ring of a polygon
- ArcSegment: A reconstructed arc within a contour
- Circle, Arc, Rectangle, Obround, Path: The primitive sum type
- CurveDescriptor: Analytic curve stored in the registry
- OffsetPass, Tab, MotionCommand, ToolpathPlan: Toolpath output
"""

from tracecam.domain.contour import (
    ArcSegment,
    Contour,
    Point,
    WindingDirection,
    pack_tag,
    unpack_tag,
)
from tracecam.domain.curve import CurveDescriptor, CurveType
from tracecam.domain.primitives import (
    Arc,
    Circle,
    Obround,
    Path,
    Polarity,
    Primitive,
    PrimitiveProperties,
    Rectangle,
)
from tracecam.domain.toolpath import MotionCommand, MotionType, OffsetPass, Tab, ToolpathPlan

__all__: list[str] = [
    # Enums
    "CurveType",
    "MotionType",
    "Polarity",
    "WindingDirection",
    # Core types
    "Arc",
    "ArcSegment",
    "Circle",
    "Contour",
    "CurveDescriptor",
    "MotionCommand",
    "Obround",
    "OffsetPass",
    "Path",
    "Point",
    "Primitive",
    "PrimitiveProperties",
    "Rectangle",
    "Tab",
    "ToolpathPlan",
    # Tag helpers
    "pack_tag",
    "unpack_tag",
]
