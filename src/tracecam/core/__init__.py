"""Core processing algorithms for tracecam.

This module contains the core algorithms for:

- Geometry helpers (signed area, angles, arc tessellation, arc length)
- Curve registration and primitive standardization
- Polygon booleans through the pyclipper adapter
- Fusion and arc reconstruction
- Offset toolpaths, holding tabs and motion planning

Key classes:
- CurveRegistry: Curve id store with hash dedup
- PrimitiveStandardizer: Primitive variants to tagged polygons
- ClipperEngine: Boolean engine adapter preserving curve tags
- GeometryProcessor: Fusion orchestrator
- ArcReconstructor: Recovers circles and arcs after fusion
- OffsetEngine: Isolation, clearing, cutout and drill passes
- ToolpathPlanner: Offset passes to motion commands
- CamPipeline / FusionScheduler: Full runs and deferred execution
"""

from tracecam.core.clipper import (
    BooleanEngine,
    ClipperEngine,
    IntersectionCallback,
    prefer_lower_curve,
)
from tracecam.core.fusion import GeometryProcessor, enforce_winding, group_rings
from tracecam.core.offset import OffsetEngine
from tracecam.core.pipeline import CamPipeline, FusionScheduler, PipelineResult
from tracecam.core.planner import ToolpathPlanner
from tracecam.core.reconstructor import ArcReconstructor
from tracecam.core.registry import CurveRegistry
from tracecam.core.standardizer import PrimitiveStandardizer
from tracecam.core.tabs import insert_tabs

__all__ = [
    # Reconstruction
    "ArcReconstructor",
    # Boolean engine
    "BooleanEngine",
    # Pipeline
    "CamPipeline",
    "ClipperEngine",
    # Registry
    "CurveRegistry",
    "FusionScheduler",
    # Fusion
    "GeometryProcessor",
    "IntersectionCallback",
    # Offsetting
    "OffsetEngine",
    "PipelineResult",
    # Standardization
    "PrimitiveStandardizer",
    # Planning
    "ToolpathPlanner",
    "enforce_winding",
    "group_rings",
    "insert_tabs",
    "prefer_lower_curve",
]
