"""tracecam - curve-preserving PCB CAM geometry pipeline.

tracecam turns PCB artwork primitives (circles, arcs, rectangles, obrounds and
paths with dark/clear polarity) into fused copper geometry and machine-ready
toolpaths. Curves are tessellated with per-vertex tags before the polygon
boolean step so that circles and arcs can be reconstructed afterwards.

Example:
    $ tracecam board.json --operation isolation

This will fuse the primitives in board.json, reconstruct arcs and write
board-toolpaths.json with the isolation passes and motion plans.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
