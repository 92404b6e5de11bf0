"""JSON I/O layer for tracecam.

This module handles reading primitive files and writing pipeline results.
It provides a clean abstraction layer between JSON documents and the
domain models.

Key responsibilities:
- Load primitive files (``{"primitives": [...]}``)
- Convert JSON records to domain primitives, rejecting non-finite numbers
- Write fused geometry, offset passes and motion plans

Key classes:
- PrimitiveReader: Load primitives
- ResultWriter: Save pipeline results
"""

from tracecam.io.converter import primitive_from_dict
from tracecam.io.reader import PrimitiveReader
from tracecam.io.writer import ResultWriter, build_document

__all__ = [
    "PrimitiveReader",
    "ResultWriter",
    "build_document",
    "primitive_from_dict",
]
