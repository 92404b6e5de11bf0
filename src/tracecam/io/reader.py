"""Primitive reader for JSON artwork files.

This module provides the PrimitiveReader class for loading primitive files
produced by an upstream Gerber/Excellon/SVG parser.
"""

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import structlog

from tracecam.domain import Primitive
from tracecam.exceptions import InputLoadError
from tracecam.io.converter import primitive_from_dict

logger = structlog.get_logger(__name__)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not allowed")


class PrimitiveReader:
    """Loads a JSON primitive file into domain primitives.

    The document is either ``{"primitives": [...]}`` or a bare list of
    primitive records. An optional top-level ``"drills"`` list holds drill
    hole primitives.

    Example:
        reader = PrimitiveReader(Path("board.json"))
        reader.load()
        for primitive in reader.iter_primitives():
            print(primitive.kind)
    """

    def __init__(self, path: Path) -> None:
        """Initialize the reader.

        Args:
            path: Path to the JSON primitive file
        """
        self._path = path
        self._document: dict[str, Any] | None = None

    def load(self) -> None:
        """Read and decode the file.

        Raises:
            InputLoadError: If the file is missing, is not valid JSON or
                contains NaN/Infinity literals
        """
        if not self._path.exists():
            raise InputLoadError(str(self._path), "file not found")

        try:
            text = self._path.read_text(encoding="utf-8")
            document = json.loads(text, parse_constant=_reject_constant)
        except (OSError, ValueError) as e:
            raise InputLoadError(str(self._path), str(e)) from e

        if isinstance(document, list):
            document = {"primitives": document}
        if not isinstance(document, dict) or not isinstance(document.get("primitives"), list):
            raise InputLoadError(str(self._path), "expected a 'primitives' list")

        self._document = document
        logger.info(
            "Primitives loaded",
            path=str(self._path),
            primitives=len(document["primitives"]),
        )

    def _records(self, key: str) -> list[Any]:
        if self._document is None:
            raise RuntimeError("Primitives not loaded. Call load() first.")
        records = self._document.get(key, [])
        return records if isinstance(records, list) else []

    @property
    def primitive_count(self) -> int:
        return len(self._records("primitives"))

    def iter_primitives(self) -> Iterator[Primitive]:
        """Yield primitives in file order.

        Raises:
            PrimitiveFormatError: On the first malformed record
        """
        for index, record in enumerate(self._records("primitives")):
            yield primitive_from_dict(record, index)

    def read_primitives(self) -> list[Primitive]:
        return list(self.iter_primitives())

    def read_drills(self) -> list[Primitive] | None:
        """Drill hole primitives, or None when the file has no ``drills`` list."""
        if self._document is None:
            raise RuntimeError("Primitives not loaded. Call load() first.")
        if "drills" not in self._document:
            return None
        return [primitive_from_dict(r, i) for i, r in enumerate(self._records("drills"))]

    def __enter__(self) -> "PrimitiveReader":
        """Context manager entry."""
        self.load()
        return self

    def __exit__(self, _exc_type: object, _exc_val: object, _exc_tb: object) -> None:
        """Context manager exit."""
        self._document = None
