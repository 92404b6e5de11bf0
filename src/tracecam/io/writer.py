"""Result writer for pipeline output.

This module provides the ResultWriter class for saving fused geometry,
offset passes and motion plans as JSON.
"""

import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any

from tracecam import __version__
from tracecam.core.pipeline import PipelineResult
from tracecam.exceptions import OutputWriteError


def build_document(result: PipelineResult, curves: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    """Assemble the JSON document for one pipeline result.

    Args:
        result: Pipeline output
        curves: Registered curve descriptors as dictionaries, if wanted

    Returns:
        JSON-serializable dictionary
    """
    stats = asdict(result.stats)
    stats["errors"] = [list(e) for e in result.stats.errors]
    document: dict[str, Any] = {
        "generator": f"tracecam {__version__}",
        "created": datetime.now().strftime("%Y-%m-%dT%H:%M:%S"),
        **result.to_dict(),
        "stats": stats,
    }
    if curves is not None:
        document["curves"] = curves
    return document


class ResultWriter:
    """Writes pipeline results as JSON.

    Example:
        writer = ResultWriter(Path("board-toolpaths.json"))
        writer.write(result)
    """

    def __init__(self, output_path: Path, indent: int | None = 2) -> None:
        """Initialize the writer.

        Args:
            output_path: Path where the JSON document will be saved
            indent: JSON indentation (None for compact output)
        """
        self._output_path = output_path
        self._indent = indent

    def write(self, result: PipelineResult, curves: list[dict[str, Any]] | None = None) -> None:
        """Serialize and save a pipeline result.

        Raises:
            OutputWriteError: If the file cannot be written
        """
        document = build_document(result, curves)
        try:
            self._output_path.write_text(
                json.dumps(document, indent=self._indent, allow_nan=False),
                encoding="utf-8",
            )
        except (OSError, ValueError) as e:
            raise OutputWriteError(str(self._output_path), str(e)) from e

    @staticmethod
    def get_output_path(input_path: Path) -> Path:
        """Generate the default output path for an input file.

        Converts: board.json -> board-toolpaths.json

        Args:
            input_path: Primitive input file path

        Returns:
            Path with -toolpaths suffix before the extension
        """
        return input_path.parent / f"{input_path.stem}-toolpaths.json"
