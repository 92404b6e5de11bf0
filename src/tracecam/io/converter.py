"""Converters between JSON records and domain primitives.

Input records use camelCase keys, matching the output written by
``ResultWriter``:

    {"type": "circle", "center": {"x": 0, "y": 0}, "radius": 0.8,
     "properties": {"polarity": "dark"}}

Paths accept either ``points`` (plus optional ``holes``) or a full
``contours`` list.
"""

import math
from collections.abc import Callable
from typing import Any

from tracecam.domain import (
    Arc,
    Circle,
    Contour,
    Obround,
    Path,
    Point,
    Primitive,
    PrimitiveProperties,
    Rectangle,
)
from tracecam.exceptions import PrimitiveFormatError


def _check_finite(value: Any, index: int, name: str) -> None:
    """Recursively reject NaN and infinite numbers."""
    if isinstance(value, bool):
        return
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise PrimitiveFormatError(index, f"non-finite value in '{name}'")
    elif isinstance(value, dict):
        for key, item in value.items():
            _check_finite(item, index, f"{name}.{key}" if name else str(key))
    elif isinstance(value, list):
        for i, item in enumerate(value):
            _check_finite(item, index, f"{name}[{i}]")


def _point(data: Any, index: int, name: str) -> Point:
    if not isinstance(data, dict) or "x" not in data or "y" not in data:
        raise PrimitiveFormatError(index, f"'{name}' must be an object with x and y")
    try:
        return Point.from_dict(data)
    except (TypeError, ValueError) as e:
        raise PrimitiveFormatError(index, f"invalid '{name}': {e}") from e


def _number(data: dict[str, Any], key: str, index: int, default: float | None = None) -> float:
    if key not in data:
        if default is None:
            raise PrimitiveFormatError(index, f"missing '{key}'")
        return default
    try:
        return float(data[key])
    except (TypeError, ValueError) as e:
        raise PrimitiveFormatError(index, f"invalid '{key}': {data[key]!r}") from e


def _circle(data: dict[str, Any], index: int, properties: PrimitiveProperties) -> Circle:
    return Circle(
        center=_point(data.get("center"), index, "center"),
        radius=_number(data, "radius", index),
        properties=properties,
    )


def _arc(data: dict[str, Any], index: int, properties: PrimitiveProperties) -> Arc:
    return Arc(
        center=_point(data.get("center"), index, "center"),
        radius=_number(data, "radius", index),
        start_angle=_number(data, "startAngle", index),
        end_angle=_number(data, "endAngle", index),
        clockwise=bool(data.get("clockwise", False)),
        properties=properties,
    )


def _rectangle(data: dict[str, Any], index: int, properties: PrimitiveProperties) -> Rectangle:
    return Rectangle(
        origin=_point(data.get("origin"), index, "origin"),
        width=_number(data, "width", index),
        height=_number(data, "height", index),
        properties=properties,
    )


def _obround(data: dict[str, Any], index: int, properties: PrimitiveProperties) -> Obround:
    return Obround(
        origin=_point(data.get("origin"), index, "origin"),
        width=_number(data, "width", index),
        height=_number(data, "height", index),
        properties=properties,
    )


def _path(data: dict[str, Any], index: int, properties: PrimitiveProperties) -> Path:
    closed = bool(data.get("closed", True))
    if "contours" in data:
        try:
            contours = [Contour.from_dict(c) for c in data["contours"]]
        except (KeyError, TypeError, ValueError) as e:
            raise PrimitiveFormatError(index, f"invalid contours: {e}") from e
        return Path(contours=contours, closed=closed, properties=properties)

    raw_points = data.get("points")
    if not isinstance(raw_points, list) or not raw_points:
        raise PrimitiveFormatError(index, "path needs 'points' or 'contours'")
    points = [_point(p, index, f"points[{i}]") for i, p in enumerate(raw_points)]
    holes = [
        [_point(p, index, "holes") for p in hole]
        for hole in data.get("holes", [])
    ]
    return Path.from_points(points, holes=holes, closed=closed, properties=properties)


_BUILDERS: dict[str, Callable[[dict[str, Any], int, PrimitiveProperties], Primitive]] = {
    "circle": _circle,
    "arc": _arc,
    "rectangle": _rectangle,
    "obround": _obround,
    "path": _path,
}


def primitive_from_dict(data: Any, index: int = 0) -> Primitive:
    """Convert one JSON record to a domain primitive.

    Args:
        data: Decoded JSON object
        index: Position of the record in the input, for error messages

    Returns:
        Domain primitive

    Raises:
        PrimitiveFormatError: If the record is malformed, has an unknown
            type or carries non-finite numbers
    """
    if not isinstance(data, dict):
        raise PrimitiveFormatError(index, "record must be an object")

    _check_finite(data, index, "")

    kind = data.get("type")
    builder = _BUILDERS.get(kind) if isinstance(kind, str) else None
    if builder is None:
        raise PrimitiveFormatError(index, f"unknown primitive type {kind!r}")

    properties_data = data.get("properties", {})
    if not isinstance(properties_data, dict):
        raise PrimitiveFormatError(index, "'properties' must be an object")
    # Top-level polarity and strokeWidth are accepted as shorthands.
    for key in ("polarity", "strokeWidth", "fill", "source"):
        if key in data and key not in properties_data:
            properties_data = {**properties_data, key: data[key]}
    try:
        properties = PrimitiveProperties.from_dict(properties_data)
    except (TypeError, ValueError) as e:
        raise PrimitiveFormatError(index, f"invalid properties: {e}") from e

    return builder(data, index, properties)
