"""Exception hierarchy for tracecam."""


class TracecamError(Exception):
    """Base exception for all tracecam errors."""

    pass


class InputError(TracecamError):
    """Errors related to loading primitive input files."""

    pass


class InputLoadError(InputError):
    """Error loading a primitive input file."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load primitives from '{path}': {reason}")


class PrimitiveFormatError(InputError):
    """A primitive record is malformed or carries non-finite geometry."""

    def __init__(self, index: int, details: str) -> None:
        self.index = index
        self.details = details
        super().__init__(f"Invalid primitive #{index}: {details}")


class OutputWriteError(TracecamError):
    """Error writing a result file."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write '{path}': {reason}")


class PrimitiveError(TracecamError):
    """Errors related to a single primitive."""

    pass


class InvalidPrimitiveError(PrimitiveError):
    """Primitive lacks the geometry needed to standardize it.

    Recovered locally: the primitive is dropped and the run continues.
    """

    def __init__(self, kind: str, reason: str) -> None:
        self.kind = kind
        self.reason = reason
        super().__init__(f"Invalid {kind} primitive: {reason}")


class GeometryError(TracecamError):
    """Errors in geometric calculations."""

    pass


class BooleanOperationError(GeometryError):
    """The polygon boolean engine rejected its input or failed.

    Not recovered inside the fusion step; callers fall back to unfused
    per-primitive geometry.
    """

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Boolean {operation} failed: {reason}")


class OffsetError(GeometryError):
    """Offsetting a single polygon failed."""

    def __init__(self, distance: float, reason: str) -> None:
        self.distance = distance
        self.reason = reason
        super().__init__(f"Offset by {distance:g}mm failed: {reason}")
