"""Logging utilities for tracecam."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import structlog

# Handlers installed by the last configure_logging call.
_handlers: list[logging.Handler] = []


@dataclass
class PipelineStats:
    """Statistics from one pipeline run."""

    primitives_in: int = 0
    primitives_dropped: int = 0
    fused_paths: int = 0
    holes_detected: int = 0
    curves_registered: int = 0
    curves_reconstructed: int = 0
    full_circles: int = 0
    partial_arcs: int = 0
    average_coverage: float = 0.0
    offset_passes: int = 0
    offset_failures: int = 0
    fell_back: bool = False
    errors: list[tuple[str, str]] = field(default_factory=list)
    start_time: float | None = None
    end_time: float | None = None

    @property
    def duration_seconds(self) -> float:
        """Calculate processing duration."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0


def configure_logging(
    log_file: Path | None = None,
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    quiet: bool = False,
) -> structlog.stdlib.BoundLogger:
    """Configure dual-output structured logging.

    Calling this again replaces the handlers installed by the previous call.

    Args:
        log_file: Path to log file (no file output if None)
        console_level: Logging level for console output
        file_level: Logging level for file output
        quiet: If True, suppress console output except errors

    Returns:
        Configured structlog logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    while _handlers:
        handler = _handlers.pop()
        root_logger.removeHandler(handler)
        handler.close()

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(getattr(logging, file_level.upper()))
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
        )
        root_logger.addHandler(file_handler)
        _handlers.append(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.ERROR if quiet else getattr(logging, console_level.upper()))
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)
    _handlers.append(console_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("tracecam")
    logger.info(
        "Logging initialized",
        log_file=str(log_file) if log_file else None,
        level=file_level,
    )

    return logger


class PipelineLogger:
    """Logger for tracking pipeline progress and statistics."""

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self._logger = logger or structlog.get_logger("tracecam.pipeline")
        self._stats = PipelineStats()

    def reset(self) -> None:
        self._stats = PipelineStats()

    def log_primitive_dropped(self, index: int, kind: str, reason: str) -> None:
        """Log a primitive dropped during standardization."""
        self._logger.warning("Primitive dropped", index=index, kind=kind, reason=reason)
        self._stats.primitives_dropped += 1

    def log_fusion_complete(
        self,
        primitives_in: int,
        fused_paths: int,
        holes: int,
        duration_ms: float,
    ) -> None:
        """Log a successful fusion."""
        self._logger.info(
            "Fusion complete",
            primitives_in=primitives_in,
            fused_paths=fused_paths,
            holes=holes,
            duration_ms=round(duration_ms, 2),
        )
        self._stats.primitives_in = primitives_in
        self._stats.fused_paths = fused_paths
        self._stats.holes_detected = holes

    def log_reconstruction(self, stats: dict[str, float]) -> None:
        """Log arc reconstruction statistics."""
        self._logger.info("Arc reconstruction", **stats)
        self._stats.curves_registered = int(stats.get("curves_registered", 0))
        self._stats.curves_reconstructed = int(stats.get("reconstructed", 0))
        self._stats.full_circles = int(stats.get("full_circles", 0))
        self._stats.partial_arcs = int(stats.get("partial_arcs", 0))
        self._stats.average_coverage = float(stats.get("average_coverage", 0.0))

    def log_fusion_error(self, error: Exception, traceback: str | None = None) -> None:
        """Log a boolean engine failure that forced the unfused fallback."""
        self._logger.error(
            "Fusion failed, falling back to unfused geometry",
            error=str(error),
            error_type=type(error).__name__,
            traceback=traceback,
        )
        self._stats.fell_back = True
        self._stats.errors.append(("fusion", str(error)))

    def log_offset_pass(self, operation: str, pass_index: int, distance: float, count: int) -> None:
        """Log an offset pass."""
        self._logger.debug(
            "Offset pass generated",
            operation=operation,
            pass_index=pass_index,
            distance=round(distance, 4),
            primitives=count,
        )
        self._stats.offset_passes += 1

    @property
    def stats(self) -> PipelineStats:
        """Get current pipeline statistics."""
        return self._stats
