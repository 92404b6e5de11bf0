"""Pipeline orchestration: fusion, offsetting and planning in one run.

Key components:
- CamPipeline: runs the stages in order and falls back to unfused geometry
  when the boolean engine fails
- PipelineResult: everything one run produced
- FusionScheduler: single-worker deferred execution with request coalescing
"""

import threading
import time
import traceback
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import structlog

from tracecam.config import OperationType, TracecamSettings
from tracecam.core.clipper import BooleanEngine, ClipperEngine
from tracecam.core.fusion import GeometryProcessor
from tracecam.core.offset import OffsetEngine
from tracecam.core.planner import ToolpathPlanner
from tracecam.core.registry import CurveRegistry
from tracecam.core.standardizer import PrimitiveStandardizer
from tracecam.domain import Circle, OffsetPass, Polarity, Primitive, ToolpathPlan
from tracecam.exceptions import BooleanOperationError
from tracecam.utils import PipelineLogger, PipelineStats

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class PipelineResult:
    """Output of one pipeline run.

    Attributes:
        fused: Fused copper geometry (or unfused per-primitive polygons after
            a fallback)
        passes: Offset passes keyed by operation name
        plans: Motion plans for every pass, in operation order
        stats: Run statistics
        status: Human-readable outcome
        fell_back: Whether fusion failed and unfused geometry was used
    """

    fused: list[Primitive] = field(default_factory=list)
    passes: dict[str, list[OffsetPass]] = field(default_factory=dict)
    plans: list[ToolpathPlan] = field(default_factory=list)
    stats: PipelineStats = field(default_factory=PipelineStats)
    status: str = "ok"
    fell_back: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "fellBack": self.fell_back,
            "fused": [p.to_dict() for p in self.fused],
            "passes": {op: [p.to_dict() for p in ps] for op, ps in self.passes.items()},
            "plans": [plan.to_dict() for plan in self.plans],
        }


class CamPipeline:
    """Runs standardize -> fuse -> reconstruct -> offset -> plan.

    Example:
        pipeline = CamPipeline(TracecamSettings())
        result = pipeline.run(primitives, [OperationType.ISOLATION])
        result.passes["isolation"][0].distance
    """

    def __init__(
        self,
        settings: TracecamSettings | None = None,
        engine: BooleanEngine | None = None,
        pipeline_logger: PipelineLogger | None = None,
    ) -> None:
        self.settings = settings or TracecamSettings()
        self.engine = engine or ClipperEngine(self.settings.fusion)
        self.registry = CurveRegistry()
        self.processor = GeometryProcessor(self.settings.fusion, self.engine, self.registry)
        self.offset_engine = OffsetEngine(self.engine, self.settings.fusion)
        self.planner = ToolpathPlanner(self.settings.machine, self.settings.drill, self.settings.cutout)
        self.pipeline_logger = pipeline_logger or PipelineLogger()

    def run(
        self,
        primitives: Sequence[Primitive],
        operations: Sequence[OperationType] = (OperationType.ISOLATION,),
        enable_arc_reconstruction: bool | None = None,
        drill_holes: Sequence[Primitive] | None = None,
    ) -> PipelineResult:
        """Run the full pipeline.

        Args:
            primitives: Artwork primitives (dark and clear)
            operations: Toolpath operations to generate, in order
            enable_arc_reconstruction: Override for the configured flag
            drill_holes: Hole primitives for the drill operation; defaults to
                the dark circles among ``primitives``

        Returns:
            PipelineResult; boolean failures are reported in ``status``
            rather than raised
        """
        self.pipeline_logger.reset()
        stats = self.pipeline_logger.stats
        stats.start_time = time.time()
        result = PipelineResult(stats=stats)

        start = time.perf_counter()
        try:
            result.fused = self.processor.fuse(primitives, enable_arc_reconstruction)
        except BooleanOperationError as e:
            self.pipeline_logger.log_fusion_error(e, traceback.format_exc())
            result.fused = self._unfused(primitives)
            result.fell_back = True
            result.status = f"Fusion failed ({e.reason}); using unfused geometry"
        else:
            fusion_stats = self.processor.stats()
            stats.primitives_dropped = int(fusion_stats.get("skipped", 0))
            self.pipeline_logger.log_fusion_complete(
                primitives_in=len(primitives),
                fused_paths=len(result.fused),
                holes=int(fusion_stats.get("holes", 0)),
                duration_ms=(time.perf_counter() - start) * 1000,
            )
            if self.processor.reconstruction_stats:
                self.pipeline_logger.log_reconstruction(self.processor.reconstruction_stats)

        self.offset_engine.failures = 0
        for operation in operations:
            passes = self._generate(operation, result.fused, primitives, drill_holes)
            for offset_pass in passes:
                self.pipeline_logger.log_offset_pass(
                    operation.value,
                    offset_pass.pass_index,
                    offset_pass.distance,
                    len(offset_pass.primitives),
                )
            result.passes[operation.value] = passes
            result.plans.extend(self.planner.plan(passes))
        stats.offset_failures = self.offset_engine.failures

        stats.end_time = time.time()
        logger.info(
            "Pipeline complete",
            status=result.status,
            fused=len(result.fused),
            operations=[op.value for op in operations],
            plans=len(result.plans),
            duration_seconds=round(stats.duration_seconds, 3),
        )
        return result

    def _generate(
        self,
        operation: OperationType,
        fused: list[Primitive],
        primitives: Sequence[Primitive],
        drill_holes: Sequence[Primitive] | None,
    ) -> list[OffsetPass]:
        settings = self.settings
        if operation == OperationType.ISOLATION:
            return self.offset_engine.generate_isolation_paths(fused, settings.isolation)
        if operation == OperationType.CLEARING:
            return self.offset_engine.generate_clearing_paths(fused, settings.clearing)
        if operation == OperationType.CUTOUT:
            return self.offset_engine.generate_cutout_paths(fused, settings.cutout)
        if drill_holes is None:
            drill_holes = [
                p for p in primitives
                if isinstance(p, Circle) and p.properties.polarity == Polarity.DARK
            ]
        return self.offset_engine.generate_drill_paths(drill_holes, settings.drill)

    def _unfused(self, primitives: Sequence[Primitive]) -> list[Primitive]:
        """Per-primitive dark polygons, used when the boolean engine fails."""
        registry = CurveRegistry()
        standardizer = PrimitiveStandardizer(registry, self.settings.fusion)
        result: list[Primitive] = []
        for index, primitive in enumerate(primitives):
            if primitive.properties.polarity == Polarity.CLEAR:
                continue
            path = standardizer.standardize(primitive)
            if path is None:
                self.pipeline_logger.log_primitive_dropped(index, primitive.kind, "not standardizable")
                continue
            result.append(path)
        return result


class FusionScheduler(Generic[T]):
    """Deferred execution of a run function with request coalescing.

    At most one run executes at a time on a single background worker. While a
    run is in flight, further requests share one pending slot: each new
    request replaces the slot's arguments, and exactly one extra run executes
    with the latest arguments once the current run finishes. Every future
    submitted to the slot resolves with that run's result.

    Example:
        scheduler = FusionScheduler(pipeline.run)
        future = scheduler.submit(primitives, [OperationType.ISOLATION])
        result = future.result()
    """

    def __init__(self, run: Callable[..., T]) -> None:
        self._run = run
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tracecam-fusion")
        self._lock = threading.Lock()
        self._running = False
        self._pending: tuple[tuple[Any, ...], dict[str, Any], list[Future[T]]] | None = None
        self.runs = 0

    def submit(self, *args: Any, **kwargs: Any) -> "Future[T]":
        """Request a run; returns a future for its result."""
        future: Future[T] = Future()
        with self._lock:
            if self._running:
                waiters = self._pending[2] if self._pending else []
                waiters.append(future)
                self._pending = (args, kwargs, waiters)
                logger.debug("Run request coalesced", waiting=len(waiters))
                return future
            self._running = True
        self._executor.submit(self._drain, args, kwargs, [future])
        return future

    def _drain(
        self, args: tuple[Any, ...], kwargs: dict[str, Any], waiters: list["Future[T]"]
    ) -> None:
        while True:
            self.runs += 1
            try:
                value = self._run(*args, **kwargs)
            except Exception as e:
                logger.error("Scheduled run failed", error=str(e), error_type=type(e).__name__)
                for waiter in waiters:
                    waiter.set_exception(e)
            else:
                for waiter in waiters:
                    waiter.set_result(value)

            with self._lock:
                if self._pending is None:
                    self._running = False
                    return
                args, kwargs, waiters = self._pending
                self._pending = None

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "FusionScheduler[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()
