"""Fusion of artwork primitives into one copper region."""

import time
from collections.abc import Sequence

import structlog

from tracecam.config import FusionConfig
from tracecam.core.clipper import BooleanEngine, ClipperEngine
from tracecam.core.reconstructor import ArcReconstructor
from tracecam.core.registry import CurveRegistry
from tracecam.core.standardizer import PrimitiveStandardizer
from tracecam.domain import Contour, Path, Polarity, Primitive, PrimitiveProperties

logger = structlog.get_logger(__name__)


def enforce_winding(contours: Sequence[Contour], polarity: Polarity) -> int:
    """Orient contours in place for the non-zero fill rule.

    Dark outer rings wind counter-clockwise and their holes clockwise; clear
    primitives use the opposite orientation so that they subtract.

    Returns:
        Number of contours reversed
    """
    reversed_count = 0
    for contour in contours:
        want_clockwise = contour.is_hole
        if polarity == Polarity.CLEAR:
            want_clockwise = not want_clockwise
        if contour.is_clockwise() != want_clockwise:
            contour.reverse()
            reversed_count += 1
    return reversed_count


def group_rings(
    rings: list[Contour], source: str = "fusion", operation: str | None = None
) -> list[Path]:
    """Group a flat PolyTree walk into paths of one outer ring plus its holes.

    Islands nested inside holes become paths of their own. Winding is
    re-normalised: outer rings counter-clockwise, holes clockwise.
    """
    paths: list[Path] = []
    path_of: dict[int, Path] = {}
    for index, ring in enumerate(rings):
        if ring.is_hole:
            owner = path_of.get(ring.parent_id) if ring.parent_id is not None else None
            if owner is None:
                logger.warning("Hole without enclosing ring dropped", index=index)
                continue
            ring.parent_id = 0
            if not ring.is_clockwise():
                ring.reverse()
            owner.contours.append(ring)
            continue

        ring.parent_id = None
        if ring.is_clockwise():
            ring.reverse()
        path = Path(contours=[ring], closed=True)
        path_of[index] = path
        paths.append(path)

    for path in paths:
        path.properties = PrimitiveProperties(
            polarity=Polarity.DARK,
            fill=True,
            source=source,
            curve_ids=tuple(path.curve_ids),
            operation=operation,
        )
    return paths


class GeometryProcessor:
    """Standardize, fuse and optionally reconstruct a primitive set.

    The processor owns a ``CurveRegistry`` that is cleared at the start of
    every run; pass ``registry`` to ``fuse`` to use a caller-owned one.

    Example:
        processor = GeometryProcessor(FusionConfig())
        fused = processor.fuse([Circle(Point(0, 0), 1.0), Rectangle(...)])
    """

    def __init__(
        self,
        config: FusionConfig | None = None,
        engine: BooleanEngine | None = None,
        registry: CurveRegistry | None = None,
    ) -> None:
        self.config = config or FusionConfig()
        self.engine = engine or ClipperEngine(self.config)
        self.registry = registry if registry is not None else CurveRegistry()
        self._stats: dict[str, float] = {}
        self._reconstruction_stats: dict[str, float] = {}

    def fuse(
        self,
        primitives: Sequence[Primitive],
        enable_arc_reconstruction: bool | None = None,
        registry: CurveRegistry | None = None,
    ) -> list[Primitive]:
        """Fuse primitives: dark regions minus clear regions.

        Args:
            primitives: Input primitives of any variant and polarity
            enable_arc_reconstruction: Override for
                ``FusionConfig.enable_arc_reconstruction``
            registry: Registry to use for this run instead of the processor's

        Returns:
            Closed paths with ``is_hole`` contours (and ``Circle`` primitives
            when reconstruction recovers a lone full circle)

        Raises:
            BooleanOperationError: If the boolean engine fails
        """
        start = time.perf_counter()
        if registry is None:
            registry = self.registry
        registry.clear()
        self._stats = {
            "primitives": len(primitives),
            "dark": 0,
            "clear": 0,
            "skipped": 0,
            "reversed": 0,
            "paths": 0,
            "holes": 0,
        }
        self._reconstruction_stats = {}

        standardizer = PrimitiveStandardizer(registry, self.config)
        dark: list[Contour] = []
        clear: list[Contour] = []
        for index, primitive in enumerate(primitives):
            path = standardizer.standardize(primitive)
            if path is None:
                self._stats["skipped"] += 1
                logger.debug("Primitive skipped", index=index, kind=getattr(primitive, "kind", None))
                continue

            polarity = path.properties.polarity
            self._stats["reversed"] += enforce_winding(path.contours, polarity)
            if polarity == Polarity.CLEAR:
                clear.extend(path.contours)
                self._stats["clear"] += 1
            else:
                dark.extend(path.contours)
                self._stats["dark"] += 1

        if not dark:
            if clear:
                logger.warning("Only clear primitives supplied, nothing to fuse", clear=len(clear))
            return []

        if clear:
            rings = self.engine.difference(dark, clear)
        else:
            rings = self.engine.union(dark)

        paths = group_rings(rings)
        self._stats["paths"] = len(paths)
        self._stats["holes"] = sum(len(p.holes) for p in paths)

        logger.info(
            "Fusion complete",
            dark=self._stats["dark"],
            clear=self._stats["clear"],
            skipped=self._stats["skipped"],
            paths=len(paths),
            holes=self._stats["holes"],
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )

        if enable_arc_reconstruction is None:
            enable_arc_reconstruction = self.config.enable_arc_reconstruction
        if not enable_arc_reconstruction:
            return list(paths)

        reconstructor = ArcReconstructor(registry, self.config)
        result = reconstructor.reconstruct(paths)
        self._reconstruction_stats = reconstructor.stats()
        return result

    def stats(self) -> dict[str, float]:
        """Counters from the last run, including reconstruction statistics."""
        stats = dict(self._stats)
        for key, value in self._reconstruction_stats.items():
            stats[f"reconstruction_{key}"] = value
        return stats

    @property
    def reconstruction_stats(self) -> dict[str, float]:
        return dict(self._reconstruction_stats)
