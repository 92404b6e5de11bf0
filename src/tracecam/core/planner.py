"""Toolpath planning: offset passes to structured motion commands.

The planner emits machine-neutral ``MotionCommand`` lists. Formatting them as
G-code for a particular controller is left to an external post-processor.
"""

import math
from collections.abc import Sequence

import structlog

from tracecam.config import CutoutSettings, DrillSettings, MachineSettings, OperationType
from tracecam.domain import Circle, Contour, OffsetPass, Path, Point, Primitive, Tab, ToolpathPlan

logger = structlog.get_logger(__name__)

# Points closer than this are treated as the same machine position.
POSITION_EPSILON = 1e-6


def _same_position(a: Point, b: Point) -> bool:
    return abs(a.x - b.x) < POSITION_EPSILON and abs(a.y - b.y) < POSITION_EPSILON


class ToolpathPlanner:
    """Turns offset passes into ordered motion commands.

    Example:
        planner = ToolpathPlanner(MachineSettings())
        plans = planner.plan(isolation_passes)
        plans[0].commands[0].type  # MotionType.RETRACT
    """

    def __init__(
        self,
        machine: MachineSettings | None = None,
        drill: DrillSettings | None = None,
        cutout: CutoutSettings | None = None,
    ) -> None:
        self.machine = machine or MachineSettings()
        self.drill = drill or DrillSettings()
        self.cutout = cutout or CutoutSettings()

    def plan(self, passes: Sequence[OffsetPass]) -> list[ToolpathPlan]:
        """Plan one ``ToolpathPlan`` per offset pass, in pass order."""
        plans = []
        for offset_pass in passes:
            if offset_pass.operation == OperationType.DRILL.value:
                plan = self._plan_drill(offset_pass)
            else:
                plan = self._plan_milling(offset_pass)
            logger.debug(
                "Toolpath planned",
                operation=plan.operation,
                pass_index=plan.pass_index,
                commands=len(plan.commands),
            )
            plans.append(plan)
        return plans

    def _depth(self, operation: str) -> float:
        if operation == OperationType.CUTOUT.value:
            return self.machine.cutout_depth
        if operation == OperationType.DRILL.value:
            return self.machine.drill_depth
        return self.machine.cut_depth

    def _plan_milling(self, offset_pass: OffsetPass) -> ToolpathPlan:
        depth = self._depth(offset_pass.operation)
        plan = ToolpathPlan(
            operation=offset_pass.operation,
            pass_index=offset_pass.pass_index,
            metadata={
                "distance": offset_pass.distance,
                "depth": depth,
                "primitives": len(offset_pass.primitives),
                "tabs": len(offset_pass.tabs),
            },
        )
        plan.add_retract(self.machine.travel_z)

        # Set when the previous cut ended at a tab whose far side starts this one.
        continuing = False
        for primitive in offset_pass.primitives:
            start = self._start_point(primitive)
            if start is None:
                continue
            if not continuing:
                self._enter(plan, start, depth)

            self._cut(plan, primitive)

            end = self._end_point(primitive)
            tab = self._tab_at(offset_pass.tabs, end)
            continuing = False
            if tab is not None:
                tab_z = depth + self.cutout.tab_height
                plan.add_linear(None, None, z=tab_z, feed=self.machine.plunge_feed)
                plan.add_linear(tab.end.x, tab.end.y, feed=self.machine.cut_feed)
                next_start = self._next_start(offset_pass.primitives, primitive)
                if next_start is not None and _same_position(next_start, tab.end):
                    plan.add_plunge(depth, self.machine.plunge_feed)
                    continuing = True
            if not continuing:
                plan.add_retract(self.machine.travel_z)

        if continuing:
            plan.add_retract(self.machine.travel_z)
        return plan

    def _enter(self, plan: ToolpathPlan, start: Point, depth: float) -> None:
        plan.add_rapid(start.x, start.y)
        plan.add_plunge(depth, self.machine.plunge_feed)

    @staticmethod
    def _next_start(primitives: Sequence[Primitive], current: Primitive) -> Point | None:
        for i, primitive in enumerate(primitives):
            if primitive is current and i + 1 < len(primitives):
                return ToolpathPlanner._start_point(primitives[i + 1])
        return None

    @staticmethod
    def _tab_at(tabs: Sequence[Tab], point: Point | None) -> Tab | None:
        if point is None:
            return None
        for tab in tabs:
            if _same_position(tab.start, point):
                return tab
        return None

    @staticmethod
    def _start_point(primitive: Primitive) -> Point | None:
        if isinstance(primitive, Circle):
            return Point(primitive.center.x + primitive.radius, primitive.center.y)
        if isinstance(primitive, Path) and primitive.points:
            return primitive.points[0]
        return None

    @staticmethod
    def _end_point(primitive: Primitive) -> Point | None:
        if isinstance(primitive, Path) and primitive.points:
            return primitive.points[0] if primitive.closed else primitive.points[-1]
        return ToolpathPlanner._start_point(primitive)

    def _cut(self, plan: ToolpathPlan, primitive: Primitive) -> None:
        feed = self.machine.cut_feed
        if isinstance(primitive, Circle):
            plan.add_arc(
                primitive.center.x + primitive.radius,
                primitive.center.y,
                i=-primitive.radius,
                j=0.0,
                clockwise=False,
                feed=feed,
            )
            return
        if not isinstance(primitive, Path):
            return

        for index, contour in enumerate(primitive.contours):
            if not contour.points:
                continue
            if index > 0:
                # Holes start from their own first vertex.
                plan.add_retract(self.machine.travel_z)
                self._enter(plan, contour.points[0], self._depth(plan.operation))
            self._cut_contour(plan, contour, primitive.closed, feed)

    @staticmethod
    def _cut_contour(plan: ToolpathPlan, contour: Contour, closed: bool, feed: float) -> None:
        points = contour.points
        n = len(points)
        arcs = {arc.start_index: arc for arc in contour.arc_segments}
        i = 0
        while i < n:
            arc = arcs.get(i)
            if arc is not None:
                start = points[i]
                end = start if arc.is_full_circle else points[arc.end_index % n]
                plan.add_arc(
                    end.x,
                    end.y,
                    i=arc.center.x - start.x,
                    j=arc.center.y - start.y,
                    clockwise=arc.clockwise,
                    feed=feed,
                )
                if arc.is_full_circle or arc.end_index <= i:
                    i += 1
                    continue
                i = arc.end_index
                continue
            if i + 1 < n:
                nxt = points[i + 1]
                plan.add_linear(nxt.x, nxt.y, feed=feed)
            elif closed and n > 1:
                plan.add_linear(points[0].x, points[0].y, feed=feed)
            i += 1

    def _plan_drill(self, offset_pass: OffsetPass) -> ToolpathPlan:
        machine = self.machine
        plan = ToolpathPlan(
            operation=offset_pass.operation,
            pass_index=offset_pass.pass_index,
            metadata={
                "holes": len(offset_pass.primitives),
                "depth": machine.drill_depth,
                "peck_depth": self.drill.peck_depth,
            },
        )
        plan.add_retract(machine.travel_z)
        for primitive in offset_pass.primitives:
            if not isinstance(primitive, Circle):
                continue
            plan.add_rapid(primitive.center.x, primitive.center.y)
            if self.drill.peck_depth > 0:
                pecks = math.ceil(abs(machine.drill_depth) / self.drill.peck_depth)
                for k in range(1, pecks + 1):
                    z = max(machine.drill_depth, -k * self.drill.peck_depth)
                    plan.add_plunge(z, machine.plunge_feed)
                    if k < pecks:
                        plan.add_retract(machine.travel_z)
            else:
                plan.add_plunge(machine.drill_depth, machine.plunge_feed)
            if self.drill.dwell_time > 0:
                plan.add_dwell(self.drill.dwell_time)
            plan.add_retract(machine.travel_z)
        return plan
