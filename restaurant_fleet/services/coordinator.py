"""Robot task lifecycle: assignment, route stepping, arrival and return."""

from __future__ import annotations

import asyncio
import enum
import functools
import math
from collections import defaultdict
from contextlib import suppress
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

import structlog

from restaurant_fleet.enterprise.config.settings import AppSettings, get_settings
from restaurant_fleet.enterprise.core import (
    MID_TASK_STATUSES,
    Facing,
    GridPosition,
    OrderStatus,
    Robot,
    RobotPosition,
    RobotStatus,
    RobotTask,
    TaskType,
)
from restaurant_fleet.errors import NotFoundError, OrderNotFoundError, TransientStoreError
from restaurant_fleet.grid import Grid
from restaurant_fleet.observability.metrics import (
    DELIVERY_COUNTER,
    EMERGENCY_STOP_COUNTER,
    ROBOT_STEP_COUNTER,
    record_assignment,
)
from restaurant_fleet.observability.tracing import get_tracer
from restaurant_fleet.pathfinding import AStarPathfinder
from restaurant_fleet.persistence.base import FleetRepository
from restaurant_fleet.services.events import FleetEventPublisher
from restaurant_fleet.services.messaging import MessageBus
from restaurant_fleet.smoothing import PathSmoother

logger = structlog.get_logger(__name__)
_tracer = get_tracer(__name__)

_DRIVING_STATUSES = frozenset({RobotStatus.NAVIGATING, RobotStatus.RETURNING})
_CLOSED_ORDER_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


class AssignmentOutcome(str, enum.Enum):
    ASSIGNED = "assigned"
    ALREADY_ASSIGNED = "already_assigned"
    NO_AVAILABLE_ROBOT = "no_available_robot"
    ROUTE_NOT_FOUND = "route_not_found"


@dataclass
class AssignmentResult:
    outcome: AssignmentOutcome
    order_id: str
    robot_id: Optional[str] = None
    route: List[GridPosition] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome is AssignmentOutcome.ASSIGNED


class StepOutcome(str, enum.Enum):
    MOVED = "moved"
    ARRIVED = "arrived"
    RETURNED = "returned"
    SKIPPED = "skipped"
    RETURN_ROUTE_NOT_FOUND = "return_route_not_found"


@dataclass
class StepResult:
    outcome: StepOutcome
    robot_id: str
    status: Optional[RobotStatus] = None
    position: Optional[RobotPosition] = None
    progress: Optional[float] = None


def facing_between(previous: GridPosition, current: GridPosition) -> Facing:
    """Direction of travel for a step; a zero-length step faces north."""

    dx = current.x - previous.x
    dy = current.y - previous.y
    if abs(dx) > abs(dy):
        return Facing.EAST if dx > 0 else Facing.WEST
    return Facing.SOUTH if dy > 0 else Facing.NORTH


def _log_abandoned_step(robot_id: str, step: "asyncio.Future[StepResult]") -> None:
    """Report a step that failed after its movement task was cancelled."""

    if step.cancelled():
        return
    exc = step.exception()
    if exc is not None:
        logger.error("robot_step_abandoned", robot_id=robot_id, error=str(exc), error_type=type(exc).__name__)


class FleetCoordinator:
    """Owns every write to robot navigation fields.

    Each operation re-reads the robot from the repository under that robot's
    lock, so concurrent operator edits between steps are respected and two
    operations never interleave on the same robot. Assignment is additionally
    serialised fleet-wide so one idle robot can never be handed two orders.
    """

    def __init__(
        self,
        repository: FleetRepository,
        bus: MessageBus,
        settings: Optional[AppSettings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.repository = repository
        self.events = FleetEventPublisher(bus, self.settings.messaging.topic_prefix)
        self.grid: Optional[Grid] = None
        self.pathfinder: Optional[AStarPathfinder] = None
        self.smoother: Optional[PathSmoother] = None
        self.depot: Optional[GridPosition] = None
        self._init_lock = asyncio.Lock()
        self._assignment_lock = asyncio.Lock()
        self._robot_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._tasks: Dict[str, asyncio.Task] = {}

    async def initialize(self) -> None:
        """Load the floor layout once and build the navigation grid."""

        async with self._init_lock:
            if self.grid is not None:
                return
            layout_id = self.settings.fleet.layout_id
            layout = await self.repository.get_layout(layout_id)
            grid = Grid.from_layout(layout)
            self.pathfinder = AStarPathfinder(grid)
            self.smoother = PathSmoother(grid)
            self.depot = layout.locations.kitchen
            self.grid = grid
            logger.info(
                "navigation_initialised",
                layout_id=layout_id,
                width=grid.width,
                height=grid.height,
                depot=self.depot.to_tuple(),
            )

    def plan_route(self, start: GridPosition, goal: GridPosition) -> Optional[List[GridPosition]]:
        """Shortest route from ``start`` to ``goal`` reduced to waypoints."""

        if self.pathfinder is None or self.smoother is None:
            raise RuntimeError("FleetCoordinator.initialize() has not completed")
        path = self.pathfinder.find_path(start.to_tuple(), goal.to_tuple())
        if path is None:
            return None
        return [GridPosition.from_tuple(point) for point in self.smoother.smooth(path)]

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    async def handle_order_ready(self, order_id: str) -> AssignmentResult:
        """Entry point for "order ready for robot delivery"."""

        result = await self.assign(order_id)
        if result.ok and result.robot_id:
            self.start_robot_task(result.robot_id)
        return result

    async def assign(self, order_id: str) -> AssignmentResult:
        await self.initialize()
        with _tracer.start_as_current_span("fleet.assign") as span:
            span.set_attribute("order.id", order_id)
            async with self._assignment_lock:
                result = await self._assign(order_id)
            span.set_attribute("assignment.outcome", result.outcome.value)
        record_assignment(result.outcome.value)
        return result

    async def _assign(self, order_id: str) -> AssignmentResult:
        order = await self.repository.get_order(order_id)
        if order.assigned_to.robot_id or order.status in _CLOSED_ORDER_STATUSES:
            logger.info(
                "assignment_skipped",
                order_id=order_id,
                robot_id=order.assigned_to.robot_id,
                order_status=order.status.value,
            )
            return AssignmentResult(
                AssignmentOutcome.ALREADY_ASSIGNED, order_id, robot_id=order.assigned_to.robot_id
            )

        candidate = await self.repository.find_idle_robot(self.settings.fleet.min_battery)
        if candidate is None:
            logger.info("no_available_robot", order_id=order_id)
            return AssignmentResult(AssignmentOutcome.NO_AVAILABLE_ROBOT, order_id)

        assert self.depot is not None
        destination = await self.repository.get_destination_position(order)
        route = self.plan_route(self.depot, destination)
        if route is None:
            logger.warning(
                "route_not_found",
                order_id=order_id,
                start=self.depot.to_tuple(),
                goal=destination.to_tuple(),
            )
            return AssignmentResult(AssignmentOutcome.ROUTE_NOT_FOUND, order_id)

        async with self._robot_locks[candidate.robot_id]:
            robot = await self.repository.get_robot(candidate.robot_id)
            if robot.status != RobotStatus.IDLE:
                logger.info("robot_no_longer_idle", order_id=order_id, robot_id=robot.robot_id)
                return AssignmentResult(AssignmentOutcome.NO_AVAILABLE_ROBOT, order_id)

            previous = robot.model_copy(deep=True)
            robot.status = RobotStatus.NAVIGATING
            robot.route = route
            robot.route_index = 0
            robot.current_order_id = order_id
            robot.current_task = RobotTask(
                type=TaskType.DELIVER_TO_TABLE,
                from_position=self.depot,
                to_position=destination,
            )
            await self.repository.save_robot(robot)

            order.assigned_to.robot_id = robot.robot_id
            order.status = OrderStatus.DELIVERING
            try:
                await self.repository.save_order(order)
            except Exception:
                await self.repository.save_robot(previous)
                raise

            logger.info(
                "robot_assigned",
                order_id=order_id,
                robot_id=robot.robot_id,
                waypoints=len(route),
            )
            await self.events.robot_assigned(robot.robot_id, order_id, route)

        return AssignmentResult(AssignmentOutcome.ASSIGNED, order_id, robot_id=robot.robot_id, route=route)

    # ------------------------------------------------------------------
    # Route stepping
    # ------------------------------------------------------------------

    async def tick(self, robot_id: str) -> StepResult:
        """Advance ``robot_id`` one waypoint, or finish its leg when the route is spent.

        A robot that is not driving (for example one that was just
        emergency-stopped) is left untouched. ``robot.idle`` is published
        after the robot lock is released so its subscribers may dispatch the
        next order straight away.
        """

        await self.initialize()
        async with self._robot_locks[robot_id]:
            result = await self._step(robot_id)
        if result.outcome is StepOutcome.RETURNED:
            await self.events.robot_idle(robot_id)
        return result

    async def _step(self, robot_id: str) -> StepResult:
        robot = await self.repository.get_robot(robot_id)
        if robot.status not in _DRIVING_STATUSES or not robot.route:
            self._detach_task(robot_id)
            return StepResult(StepOutcome.SKIPPED, robot_id, status=robot.status, position=robot.position)

        if robot.route_index >= len(robot.route):
            if robot.status == RobotStatus.NAVIGATING:
                return await self._arrive(robot)
            return await self._complete_return(robot)

        step_index = robot.route_index
        waypoint = robot.route[step_index]
        previous = robot.position
        robot.position = RobotPosition(
            x=waypoint.x,
            y=waypoint.y,
            facing=facing_between(previous, waypoint),
        )
        robot.stats.total_distance += (
            math.hypot(waypoint.x - previous.x, waypoint.y - previous.y) * self.settings.fleet.cell_size_m
        )
        robot.route_index = step_index + 1
        await self.repository.save_robot(robot)

        progress = (step_index + 1) / len(robot.route)
        ROBOT_STEP_COUNTER.inc()
        logger.debug("robot_moved", robot_id=robot_id, position=robot.position.to_tuple(), progress=progress)
        await self.events.robot_position(robot_id, robot.position, progress)
        return StepResult(StepOutcome.MOVED, robot_id, robot.status, robot.position, progress)

    async def on_arrival(self, robot_id: str) -> StepResult:
        await self.initialize()
        async with self._robot_locks[robot_id]:
            robot = await self.repository.get_robot(robot_id)
            if robot.status != RobotStatus.NAVIGATING:
                return StepResult(StepOutcome.SKIPPED, robot_id, status=robot.status, position=robot.position)
            return await self._arrive(robot)

    async def on_return_complete(self, robot_id: str) -> StepResult:
        await self.initialize()
        async with self._robot_locks[robot_id]:
            robot = await self.repository.get_robot(robot_id)
            if robot.status != RobotStatus.RETURNING:
                return StepResult(StepOutcome.SKIPPED, robot_id, status=robot.status, position=robot.position)
            result = await self._complete_return(robot)
        await self.events.robot_idle(robot_id)
        return result

    async def _arrive(self, robot: Robot) -> StepResult:
        assert self.depot is not None
        if robot.current_order_id is None:
            raise OrderNotFoundError(None)
        order = await self.repository.get_order(robot.current_order_id)
        if order.status != OrderStatus.DELIVERED:
            order.status = OrderStatus.DELIVERED
            order.completed_at = datetime.utcnow()
            await self.repository.save_order(order)
            DELIVERY_COUNTER.inc()

        robot.stats.total_deliveries += 1
        return_route = self.plan_route(robot.position, self.depot)
        if return_route is None:
            robot.status = RobotStatus.DELIVERING
            robot.clear_route()
            robot.current_task = None
            self._detach_task(robot.robot_id)
            outcome = StepOutcome.RETURN_ROUTE_NOT_FOUND
            logger.warning(
                "return_route_not_found",
                robot_id=robot.robot_id,
                order_id=order.order_id,
                position=robot.position.to_tuple(),
            )
        else:
            robot.status = RobotStatus.RETURNING
            robot.route = return_route
            robot.route_index = 0
            robot.current_task = RobotTask(
                type=TaskType.RETURN_TO_KITCHEN,
                from_position=robot.position.at(),
                to_position=self.depot,
            )
            outcome = StepOutcome.ARRIVED
            logger.info("order_delivered", robot_id=robot.robot_id, order_id=order.order_id)
        await self.repository.save_robot(robot)

        await self.events.robot_delivered(
            order.order_id,
            robot.robot_id,
            order.table_number,
            order.destination_label,
        )
        return StepResult(outcome, robot.robot_id, robot.status, robot.position)

    async def _complete_return(self, robot: Robot) -> StepResult:
        """Park ``robot`` at the depot; the caller publishes ``robot.idle`` once unlocked."""

        assert self.depot is not None
        robot.status = RobotStatus.IDLE
        robot.current_order_id = None
        robot.current_task = None
        robot.clear_route()
        robot.position = RobotPosition(x=self.depot.x, y=self.depot.y, facing=robot.position.facing)
        await self.repository.save_robot(robot)
        # the finishing task is done driving; a reassignment gets a fresh one
        self._detach_task(robot.robot_id)

        logger.info("robot_idle", robot_id=robot.robot_id)
        return StepResult(StepOutcome.RETURNED, robot.robot_id, robot.status, robot.position)

    # ------------------------------------------------------------------
    # Emergency stop
    # ------------------------------------------------------------------

    async def emergency_stop_all(self) -> List[str]:
        """Halt every robot that is mid-task; returns the ids that were stopped."""

        await self._cancel_all_tasks()

        stopped: List[str] = []
        for candidate in await self.repository.list_robots(MID_TASK_STATUSES):
            async with self._robot_locks[candidate.robot_id]:
                robot = await self.repository.get_robot(candidate.robot_id)
                if robot.status not in MID_TASK_STATUSES:
                    continue
                robot.status = RobotStatus.IDLE
                robot.clear_route()
                robot.current_task = None
                await self.repository.save_robot(robot)
                stopped.append(robot.robot_id)

        EMERGENCY_STOP_COUNTER.inc()
        logger.warning("emergency_stop", robot_ids=stopped)
        await self.events.emergency_stop()
        return stopped

    # ------------------------------------------------------------------
    # Per-robot movement tasks
    # ------------------------------------------------------------------

    def start_robot_task(self, robot_id: str) -> asyncio.Task:
        existing = self._tasks.get(robot_id)
        if existing is not None and not existing.done():
            return existing
        task = asyncio.create_task(self._drive(robot_id), name=f"robot-{robot_id}")
        self._tasks[robot_id] = task
        return task

    async def cancel_robot_task(self, robot_id: str) -> None:
        task = self._tasks.pop(robot_id, None)
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    def _detach_task(self, robot_id: str) -> None:
        # called under the robot lock by the step that ends a task's work
        self._tasks.pop(robot_id, None)

    def running_tasks(self) -> List[str]:
        return sorted(robot_id for robot_id, task in self._tasks.items() if not task.done())

    async def shutdown(self) -> None:
        await self._cancel_all_tasks()

    async def _cancel_all_tasks(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task

    async def _drive(self, robot_id: str) -> None:
        fleet = self.settings.fleet
        delay = fleet.outbound_step_seconds
        failures = 0
        try:
            while True:
                await asyncio.sleep(delay)
                if self._tasks.get(robot_id) is not asyncio.current_task():
                    break
                step = asyncio.ensure_future(self.tick(robot_id))
                try:
                    # a cancelled task lets the in-flight step finish instead of tearing it
                    result = await asyncio.shield(step)
                except asyncio.CancelledError:
                    step.add_done_callback(functools.partial(_log_abandoned_step, robot_id))
                    raise
                except TransientStoreError as exc:
                    failures += 1
                    logger.warning("robot_step_failed", robot_id=robot_id, attempt=failures, error=str(exc))
                    if failures > fleet.max_step_retries:
                        break
                    continue
                failures = 0

                if result.outcome is StepOutcome.MOVED:
                    if result.status == RobotStatus.RETURNING:
                        delay = fleet.return_step_seconds
                    else:
                        delay = fleet.outbound_step_seconds
                elif result.outcome is StepOutcome.ARRIVED:
                    delay = fleet.return_delay_seconds
                else:
                    break
        except NotFoundError as exc:
            logger.warning("robot_task_aborted", robot_id=robot_id, error=str(exc))
        finally:
            if self._tasks.get(robot_id) is asyncio.current_task():
                del self._tasks[robot_id]
