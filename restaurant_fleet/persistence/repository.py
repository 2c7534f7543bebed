"""SQL-backed implementation of :class:`FleetRepository`."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from restaurant_fleet.enterprise.core import (
    Facing,
    GridPosition,
    Layout,
    LayoutLocations,
    Order,
    OrderAssignment,
    Robot,
    RobotPosition,
    RobotStats,
    RobotStatus,
    RobotTask,
    Table,
)
from restaurant_fleet.errors import (
    LayoutNotFoundError,
    NotFoundError,
    OrderNotFoundError,
    RobotNotFoundError,
    TableNotFoundError,
    TransientStoreError,
)

from .base import FleetRepository
from .models import LayoutRecord, OrderRecord, RobotRecord, TableRecord


def robot_from_record(record: RobotRecord) -> Robot:
    return Robot(
        robot_id=record.robot_id,
        name=record.name,
        status=record.status,
        position=RobotPosition(x=record.position_x, y=record.position_y, facing=Facing(record.facing)),
        current_order_id=record.current_order_id,
        current_task=RobotTask.model_validate(record.current_task) if record.current_task else None,
        route=[GridPosition.from_tuple(point) for point in record.route or []],
        route_index=record.route_index,
        battery_level=record.battery_level,
        stats=RobotStats.model_validate(record.stats or {}),
        is_active=record.is_active,
        needs_maintenance=record.needs_maintenance,
    )


def apply_robot(record: RobotRecord, robot: Robot) -> RobotRecord:
    record.name = robot.name
    record.status = robot.status
    record.position_x = robot.position.x
    record.position_y = robot.position.y
    record.facing = robot.position.facing.value
    record.current_order_id = robot.current_order_id
    record.current_task = robot.current_task.model_dump(mode="json") if robot.current_task else None
    record.route = [list(point.to_tuple()) for point in robot.route]
    record.route_index = robot.route_index
    record.battery_level = robot.battery_level
    record.stats = robot.stats.model_dump(mode="json")
    record.is_active = robot.is_active
    record.needs_maintenance = robot.needs_maintenance
    return record


def order_from_record(record: OrderRecord) -> Order:
    return Order(
        order_id=record.order_id,
        order_type=record.order_type,
        table_number=record.table_number,
        delivery_address=record.delivery_address,
        status=record.status,
        assigned_to=OrderAssignment(
            chef_id=record.chef_id,
            robot_id=record.robot_id,
            courier_id=record.courier_id,
        ),
        created_at=record.created_at,
        completed_at=record.completed_at,
    )


def apply_order(record: OrderRecord, order: Order) -> OrderRecord:
    record.order_type = order.order_type
    record.table_number = order.table_number
    record.delivery_address = order.delivery_address
    record.status = order.status
    record.chef_id = order.assigned_to.chef_id
    record.robot_id = order.assigned_to.robot_id
    record.courier_id = order.assigned_to.courier_id
    record.created_at = order.created_at
    record.completed_at = order.completed_at
    return record


def table_from_record(record: TableRecord) -> Table:
    return Table(
        table_number=record.table_number,
        capacity=record.capacity,
        location=GridPosition(x=record.location_x, y=record.location_y),
        zone=record.zone,
    )


def layout_from_record(record: LayoutRecord) -> Layout:
    return Layout(
        layout_id=record.layout_id,
        grid=record.grid,
        locations=LayoutLocations.model_validate(record.locations),
        updated_at=record.updated_at,
    )


class SqlFleetRepository(FleetRepository):
    """Runs every call in its own short transaction."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self.sessionmaker = sessionmaker

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self.sessionmaker() as session:
                async with session.begin():
                    yield session
        except NotFoundError:
            raise
        except SQLAlchemyError as exc:
            raise TransientStoreError(str(exc)) from exc

    async def get_robot(self, robot_id: str) -> Robot:
        async with self._transaction() as session:
            record = await session.get(RobotRecord, robot_id)
            if record is None:
                raise RobotNotFoundError(robot_id)
            return robot_from_record(record)

    async def save_robot(self, robot: Robot) -> None:
        async with self._transaction() as session:
            record = await session.get(RobotRecord, robot.robot_id)
            if record is None:
                raise RobotNotFoundError(robot.robot_id)
            apply_robot(record, robot)

    async def find_idle_robot(self, min_battery: float) -> Optional[Robot]:
        stmt = (
            select(RobotRecord)
            .where(
                RobotRecord.status == RobotStatus.IDLE,
                RobotRecord.is_active.is_(True),
                RobotRecord.battery_level > min_battery,
            )
            .order_by(RobotRecord.robot_id)
            .limit(1)
        )
        async with self._transaction() as session:
            record = (await session.execute(stmt)).scalar_one_or_none()
            return robot_from_record(record) if record else None

    async def list_robots(self, statuses: Optional[Iterable[RobotStatus]] = None) -> List[Robot]:
        stmt = select(RobotRecord).order_by(RobotRecord.robot_id)
        if statuses is not None:
            stmt = stmt.where(RobotRecord.status.in_(list(statuses)))
        async with self._transaction() as session:
            result = await session.execute(stmt)
            return [robot_from_record(record) for record in result.scalars()]

    async def get_order(self, order_id: str) -> Order:
        async with self._transaction() as session:
            record = await session.get(OrderRecord, order_id)
            if record is None:
                raise OrderNotFoundError(order_id)
            return order_from_record(record)

    async def save_order(self, order: Order) -> None:
        async with self._transaction() as session:
            record = await session.get(OrderRecord, order.order_id)
            if record is None:
                raise OrderNotFoundError(order.order_id)
            apply_order(record, order)

    async def get_layout(self, layout_id: str) -> Layout:
        async with self._transaction() as session:
            record = await session.get(LayoutRecord, layout_id)
            if record is None:
                raise LayoutNotFoundError(layout_id)
            return layout_from_record(record)

    async def get_table(self, table_number: int) -> Table:
        async with self._transaction() as session:
            record = await session.get(TableRecord, table_number)
            if record is None:
                raise TableNotFoundError(table_number)
            return table_from_record(record)

    async def add_robot(self, robot: Robot) -> None:
        async with self._transaction() as session:
            session.add(apply_robot(RobotRecord(robot_id=robot.robot_id), robot))

    async def add_order(self, order: Order) -> None:
        async with self._transaction() as session:
            session.add(apply_order(OrderRecord(order_id=order.order_id), order))

    async def add_table(self, table: Table) -> None:
        async with self._transaction() as session:
            session.add(
                TableRecord(
                    table_number=table.table_number,
                    capacity=table.capacity,
                    location_x=table.location.x,
                    location_y=table.location.y,
                    zone=table.zone,
                )
            )

    async def add_layout(self, layout: Layout) -> None:
        async with self._transaction() as session:
            session.add(
                LayoutRecord(
                    layout_id=layout.layout_id,
                    grid=layout.grid,
                    locations=layout.locations.model_dump(mode="json"),
                    updated_at=layout.updated_at,
                )
            )
