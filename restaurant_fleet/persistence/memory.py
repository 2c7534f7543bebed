"""In-memory repository used when persistent storage is unavailable."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from restaurant_fleet.enterprise.core import Layout, Order, Robot, RobotStatus, Table
from restaurant_fleet.errors import (
    LayoutNotFoundError,
    OrderNotFoundError,
    RobotNotFoundError,
    TableNotFoundError,
)

from .base import FleetRepository


class InMemoryFleetRepository(FleetRepository):
    """Keeps records in process memory, handing out deep copies."""

    def __init__(self) -> None:
        self.robots: Dict[str, Robot] = {}
        self.orders: Dict[str, Order] = {}
        self.tables: Dict[int, Table] = {}
        self.layouts: Dict[str, Layout] = {}

    async def get_robot(self, robot_id: str) -> Robot:
        robot = self.robots.get(robot_id)
        if robot is None:
            raise RobotNotFoundError(robot_id)
        return robot.model_copy(deep=True)

    async def save_robot(self, robot: Robot) -> None:
        if robot.robot_id not in self.robots:
            raise RobotNotFoundError(robot.robot_id)
        self.robots[robot.robot_id] = robot.model_copy(deep=True)

    async def find_idle_robot(self, min_battery: float) -> Optional[Robot]:
        for robot_id in sorted(self.robots):
            robot = self.robots[robot_id]
            if (
                robot.status == RobotStatus.IDLE
                and robot.is_active
                and robot.battery_level > min_battery
            ):
                return robot.model_copy(deep=True)
        return None

    async def list_robots(self, statuses: Optional[Iterable[RobotStatus]] = None) -> List[Robot]:
        wanted = set(statuses) if statuses is not None else None
        return [
            self.robots[robot_id].model_copy(deep=True)
            for robot_id in sorted(self.robots)
            if wanted is None or self.robots[robot_id].status in wanted
        ]

    async def get_order(self, order_id: str) -> Order:
        order = self.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order.model_copy(deep=True)

    async def save_order(self, order: Order) -> None:
        if order.order_id not in self.orders:
            raise OrderNotFoundError(order.order_id)
        self.orders[order.order_id] = order.model_copy(deep=True)

    async def get_layout(self, layout_id: str) -> Layout:
        layout = self.layouts.get(layout_id)
        if layout is None:
            raise LayoutNotFoundError(layout_id)
        return layout.model_copy(deep=True)

    async def get_table(self, table_number: int) -> Table:
        table = self.tables.get(table_number)
        if table is None:
            raise TableNotFoundError(table_number)
        return table.model_copy(deep=True)

    async def add_robot(self, robot: Robot) -> None:
        self.robots[robot.robot_id] = robot.model_copy(deep=True)

    async def add_order(self, order: Order) -> None:
        self.orders[order.order_id] = order.model_copy(deep=True)

    async def add_table(self, table: Table) -> None:
        self.tables[table.table_number] = table.model_copy(deep=True)

    async def add_layout(self, layout: Layout) -> None:
        self.layouts[layout.layout_id] = layout.model_copy(deep=True)
