"""Repository interface consumed by the fleet coordinator."""

from __future__ import annotations

from typing import Iterable, List, Optional

from restaurant_fleet.enterprise.core import GridPosition, Layout, Order, Robot, RobotStatus, Table
from restaurant_fleet.errors import TableNotFoundError


class FleetRepository:
    """Read/write access to robot, order, table and layout records.

    Lookups of unknown ids raise a :class:`~restaurant_fleet.errors.NotFoundError`
    subclass; storage failures raise
    :class:`~restaurant_fleet.errors.TransientStoreError`. Returned records
    are detached copies: mutating them has no effect until they are saved.
    """

    async def get_robot(self, robot_id: str) -> Robot:  # pragma: no cover - interface
        raise NotImplementedError

    async def save_robot(self, robot: Robot) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def find_idle_robot(self, min_battery: float) -> Optional[Robot]:  # pragma: no cover - interface
        raise NotImplementedError

    async def list_robots(
        self, statuses: Optional[Iterable[RobotStatus]] = None
    ) -> List[Robot]:  # pragma: no cover - interface
        raise NotImplementedError

    async def get_order(self, order_id: str) -> Order:  # pragma: no cover - interface
        raise NotImplementedError

    async def save_order(self, order: Order) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def get_layout(self, layout_id: str) -> Layout:  # pragma: no cover - interface
        raise NotImplementedError

    async def get_table(self, table_number: int) -> Table:  # pragma: no cover - interface
        raise NotImplementedError

    async def get_destination_position(self, order: Order) -> GridPosition:
        """Resolve where a robot has to drive to deliver ``order``."""

        if order.table_number is None:
            raise TableNotFoundError(order.destination_label)
        table = await self.get_table(order.table_number)
        return table.location

    async def add_robot(self, robot: Robot) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def add_order(self, order: Order) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def add_table(self, table: Table) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def add_layout(self, layout: Layout) -> None:  # pragma: no cover - interface
        raise NotImplementedError
