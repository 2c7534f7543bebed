"""Builds a default floor, its tables and a fresh robot fleet."""

from __future__ import annotations

from typing import List, Optional

from restaurant_fleet.enterprise.config.settings import AppSettings, get_settings
from restaurant_fleet.enterprise.core import (
    GridPosition,
    Layout,
    LayoutLocations,
    Robot,
    RobotPosition,
    Table,
)
from restaurant_fleet.grid import CellCode
from restaurant_fleet.persistence.base import FleetRepository


def build_default_layout(settings: Optional[AppSettings] = None) -> Layout:
    """Open floor split by a partition wall with a gap at each end."""

    settings = settings or get_settings()
    width = settings.floor.width
    height = settings.floor.height

    grid = [[int(CellCode.EMPTY)] * width for _ in range(height)]
    partition_x = width // 2
    for y in range(3, max(3, height - 3)):
        grid[y][partition_x] = int(CellCode.OBSTACLE)

    locations = LayoutLocations(
        kitchen=GridPosition(x=1, y=height // 2),
        charging_stations=[GridPosition(x=0, y=0)],
        entrance=GridPosition(x=partition_x, y=height - 1),
    )
    return Layout(layout_id=settings.fleet.layout_id, grid=grid, locations=locations)


def default_tables(layout: Layout, count: int) -> List[Table]:
    """Place ``count`` tables in columns on the far side of the partition."""

    tables: List[Table] = []
    column = layout.width - 2
    while len(tables) < count and column > layout.width // 2:
        for y in range(1, layout.height - 1, 2):
            if layout.grid[y][column] != CellCode.EMPTY:
                continue
            tables.append(Table(table_number=len(tables) + 1, location=GridPosition(x=column, y=y)))
            if len(tables) == count:
                break
        column -= 3
    return tables


def build_fleet(depot: GridPosition, count: int) -> List[Robot]:
    return [
        Robot(
            robot_id=f"robot-{index + 1}",
            name=f"Robot {index + 1}",
            position=RobotPosition(x=depot.x, y=depot.y),
        )
        for index in range(count)
    ]


async def seed_repository(repository: FleetRepository, settings: Optional[AppSettings] = None) -> Layout:
    """Store the default layout, its tables and a provisioned fleet."""

    settings = settings or get_settings()
    layout = build_default_layout(settings)
    await repository.add_layout(layout)
    for table in default_tables(layout, settings.floor.table_count):
        await repository.add_table(table)
    for robot in build_fleet(layout.locations.kitchen, settings.fleet.robot_count):
        await repository.add_robot(robot)
    return layout
