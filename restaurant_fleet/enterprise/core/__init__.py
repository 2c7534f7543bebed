"""Core domain package for the restaurant fleet."""

from .models import (
    Facing,
    GridPosition,
    Layout,
    LayoutLocations,
    MID_TASK_STATUSES,
    Order,
    OrderAssignment,
    OrderStatus,
    OrderType,
    Robot,
    RobotPosition,
    RobotStats,
    RobotStatus,
    RobotTask,
    Table,
    TaskType,
)

__all__ = [
    "Facing",
    "GridPosition",
    "Layout",
    "LayoutLocations",
    "MID_TASK_STATUSES",
    "Order",
    "OrderAssignment",
    "OrderStatus",
    "OrderType",
    "Robot",
    "RobotPosition",
    "RobotStats",
    "RobotStatus",
    "RobotTask",
    "Table",
    "TaskType",
]
