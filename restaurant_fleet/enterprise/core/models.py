"""Domain models for the restaurant fleet core.

These models provide a typed representation of the records the navigation
core reads and writes. They are intentionally framework-agnostic so they can
be reused by services, APIs, and persistence layers.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field, NonNegativeFloat, NonNegativeInt, PositiveInt


class GridPosition(BaseModel):
    """Discrete coordinate on the floor grid."""

    x: NonNegativeInt = Field(..., description="X coordinate (column index).")
    y: NonNegativeInt = Field(..., description="Y coordinate (row index).")

    @classmethod
    def from_tuple(cls, position: Sequence[int]) -> "GridPosition":
        return cls(x=int(position[0]), y=int(position[1]))

    def to_tuple(self) -> tuple[int, int]:
        return (self.x, self.y)


class Facing(str, enum.Enum):
    NORTH = "north"
    EAST = "east"
    SOUTH = "south"
    WEST = "west"


class RobotPosition(GridPosition):
    """Grid position plus the direction the robot is facing."""

    facing: Facing = Facing.NORTH

    def at(self) -> GridPosition:
        return GridPosition(x=self.x, y=self.y)


class RobotStatus(str, enum.Enum):
    """Operational states for a robot."""

    IDLE = "idle"
    NAVIGATING = "navigating"
    PICKING_UP = "picking_up"
    DELIVERING = "delivering"
    RETURNING = "returning"
    CHARGING = "charging"
    MAINTENANCE = "maintenance"


MID_TASK_STATUSES = frozenset(
    {
        RobotStatus.NAVIGATING,
        RobotStatus.PICKING_UP,
        RobotStatus.DELIVERING,
        RobotStatus.RETURNING,
    }
)


class TaskType(str, enum.Enum):
    DELIVER_TO_TABLE = "deliver_to_table"
    RETURN_TO_KITCHEN = "return_to_kitchen"


class RobotTask(BaseModel):
    """The leg a robot is currently driving."""

    type: TaskType
    from_position: GridPosition
    to_position: GridPosition
    started_at: datetime = Field(default_factory=datetime.utcnow)


class RobotStats(BaseModel):
    total_deliveries: NonNegativeInt = 0
    total_distance: NonNegativeFloat = Field(0.0, description="Distance travelled in metres.")
    uptime_hours: NonNegativeFloat = 0.0
    errors: NonNegativeInt = 0


class Robot(BaseModel):
    """A delivery robot and its navigation state."""

    robot_id: str
    name: Optional[str] = None
    status: RobotStatus = RobotStatus.IDLE
    position: RobotPosition
    current_order_id: Optional[str] = None
    current_task: Optional[RobotTask] = None
    route: List[GridPosition] = Field(default_factory=list)
    route_index: NonNegativeInt = Field(0, description="Index of the next route waypoint to drive to.")
    battery_level: float = Field(100.0, ge=0.0, le=100.0)
    stats: RobotStats = Field(default_factory=RobotStats)
    is_active: bool = True
    needs_maintenance: bool = False

    def clear_route(self) -> None:
        self.route = []
        self.route_index = 0


class OrderType(str, enum.Enum):
    DINE_IN = "dine_in"
    DELIVERY = "delivery"
    TAKEOUT = "takeout"


class OrderStatus(str, enum.Enum):
    """Lifecycle states for an order."""

    PLACED = "placed"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERING = "delivering"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderAssignment(BaseModel):
    chef_id: Optional[str] = None
    robot_id: Optional[str] = None
    courier_id: Optional[str] = None


class Order(BaseModel):
    """Order record owned by the order-management service.

    The fleet core only writes ``assigned_to.robot_id``, ``status`` and
    ``completed_at``.
    """

    order_id: str
    order_type: OrderType = OrderType.DINE_IN
    table_number: Optional[PositiveInt] = None
    delivery_address: Optional[str] = None
    status: OrderStatus = OrderStatus.PLACED
    assigned_to: OrderAssignment = Field(default_factory=OrderAssignment)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    @property
    def destination_label(self) -> Optional[str]:
        if self.table_number is not None:
            return f"table {self.table_number}"
        return self.delivery_address


class Table(BaseModel):
    table_number: PositiveInt
    capacity: PositiveInt = 4
    location: GridPosition
    zone: str = "indoor"


class LayoutLocations(BaseModel):
    kitchen: GridPosition
    charging_stations: List[GridPosition] = Field(default_factory=list)
    entrance: Optional[GridPosition] = None
    bar: Optional[GridPosition] = None


class Layout(BaseModel):
    """Static floor layout used to build the navigation grid."""

    layout_id: str = "main_floor"
    grid: List[List[int]]
    locations: LayoutLocations
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def width(self) -> int:
        return len(self.grid[0]) if self.grid else 0

    @property
    def height(self) -> int:
        return len(self.grid)
