"""Pydantic schemas for fleet API responses."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel

from restaurant_fleet.enterprise.config.settings import AppSettings
from restaurant_fleet.enterprise.core import GridPosition, Robot
from restaurant_fleet.services.coordinator import AssignmentResult


class GridPositionSchema(BaseModel):
    x: int
    y: int

    @classmethod
    def from_domain(cls, position: GridPosition) -> "GridPositionSchema":
        return cls(x=position.x, y=position.y)


class RobotSchema(BaseModel):
    robot_id: str
    name: Optional[str]
    status: str
    position: GridPositionSchema
    facing: str
    current_order_id: Optional[str]
    route: List[GridPositionSchema]
    route_index: int
    battery_level: float
    total_deliveries: int
    total_distance: float
    is_active: bool

    @classmethod
    def from_domain(cls, robot: Robot) -> "RobotSchema":
        return cls(
            robot_id=robot.robot_id,
            name=robot.name,
            status=robot.status.value,
            position=GridPositionSchema.from_domain(robot.position),
            facing=robot.position.facing.value,
            current_order_id=robot.current_order_id,
            route=[GridPositionSchema.from_domain(point) for point in robot.route],
            route_index=robot.route_index,
            battery_level=robot.battery_level,
            total_deliveries=robot.stats.total_deliveries,
            total_distance=robot.stats.total_distance,
            is_active=robot.is_active,
        )


class AssignmentSchema(BaseModel):
    order_id: str
    outcome: str
    assigned: bool
    robot_id: Optional[str]
    route: List[GridPositionSchema]

    @classmethod
    def from_result(cls, result: AssignmentResult) -> "AssignmentSchema":
        return cls(
            order_id=result.order_id,
            outcome=result.outcome.value,
            assigned=result.ok,
            robot_id=result.robot_id,
            route=[GridPositionSchema.from_domain(point) for point in result.route],
        )


class EmergencyStopSchema(BaseModel):
    stopped: List[str]


class AppConfigSchema(BaseModel):
    environment: str
    fleet: dict
    messaging: dict
    database: dict

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "AppConfigSchema":
        return cls(
            environment=settings.environment,
            fleet=settings.fleet.model_dump(),
            messaging=settings.messaging.model_dump(exclude={"password"}, exclude_none=True),
            database=settings.database.model_dump(mode="json", exclude={"url"}),
        )
