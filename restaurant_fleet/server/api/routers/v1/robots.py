"""Robot state and fleet control endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from restaurant_fleet.errors import RobotNotFoundError, TransientStoreError
from restaurant_fleet.server.api.schemas.fleet import EmergencyStopSchema, RobotSchema
from restaurant_fleet.server.dependencies import get_fleet_coordinator
from restaurant_fleet.services import FleetCoordinator

router = APIRouter(prefix="/robots", tags=["robots"])


@router.get("", response_model=List[RobotSchema])
async def list_robots(coordinator: FleetCoordinator = Depends(get_fleet_coordinator)) -> List[RobotSchema]:
    robots = await coordinator.repository.list_robots()
    return [RobotSchema.from_domain(robot) for robot in robots]


@router.get("/{robot_id}", response_model=RobotSchema)
async def get_robot(robot_id: str, coordinator: FleetCoordinator = Depends(get_fleet_coordinator)) -> RobotSchema:
    try:
        robot = await coordinator.repository.get_robot(robot_id)
    except RobotNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return RobotSchema.from_domain(robot)


@router.post("/emergency-stop", response_model=EmergencyStopSchema)
async def emergency_stop(coordinator: FleetCoordinator = Depends(get_fleet_coordinator)) -> EmergencyStopSchema:
    try:
        stopped = await coordinator.emergency_stop_all()
    except TransientStoreError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return EmergencyStopSchema(stopped=stopped)
