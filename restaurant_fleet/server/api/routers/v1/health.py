"""Liveness and readiness probes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from restaurant_fleet.errors import FleetError
from restaurant_fleet.server.dependencies import get_fleet_coordinator
from restaurant_fleet.services import FleetCoordinator

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ready")
async def ready(coordinator: FleetCoordinator = Depends(get_fleet_coordinator)) -> dict[str, str]:
    try:
        await coordinator.initialize()
    except FleetError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return {"status": "ready"}
