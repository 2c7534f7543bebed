"""Assignment trigger used by the order-management service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from restaurant_fleet.errors import NotFoundError, TransientStoreError
from restaurant_fleet.server.api.schemas.fleet import AssignmentSchema
from restaurant_fleet.server.dependencies import get_fleet_coordinator
from restaurant_fleet.services import FleetCoordinator

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/{order_id}/ready", response_model=AssignmentSchema, status_code=status.HTTP_202_ACCEPTED)
async def order_ready(
    order_id: str,
    coordinator: FleetCoordinator = Depends(get_fleet_coordinator),
) -> AssignmentSchema:
    """Dispatch a robot for an order that just became ready.

    An order that cannot be dispatched right now (no idle robot, no route)
    still returns 202; the outcome field tells the caller what happened.
    """

    try:
        result = await coordinator.handle_order_ready(order_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except TransientStoreError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return AssignmentSchema.from_result(result)
