"""Observability endpoints (metrics, effective configuration)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from restaurant_fleet.enterprise.config.settings import AppSettings
from restaurant_fleet.observability.metrics import metrics_registry
from restaurant_fleet.server.api.schemas.fleet import AppConfigSchema
from restaurant_fleet.server.dependencies import get_app_settings

router = APIRouter(prefix="/observability", tags=["observability"])


@router.get("/metrics", response_class=PlainTextResponse)
async def metrics(settings: AppSettings = Depends(get_app_settings)) -> PlainTextResponse:
    if not settings.telemetry.metrics_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Metrics are disabled")
    return PlainTextResponse(generate_latest(metrics_registry), media_type=CONTENT_TYPE_LATEST)


@router.get("/config", response_model=AppConfigSchema)
async def config(settings: AppSettings = Depends(get_app_settings)) -> AppConfigSchema:
    return AppConfigSchema.from_settings(settings)
