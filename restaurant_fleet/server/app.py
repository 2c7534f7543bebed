"""FastAPI application exposing the fleet coordinator."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI, Request
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from restaurant_fleet.enterprise.config.settings import get_settings
from restaurant_fleet.observability import bind_global_context, configure_logging, configure_tracer
from restaurant_fleet.observability.metrics import REQUEST_COUNTER
from restaurant_fleet.persistence import create_schema, dispose_engine
from restaurant_fleet.server.api.routers import (
	health_router,
	observability_router,
	orders_router,
	robots_router,
)
from restaurant_fleet.server.dependencies import shutdown_fleet_coordinator

settings = get_settings()
configure_logging(settings.logging)
configure_tracer("restaurant-fleet-api", settings.telemetry.otlp_endpoint)
bind_global_context(service="restaurant-fleet", environment=settings.environment)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
	database_enabled = get_settings().database.enabled
	if database_enabled:
		await create_schema()
	logger.info("api_started", database=database_enabled)
	try:
		yield
	finally:
		await shutdown_fleet_coordinator()
		if database_enabled:
			await dispose_engine()
		logger.info("api_stopped")


app = FastAPI(title="Restaurant Fleet API", version="1.0.0", lifespan=lifespan)

FastAPIInstrumentor.instrument_app(app)


@app.middleware("http")
async def count_requests(request: Request, call_next):
	REQUEST_COUNTER.inc()
	return await call_next(request)


app.include_router(health_router, prefix="/api/v1")
app.include_router(orders_router, prefix="/api/v1")
app.include_router(robots_router, prefix="/api/v1")
app.include_router(observability_router, prefix="/api/v1")


@app.get("/")
async def root() -> dict[str, str]:
	return {"message": "Restaurant Fleet API"}
