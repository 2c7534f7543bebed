"""Dependency providers for the API layer."""

from __future__ import annotations

import asyncio
from typing import Optional

from restaurant_fleet.enterprise.config.settings import AppSettings, get_settings
from restaurant_fleet.persistence import (
    FleetRepository,
    InMemoryFleetRepository,
    SqlFleetRepository,
    get_sessionmaker,
)
from restaurant_fleet.provisioning import seed_repository
from restaurant_fleet.services import FleetCoordinator, create_message_bus

__all__ = [
    "get_app_settings",
    "get_repository",
    "get_fleet_coordinator",
    "reset_fleet_coordinator",
    "shutdown_fleet_coordinator",
]


_repository: Optional[FleetRepository] = None
_coordinator: Optional[FleetCoordinator] = None
_coordinator_lock: Optional[asyncio.Lock] = None


def get_app_settings() -> AppSettings:
    return get_settings()


def get_repository() -> FleetRepository:
    """Return the shared repository, SQL-backed when the database is enabled."""

    global _repository
    if _repository is None:
        settings = get_settings()
        if settings.database.enabled:
            _repository = SqlFleetRepository(get_sessionmaker())
        else:
            _repository = InMemoryFleetRepository()
    return _repository


async def get_fleet_coordinator() -> FleetCoordinator:
    """Return the shared :class:`FleetCoordinator`, building it on first use."""

    global _coordinator, _coordinator_lock
    if _coordinator is not None:
        return _coordinator
    if _coordinator_lock is None:
        _coordinator_lock = asyncio.Lock()

    async with _coordinator_lock:
        if _coordinator is None:
            settings = get_settings()
            repository = get_repository()
            if isinstance(repository, InMemoryFleetRepository) and not repository.layouts:
                await seed_repository(repository, settings)
            bus = create_message_bus(settings.messaging)
            await bus.connect()
            _coordinator = FleetCoordinator(repository, bus, settings)
    return _coordinator


async def shutdown_fleet_coordinator() -> None:
    if _coordinator is not None:
        await _coordinator.shutdown()
        await _coordinator.events.bus.close()


def reset_fleet_coordinator() -> None:
    """Forget the cached coordinator and repository (useful for tests)."""

    global _repository, _coordinator, _coordinator_lock
    _repository = None
    _coordinator = None
    _coordinator_lock = None
