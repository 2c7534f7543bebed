"""Persistence layer: repository interface plus in-memory and SQLAlchemy stores."""

from .base import FleetRepository
from .database import create_schema, dispose_engine, get_sessionmaker, init_engine, metadata
from .memory import InMemoryFleetRepository
from .repository import SqlFleetRepository

__all__ = [
    "FleetRepository",
    "InMemoryFleetRepository",
    "SqlFleetRepository",
    "create_schema",
    "dispose_engine",
    "get_sessionmaker",
    "init_engine",
    "metadata",
]
