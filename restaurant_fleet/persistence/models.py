"""SQLAlchemy ORM models for fleet records."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, Enum, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from restaurant_fleet.enterprise.core import OrderStatus, OrderType, RobotStatus

from .database import Base


class RobotRecord(Base):
    __tablename__ = "robots"

    robot_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    status: Mapped[RobotStatus] = mapped_column(Enum(RobotStatus), default=RobotStatus.IDLE, index=True)
    position_x: Mapped[int] = mapped_column(Integer, nullable=False)
    position_y: Mapped[int] = mapped_column(Integer, nullable=False)
    facing: Mapped[str] = mapped_column(String(8), default="north")
    current_order_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    current_task: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    route: Mapped[list[list[int]]] = mapped_column(JSON, default=list)
    route_index: Mapped[int] = mapped_column(Integer, default=0)
    battery_level: Mapped[float] = mapped_column(Float, default=100.0)
    stats: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    needs_maintenance: Mapped[bool] = mapped_column(Boolean, default=False)


class OrderRecord(Base):
    __tablename__ = "orders"

    order_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    order_type: Mapped[OrderType] = mapped_column(Enum(OrderType), default=OrderType.DINE_IN)
    table_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    delivery_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[OrderStatus] = mapped_column(Enum(OrderStatus), default=OrderStatus.PLACED)
    chef_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    robot_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    courier_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class TableRecord(Base):
    __tablename__ = "tables"

    table_number: Mapped[int] = mapped_column(Integer, primary_key=True)
    capacity: Mapped[int] = mapped_column(Integer, default=4)
    location_x: Mapped[int] = mapped_column(Integer, nullable=False)
    location_y: Mapped[int] = mapped_column(Integer, nullable=False)
    zone: Mapped[str] = mapped_column(String(32), default="indoor")


class LayoutRecord(Base):
    __tablename__ = "layouts"

    layout_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    grid: Mapped[list[list[int]]] = mapped_column(JSON, nullable=False)
    locations: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
