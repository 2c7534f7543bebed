"""Prometheus metrics for the fleet core."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Histogram

metrics_registry = CollectorRegistry()

REQUEST_COUNTER = Counter(
    "restaurant_fleet_api_requests_total",
    "Total number of API requests handled",
    registry=metrics_registry,
)

ASSIGNMENT_COUNTER = Counter(
    "restaurant_fleet_assignments_total",
    "Robot assignment attempts by outcome",
    ["outcome"],
    registry=metrics_registry,
)

ROBOT_STEP_COUNTER = Counter(
    "restaurant_fleet_robot_steps_total",
    "Route steps driven by robots",
    registry=metrics_registry,
)

DELIVERY_COUNTER = Counter(
    "restaurant_fleet_deliveries_total",
    "Orders delivered by robots",
    registry=metrics_registry,
)

EMERGENCY_STOP_COUNTER = Counter(
    "restaurant_fleet_emergency_stops_total",
    "Fleet-wide emergency stops",
    registry=metrics_registry,
)

PATHFINDING_DURATION = Histogram(
    "restaurant_fleet_pathfinding_seconds",
    "Duration of pathfinding computations",
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5),
    registry=metrics_registry,
)


def record_assignment(outcome: str) -> None:
    ASSIGNMENT_COUNTER.labels(outcome=outcome).inc()
