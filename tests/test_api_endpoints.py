from fastapi.testclient import TestClient

from restaurant_fleet.enterprise.config.settings import AppSettings
from restaurant_fleet.enterprise.core import Order, OrderStatus
from restaurant_fleet.server.app import app
from restaurant_fleet.server.dependencies import get_app_settings, get_repository, reset_fleet_coordinator


def setup_function() -> None:
    reset_fleet_coordinator()


def _ready_order(order_id: str, table_number: int = 1) -> None:
    repository = get_repository()
    repository.orders[order_id] = Order(order_id=order_id, table_number=table_number, status=OrderStatus.READY)


def test_health_endpoints() -> None:
    with TestClient(app) as client:
        live = client.get("/api/v1/health/live")
        assert live.status_code == 200
        assert live.json()["status"] == "ok"

        ready = client.get("/api/v1/health/ready")
        assert ready.status_code == 200
        assert ready.json()["status"] == "ready"


def test_list_robots_endpoint() -> None:
    with TestClient(app) as client:
        response = client.get("/api/v1/robots")
        assert response.status_code == 200
        robots = response.json()
        assert [robot["robot_id"] for robot in robots] == ["robot-1", "robot-2", "robot-3"]
        assert all(robot["status"] == "idle" for robot in robots)

        missing = client.get("/api/v1/robots/robot-99")
        assert missing.status_code == 404


def test_order_ready_dispatches_a_robot() -> None:
    _ready_order("order-1")

    with TestClient(app) as client:
        response = client.post("/api/v1/orders/order-1/ready")
        assert response.status_code == 202
        body = response.json()
        assert body["outcome"] == "assigned"
        assert body["assigned"] is True
        assert body["robot_id"] == "robot-1"
        assert body["route"]

        robot = client.get("/api/v1/robots/robot-1").json()
        assert robot["status"] == "navigating"
        assert robot["current_order_id"] == "order-1"

        again = client.post("/api/v1/orders/order-1/ready")
        assert again.json()["outcome"] == "already_assigned"


def test_order_ready_for_unknown_order() -> None:
    with TestClient(app) as client:
        response = client.post("/api/v1/orders/nope/ready")
        assert response.status_code == 404


def test_emergency_stop_endpoint() -> None:
    _ready_order("order-2", table_number=2)

    with TestClient(app) as client:
        client.post("/api/v1/orders/order-2/ready")

        response = client.post("/api/v1/robots/emergency-stop")
        assert response.status_code == 200
        assert response.json()["stopped"] == ["robot-1"]

        robot = client.get("/api/v1/robots/robot-1").json()
        assert robot["status"] == "idle"
        assert robot["route"] == []


def test_configuration_endpoint() -> None:
    with TestClient(app) as client:
        response = client.get("/api/v1/observability/config")
        assert response.status_code == 200
        config = response.json()
        assert "environment" in config
        assert config["fleet"]["min_battery"] == 20
        assert "password" not in config["messaging"]


def test_observability_metrics() -> None:
    with TestClient(app) as client:
        client.get("/api/v1/health/live")
        response = client.get("/api/v1/observability/metrics")
        assert response.status_code == 200
        assert "restaurant_fleet_api_requests_total" in response.text


def test_metrics_can_be_disabled() -> None:
    disabled = AppSettings(telemetry={"metrics_enabled": False})
    app.dependency_overrides[get_app_settings] = lambda: disabled
    try:
        with TestClient(app) as client:
            response = client.get("/api/v1/observability/metrics")
            assert response.status_code == 404
    finally:
        app.dependency_overrides.clear()
