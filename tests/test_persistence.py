from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from restaurant_fleet.enterprise.core import (
    Facing,
    GridPosition,
    Layout,
    LayoutLocations,
    Order,
    OrderStatus,
    Robot,
    RobotPosition,
    RobotStatus,
    RobotTask,
    Table,
    TaskType,
)
from restaurant_fleet.errors import (
    LayoutNotFoundError,
    RobotNotFoundError,
    TableNotFoundError,
    TransientStoreError,
)
from restaurant_fleet.persistence import InMemoryFleetRepository, SqlFleetRepository
from restaurant_fleet.persistence.models import LayoutRecord, OrderRecord, RobotRecord
from restaurant_fleet.persistence.repository import (
    apply_order,
    apply_robot,
    layout_from_record,
    order_from_record,
    robot_from_record,
)


def _robot(robot_id: str, **fields) -> Robot:
    return Robot(robot_id=robot_id, position=RobotPosition(x=1, y=1), **fields)


class _UnavailableSession:
    async def __aenter__(self):
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("database is down"))

    async def __aexit__(self, *exc_info):
        return False


@pytest.mark.asyncio
async def test_find_idle_robot_prefers_lowest_id_with_enough_battery():
    repository = InMemoryFleetRepository()
    await repository.add_robot(_robot("robot-3"))
    await repository.add_robot(_robot("robot-1", battery_level=20.0))
    await repository.add_robot(_robot("robot-2", status=RobotStatus.NAVIGATING))
    await repository.add_robot(_robot("robot-4", is_active=False))

    robot = await repository.find_idle_robot(20.0)

    assert robot.robot_id == "robot-3"
    assert await repository.find_idle_robot(100.0) is None


@pytest.mark.asyncio
async def test_repository_hands_out_detached_copies():
    repository = InMemoryFleetRepository()
    await repository.add_robot(_robot("robot-1"))

    robot = await repository.get_robot("robot-1")
    robot.status = RobotStatus.RETURNING

    assert (await repository.get_robot("robot-1")).status == RobotStatus.IDLE
    await repository.save_robot(robot)
    assert (await repository.get_robot("robot-1")).status == RobotStatus.RETURNING


@pytest.mark.asyncio
async def test_list_robots_filters_by_status():
    repository = InMemoryFleetRepository()
    await repository.add_robot(_robot("robot-1", status=RobotStatus.CHARGING))
    await repository.add_robot(_robot("robot-2", status=RobotStatus.DELIVERING))
    await repository.add_robot(_robot("robot-3"))

    busy = await repository.list_robots([RobotStatus.DELIVERING, RobotStatus.RETURNING])

    assert [robot.robot_id for robot in busy] == ["robot-2"]
    assert len(await repository.list_robots()) == 3


@pytest.mark.asyncio
async def test_unknown_records_raise_not_found():
    repository = InMemoryFleetRepository()

    with pytest.raises(RobotNotFoundError):
        await repository.get_robot("ghost")
    with pytest.raises(RobotNotFoundError):
        await repository.save_robot(_robot("ghost"))
    with pytest.raises(LayoutNotFoundError):
        await repository.get_layout("main_floor")
    with pytest.raises(TableNotFoundError):
        await repository.get_table(3)


@pytest.mark.asyncio
async def test_destination_position_uses_table_location():
    repository = InMemoryFleetRepository()
    await repository.add_table(Table(table_number=5, location=GridPosition(x=8, y=3)))

    position = await repository.get_destination_position(Order(order_id="a", table_number=5))

    assert position == GridPosition(x=8, y=3)
    with pytest.raises(TableNotFoundError):
        await repository.get_destination_position(Order(order_id="b", delivery_address="1 Main St"))


def test_robot_record_mapping_keeps_navigation_state():
    robot = _robot(
        "robot-7",
        status=RobotStatus.RETURNING,
        current_order_id="order-3",
        current_task=RobotTask(
            type=TaskType.RETURN_TO_KITCHEN,
            from_position=GridPosition(x=6, y=2),
            to_position=GridPosition(x=1, y=7),
        ),
        route=[GridPosition(x=6, y=2), GridPosition(x=1, y=7)],
        route_index=1,
    )
    robot.position.facing = Facing.WEST
    robot.stats.total_distance = 4.5

    record = apply_robot(RobotRecord(robot_id=robot.robot_id), robot)

    assert record.route == [[6, 2], [1, 7]]
    assert record.facing == "west"
    assert robot_from_record(record) == robot


def test_order_record_mapping_keeps_assignment():
    order = Order(order_id="order-3", table_number=2, status=OrderStatus.DELIVERING)
    order.assigned_to.robot_id = "robot-7"

    record = apply_order(OrderRecord(order_id=order.order_id), order)

    assert record.robot_id == "robot-7"
    assert order_from_record(record) == order


def test_layout_record_mapping():
    record = LayoutRecord(
        layout_id="patio",
        grid=[[0, 1], [0, 0]],
        locations={"kitchen": {"x": 0, "y": 0}, "charging_stations": [{"x": 1, "y": 1}]},
        updated_at=datetime(2024, 1, 1),
    )

    layout = layout_from_record(record)

    assert isinstance(layout, Layout)
    assert layout.locations == LayoutLocations(
        kitchen=GridPosition(x=0, y=0),
        charging_stations=[GridPosition(x=1, y=1)],
    )
    assert (layout.width, layout.height) == (2, 2)


@pytest.mark.asyncio
async def test_sql_repository_reports_store_failures_as_transient():
    repository = SqlFleetRepository(lambda: _UnavailableSession())

    with pytest.raises(TransientStoreError):
        await repository.get_robot("robot-1")
