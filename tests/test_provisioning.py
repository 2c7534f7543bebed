import pytest

from restaurant_fleet.enterprise.config.settings import AppSettings
from restaurant_fleet.grid import Grid
from restaurant_fleet.pathfinding import AStarPathfinder
from restaurant_fleet.persistence import InMemoryFleetRepository
from restaurant_fleet.provisioning import build_default_layout, build_fleet, default_tables, seed_repository


def _settings() -> AppSettings:
    return AppSettings(floor={"width": 20, "height": 15, "table_count": 6}, fleet={"robot_count": 2})


def test_default_layout_has_partition_with_gaps():
    layout = build_default_layout(_settings())
    grid = Grid.from_layout(layout)

    assert (grid.width, grid.height) == (20, 15)
    assert not grid.is_walkable((10, 7))
    assert grid.is_walkable((10, 0))
    assert grid.is_walkable((10, 14))
    assert grid.is_walkable(layout.locations.kitchen.to_tuple())


def test_every_default_table_is_reachable_from_the_kitchen():
    layout = build_default_layout(_settings())
    pathfinder = AStarPathfinder(Grid.from_layout(layout))

    tables = default_tables(layout, 6)

    assert [table.table_number for table in tables] == [1, 2, 3, 4, 5, 6]
    assert len({table.location.to_tuple() for table in tables}) == 6
    for table in tables:
        route = pathfinder.find_path(layout.locations.kitchen.to_tuple(), table.location.to_tuple())
        assert route is not None


def test_build_fleet_starts_robots_at_depot():
    layout = build_default_layout(_settings())

    robots = build_fleet(layout.locations.kitchen, 3)

    assert [robot.robot_id for robot in robots] == ["robot-1", "robot-2", "robot-3"]
    assert all(robot.position.to_tuple() == layout.locations.kitchen.to_tuple() for robot in robots)


@pytest.mark.asyncio
async def test_seed_repository():
    repository = InMemoryFleetRepository()

    layout = await seed_repository(repository, _settings())

    assert list(repository.layouts) == [layout.layout_id]
    assert len(repository.tables) == 6
    assert sorted(repository.robots) == ["robot-1", "robot-2"]
