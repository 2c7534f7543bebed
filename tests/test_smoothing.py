import random

import pytest

from restaurant_fleet.grid import Grid
from restaurant_fleet.pathfinding import AStarPathfinder
from restaurant_fleet.smoothing import PathSmoother


def _random_grid(seed: int) -> Grid:
    rng = random.Random(seed)
    cells = [[1 if rng.random() < 0.25 else 0 for _ in range(10)] for _ in range(10)]
    cells[0][0] = 0
    cells[9][9] = 0
    return Grid(cells)


def test_open_grid_route_smooths_to_endpoints():
    grid = Grid([[0] * 5 for _ in range(5)])
    route = AStarPathfinder(grid).find_path((0, 0), (4, 4))

    assert PathSmoother(grid).smooth(route) == [(0, 0), (4, 4)]


def test_short_routes_are_returned_unchanged():
    grid = Grid([[0, 0]])
    smoother = PathSmoother(grid)

    assert smoother.smooth([]) == []
    assert smoother.smooth([(0, 0)]) == [(0, 0)]
    assert smoother.smooth([(0, 0), (1, 0)]) == [(0, 0), (1, 0)]


def test_corner_around_obstacle_is_kept():
    grid = Grid(
        [
            [0, 0, 0],
            [1, 1, 0],
            [0, 0, 0],
        ]
    )
    route = AStarPathfinder(grid).find_path((0, 0), (0, 2))

    smoothed = PathSmoother(grid).smooth(route)

    assert smoothed[0] == (0, 0)
    assert smoothed[-1] == (0, 2)
    assert (2, 0) in smoothed


def test_line_of_sight():
    grid = Grid(
        [
            [0, 0, 0, 0],
            [0, 1, 0, 0],
            [0, 0, 0, 0],
        ]
    )
    smoother = PathSmoother(grid)

    assert smoother.has_line_of_sight((0, 0), (3, 0))
    assert not smoother.has_line_of_sight((0, 1), (3, 1))
    assert smoother.has_line_of_sight((0, 0), (0, 0))
    assert not smoother.has_line_of_sight((1, 1), (1, 1))


@pytest.mark.parametrize("seed", range(15))
def test_smoothing_properties_on_random_grids(seed):
    grid = _random_grid(seed)
    route = AStarPathfinder(grid).find_path((0, 0), (9, 9))
    if route is None:
        pytest.skip("no route on this grid")
    smoother = PathSmoother(grid)

    smoothed = smoother.smooth(route)

    assert smoothed[0] == route[0]
    assert smoothed[-1] == route[-1]
    assert len(smoothed) <= len(route)
    assert all(point in route for point in smoothed)
    for previous, current in zip(smoothed, smoothed[1:]):
        assert smoother.has_line_of_sight(previous, current)
    assert smoother.smooth(smoothed) == smoothed
