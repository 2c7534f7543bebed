import random

import pytest

from restaurant_fleet.grid import Grid
from restaurant_fleet.pathfinding import AStarPathfinder, find_path_bfs, manhattan


def _open_grid(width: int, height: int) -> Grid:
    return Grid([[0] * width for _ in range(height)])


def _wall_grid(gap_y=None) -> Grid:
    cells = [[0] * 7 for _ in range(5)]
    for y in range(5):
        if y != gap_y:
            cells[y][3] = 1
    return Grid(cells)


def _assert_valid_route(grid: Grid, route, start, goal):
    assert route[0] == start
    assert route[-1] == goal
    for cell in route:
        assert grid.is_walkable(cell)
    for previous, current in zip(route, route[1:]):
        assert manhattan(previous, current) == 1


def test_manhattan_distance():
    assert manhattan((0, 0), (4, 4)) == 8
    assert manhattan((3, 1), (1, 2)) == 3


def test_open_grid_route_is_manhattan_length():
    grid = _open_grid(5, 5)

    route = AStarPathfinder(grid).find_path((0, 0), (4, 4))

    assert route is not None
    assert len(route) == 9
    _assert_valid_route(grid, route, (0, 0), (4, 4))


def test_start_equals_goal():
    grid = _open_grid(3, 3)

    assert AStarPathfinder(grid).find_path((1, 1), (1, 1)) == [(1, 1)]


@pytest.mark.parametrize(
    "start, goal",
    [
        ((1, 0), (0, 0)),
        ((0, 0), (1, 0)),
        ((-1, 0), (0, 0)),
        ((0, 0), (5, 5)),
    ],
)
def test_blocked_or_out_of_bounds_endpoints(start, goal):
    grid = Grid([[0, 1], [0, 0]])

    assert AStarPathfinder(grid).find_path(start, goal) is None


def test_routes_through_gap_in_wall():
    grid = _wall_grid(gap_y=4)

    route = AStarPathfinder(grid).find_path((0, 0), (6, 0))

    assert route is not None
    assert (3, 4) in route
    _assert_valid_route(grid, route, (0, 0), (6, 0))
    assert len(route) - 1 == 14


def test_full_height_wall_is_not_found():
    grid = _wall_grid(gap_y=None)

    assert AStarPathfinder(grid).find_path((0, 0), (6, 0)) is None
    assert find_path_bfs(grid, (0, 0), (6, 0)) is None


def test_route_is_deterministic():
    grid = _wall_grid(gap_y=2)
    pathfinder = AStarPathfinder(grid)

    assert pathfinder.find_path((0, 0), (6, 4)) == pathfinder.find_path((0, 0), (6, 4))


@pytest.mark.parametrize("seed", range(25))
def test_matches_breadth_first_length_on_random_grids(seed):
    rng = random.Random(seed)
    width, height = rng.randint(4, 12), rng.randint(4, 12)
    cells = [[1 if rng.random() < 0.3 else 0 for _ in range(width)] for _ in range(height)]
    start = (rng.randrange(width), rng.randrange(height))
    goal = (rng.randrange(width), rng.randrange(height))
    cells[start[1]][start[0]] = 0
    cells[goal[1]][goal[0]] = 0
    grid = Grid(cells)

    route = AStarPathfinder(grid).find_path(start, goal)
    reference = find_path_bfs(grid, start, goal)

    if reference is None:
        assert route is None
    else:
        assert route is not None
        assert len(route) == len(reference)
        _assert_valid_route(grid, route, start, goal)
