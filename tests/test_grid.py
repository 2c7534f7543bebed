import pytest

from restaurant_fleet.enterprise.core import GridPosition, Layout, LayoutLocations
from restaurant_fleet.errors import InvalidGridError, InvalidInputError
from restaurant_fleet.grid import CellCode, Grid


def test_grid_dimensions_and_lookup():
    grid = Grid([[0, 0, 1], [0, 2, 0]])

    assert grid.width == 3
    assert grid.height == 2
    assert grid.cell((2, 0)) == CellCode.OBSTACLE
    assert grid.cell((1, 1)) == CellCode.KITCHEN


@pytest.mark.parametrize("cells", [[], [[]], [[0, 0], [0]]])
def test_grid_rejects_malformed_matrices(cells):
    with pytest.raises(InvalidGridError):
        Grid(cells)


def test_invalid_grid_is_an_input_error():
    with pytest.raises(InvalidInputError):
        Grid([[0, 0], [0]])
    with pytest.raises(ValueError):
        Grid([])


def test_only_empty_cells_are_walkable():
    grid = Grid([[0, 1, 2, 3]])

    assert grid.is_walkable((0, 0))
    assert not grid.is_walkable((1, 0))
    assert not grid.is_walkable((2, 0))
    assert not grid.is_walkable((3, 0))
    assert not grid.is_walkable((4, 0))
    assert not grid.is_walkable((-1, 0))


def test_neighbors_in_north_east_south_west_order():
    grid = Grid([[0, 0, 0], [0, 0, 0], [0, 0, 0]])

    assert grid.neighbors((1, 1)) == [(1, 0), (2, 1), (1, 2), (0, 1)]
    assert grid.neighbors((0, 0)) == [(1, 0), (0, 1)]


def test_neighbors_skip_blocked_cells():
    grid = Grid([[0, 1, 0], [0, 0, 0], [0, 1, 0]])

    assert grid.neighbors((1, 1)) == [(2, 1), (0, 1)]


def test_grid_from_layout():
    layout = Layout(
        grid=[[0, 0], [1, 0]],
        locations=LayoutLocations(kitchen=GridPosition(x=0, y=0)),
    )

    grid = Grid.from_layout(layout)

    assert (grid.width, grid.height) == (2, 2)
    assert not grid.is_walkable((0, 1))
