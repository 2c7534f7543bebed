"""Static walkability model of the restaurant floor."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, List, Sequence, Tuple

from restaurant_fleet.errors import InvalidGridError

if TYPE_CHECKING:
    from restaurant_fleet.enterprise.core.models import Layout

Cell = Tuple[int, int]


class CellCode(enum.IntEnum):
    """Cell codes used by stored floor layouts."""

    EMPTY = 0
    OBSTACLE = 1
    KITCHEN = 2
    TABLE = 3


WALKABLE = CellCode.EMPTY

# north, east, south, west
_DIRECTIONS: Tuple[Cell, ...] = ((0, -1), (1, 0), (0, 1), (-1, 0))


class Grid:
    """Immutable 2-D map of cell codes indexed as ``cells[y][x]``."""

    def __init__(self, cells: Sequence[Sequence[int]]) -> None:
        if not cells:
            raise InvalidGridError("grid must contain at least one row")
        width = len(cells[0])
        if width == 0:
            raise InvalidGridError("grid rows must contain at least one cell")
        for index, row in enumerate(cells):
            if len(row) != width:
                raise InvalidGridError(
                    f"row {index} has {len(row)} cells, expected {width}"
                )

        self._cells: Tuple[Tuple[int, ...], ...] = tuple(tuple(int(code) for code in row) for row in cells)
        self._width = width
        self._height = len(cells)

    @classmethod
    def from_layout(cls, layout: "Layout") -> "Grid":
        return cls(layout.grid)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def cell(self, position: Cell) -> int:
        x, y = position
        return self._cells[y][x]

    def in_bounds(self, position: Cell) -> bool:
        x, y = position
        return 0 <= x < self._width and 0 <= y < self._height

    def is_walkable(self, position: Cell) -> bool:
        return self.in_bounds(position) and self.cell(position) == WALKABLE

    def neighbors(self, position: Cell) -> List[Cell]:
        """Return the orthogonal in-bounds walkable cells around ``position``."""

        x, y = position
        result: List[Cell] = []
        for dx, dy in _DIRECTIONS:
            candidate = (x + dx, y + dy)
            if self.is_walkable(candidate):
                result.append(candidate)
        return result
