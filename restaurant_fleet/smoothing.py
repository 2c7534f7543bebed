"""Line-of-sight path smoothing."""

from __future__ import annotations

import math
from typing import List, Sequence

from restaurant_fleet.grid import Cell, Grid


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class PathSmoother:
    """Reduces a cell-by-cell route to the waypoints needed for steering.

    Every pair of consecutive waypoints in the result has a clear straight
    line over walkable cells, so smoothing never trades away obstacle
    avoidance.
    """

    def __init__(self, grid: Grid) -> None:
        self.grid = grid

    def smooth(self, route: Sequence[Cell]) -> List[Cell]:
        points = [tuple(point) for point in route]
        if len(points) <= 2:
            return points

        smoothed = [points[0]]
        anchor = 0
        last = len(points) - 1
        while anchor < last:
            farthest = anchor + 1
            for index in range(anchor + 2, len(points)):
                if self.has_line_of_sight(points[anchor], points[index]):
                    farthest = index
            smoothed.append(points[farthest])
            anchor = farthest
        return smoothed

    def has_line_of_sight(self, a: Cell, b: Cell) -> bool:
        dx = b[0] - a[0]
        dy = b[1] - a[1]
        steps = max(abs(dx), abs(dy))
        if steps == 0:
            return self.grid.is_walkable(a)

        for i in range(steps + 1):
            x = _round_half_up(a[0] + dx * i / steps)
            y = _round_half_up(a[1] + dy * i / steps)
            if not self.grid.is_walkable((x, y)):
                return False
        return True
