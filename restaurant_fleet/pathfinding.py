"""Pathfinding algorithms for robot navigation on the floor grid."""

from __future__ import annotations

import heapq
import itertools
from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from restaurant_fleet.grid import Cell, Grid
from restaurant_fleet.observability.metrics import PATHFINDING_DURATION


def manhattan(a: Cell, b: Cell) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


@dataclass
class PathNode:
    """Search-internal node; discarded once the path is extracted."""

    position: Cell
    g: int
    h: int
    parent: Optional["PathNode"] = None

    @property
    def f(self) -> int:
        return self.g + self.h


class AStarPathfinder:
    """A* search over a 4-connected grid with unit step cost."""

    def __init__(self, grid: Grid) -> None:
        self.grid = grid

    def find_path(self, start: Cell, goal: Cell) -> Optional[List[Cell]]:
        """Return the shortest route from ``start`` to ``goal`` or ``None``.

        Unreachable, out-of-bounds and blocked endpoints all yield ``None``.
        Ties on ``f`` are resolved in insertion order so results are stable.
        """

        with PATHFINDING_DURATION.time():
            return self._search(tuple(start), tuple(goal))

    def _search(self, start: Cell, goal: Cell) -> Optional[List[Cell]]:
        if not self.grid.is_walkable(start) or not self.grid.is_walkable(goal):
            return None

        sequence = itertools.count()
        start_node = PathNode(position=start, g=0, h=manhattan(start, goal))
        open_nodes: Dict[Cell, PathNode] = {start: start_node}
        open_heap: list[tuple[int, int, PathNode]] = [(start_node.f, next(sequence), start_node)]
        closed: Set[Cell] = set()

        while open_heap:
            _score, _seq, current = heapq.heappop(open_heap)
            if current.position in closed:
                # stale entry left behind by an in-place relaxation
                continue
            del open_nodes[current.position]
            closed.add(current.position)

            if current.position == goal:
                return self._reconstruct(current)

            for neighbor in self.grid.neighbors(current.position):
                if neighbor in closed:
                    continue
                g_score = current.g + 1
                existing = open_nodes.get(neighbor)
                if existing is None:
                    node = PathNode(
                        position=neighbor,
                        g=g_score,
                        h=manhattan(neighbor, goal),
                        parent=current,
                    )
                    open_nodes[neighbor] = node
                    heapq.heappush(open_heap, (node.f, next(sequence), node))
                elif g_score < existing.g:
                    existing.g = g_score
                    existing.parent = current
                    heapq.heappush(open_heap, (existing.f, next(sequence), existing))

        return None

    @staticmethod
    def _reconstruct(node: PathNode) -> List[Cell]:
        path: List[Cell] = []
        current: Optional[PathNode] = node
        while current is not None:
            path.append(current.position)
            current = current.parent
        path.reverse()
        return path


def find_path_bfs(grid: Grid, start: Cell, goal: Cell) -> Optional[List[Cell]]:
    """Compute a shortest path using breadth-first search."""

    start, goal = tuple(start), tuple(goal)
    if not grid.is_walkable(start) or not grid.is_walkable(goal):
        return None

    queue = deque([(start, [start])])
    visited = {start}

    while queue:
        position, path = queue.popleft()

        if position == goal:
            return path

        for neighbor in grid.neighbors(position):
            if neighbor in visited:
                continue
            visited.add(neighbor)
            queue.append((neighbor, path + [neighbor]))

    return None
