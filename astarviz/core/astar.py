# astarviz/core/astar.py
#!/usr/bin/env python3
"""
A*: one expansion per step() so the viewer can animate the search.

Implements the Algorithm API the session and viewer drive:
- init(grid, blocked) - reset() - step() -> StepResult - run()

Heuristic:
- Manhattan distance; admissible and consistent on a 4-connected unit-cost grid.

Open set:
- Plain list in insertion order, scanned linearly for the lowest f.
  Strict '<' keeps the earliest-inserted cell among equal f, so the
  expansion order is deterministic but depends on neighbor order
  (left, right, up, down).

Moving obstacles:
- ``blocked`` is consulted only when a cell's neighbors are generated.
  Cells already in the open or closed set are never re-checked, so a path
  reported as found may cross a cell a moving obstacle has since entered.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set
import logging

from astarviz.core.grid import DIRECTIONS, GridModel
from astarviz.core.obstacles import ObstacleSimulator
from astarviz.core.types import (
    Cell, StepResult, SearchEvent, MissingEndpointsError, InvalidEndpointError,
    IDLE, RUNNING, DONE, NO_PATH, EXPLORED, FRONTIER, PATH,
)

logger = logging.getLogger(__name__)

BlockedCheck = Callable[[int, int], bool]


def manhattan(a: Cell, b: Cell) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def make_blocked_check(grid: GridModel, simulator: Optional[ObstacleSimulator] = None) -> BlockedCheck:
    """Single is_blocked(x, y): static obstacle flag, then the moving-obstacle snapshot."""
    def is_blocked(x: int, y: int) -> bool:
        if grid.is_obstacle((x, y)):
            return True
        return simulator is not None and simulator.occupies(x, y)
    return is_blocked


@dataclass
class AStarAlgo:
    name: str = "A*"

    # Internal state
    grid: Optional[GridModel] = None
    blocked: Optional[BlockedCheck] = None
    start_cell: Optional[Cell] = None
    goal_cell: Optional[Cell] = None
    open_list: List[Cell] = field(default_factory=list)   # insertion order == tie-break order
    open_set: Set[Cell] = field(default_factory=set)      # membership only
    closed_set: Set[Cell] = field(default_factory=set)
    events: List[SearchEvent] = field(default_factory=list)
    path: Optional[List[Cell]] = None
    popped_count: int = 0
    done: bool = False
    no_path: bool = False

    # -------------------- lifecycle --------------------

    def init(self, grid: GridModel, blocked: Optional[BlockedCheck] = None,
             start: Optional[Cell] = None, goal: Optional[Cell] = None) -> None:
        """Bind a grid (and optional blocked-check / explicit endpoints), then reset."""
        self.grid = grid
        self.blocked = blocked or make_blocked_check(grid)
        self.start_cell = start if start is not None else grid.start
        self.goal_cell = goal if goal is not None else grid.end
        self.reset()

    def reset(self) -> None:
        """Clear all state and seed with the start node. Raises on bad endpoints."""
        if self.grid is None:
            return
        self._check_endpoints()

        self.grid.reset("path")
        self.open_list.clear()
        self.open_set.clear()
        self.closed_set.clear()
        self.events.clear()
        self.path = None
        self.popped_count = 0
        self.done = False
        self.no_path = False

        s = self.start_cell
        n = self.grid.node(s)
        n.g = 0
        n.h = manhattan(s, self.goal_cell)
        n.f = n.h
        self.open_list.append(s)
        self.open_set.add(s)

    def _check_endpoints(self) -> None:
        s, e = self.start_cell, self.goal_cell
        if s is None or e is None:
            raise MissingEndpointsError("place both start and end points")
        if s == e:
            raise InvalidEndpointError("start and end are the same cell")
        for label, c in (("start", s), ("end", e)):
            if not self.grid.in_bounds(c):
                raise InvalidEndpointError(f"{label} {c} is outside the grid")
            if self.grid.is_obstacle(c):
                raise InvalidEndpointError(f"{label} {c} is an obstacle")

    # -------------------- helpers --------------------

    def _neighbors4(self, c: Cell) -> List[Cell]:
        """In-bounds, unblocked neighbors in left, right, up, down order."""
        x, y = c
        out: List[Cell] = []
        for dx, dy in DIRECTIONS:
            n = (x + dx, y + dy)
            if self.grid.in_bounds(n) and not self.blocked(*n):
                out.append(n)
        return out

    def _pop_best(self) -> Cell:
        best_i = 0
        best_f = self.grid.node(self.open_list[0]).f
        for i in range(1, len(self.open_list)):
            f = self.grid.node(self.open_list[i]).f
            if f < best_f:
                best_i, best_f = i, f
        u = self.open_list.pop(best_i)
        self.open_set.discard(u)
        return u

    def _finish(self, u: Cell) -> List[Cell]:
        path = self.grid.reconstruct_path(u)
        # endpoints are the path ends by position, whatever the grid has flagged
        for c in path[1:-1]:
            self.grid.node(c).is_path = True
        for c in path:
            self.events.append(SearchEvent(PATH, c, self.popped_count))
        self.path = path
        self.done = True
        logger.debug("%s reached %s after %d expansions", self.name, u, self.popped_count)
        return path

    # -------------------- main stepping logic --------------------

    def step(self) -> StepResult:
        """
        Run ONE A* expansion step:
          - Take the lowest-f open cell (earliest inserted on ties).
          - If goal, reconstruct and finish.
          - Else admit/improve neighbors with unit edge cost.
        """
        if self.grid is None:
            return StepResult(status=IDLE, metrics={"algo": self.name})

        if self.done:
            return StepResult(status=DONE, path=self.path,
                              metrics=self.metrics(path_len=len(self.path) - 1))

        if self.no_path:
            return StepResult(status=NO_PATH, metrics=self.metrics())

        if not self.open_list:
            self.no_path = True
            logger.debug("%s exhausted the open set after %d expansions", self.name, self.popped_count)
            return StepResult(status=NO_PATH, metrics=self.metrics())

        u = self._pop_best()
        self.popped_count += 1
        self.closed_set.add(u)
        node_u = self.grid.node(u)
        node_u.is_explored = True
        node_u.is_frontier = False
        self.events.append(SearchEvent(EXPLORED, u, self.popped_count))

        if u == self.goal_cell:
            path = self._finish(u)
            return StepResult(status=DONE, closed=[u], current=u, path=path,
                              metrics=self.metrics(path_len=len(path) - 1))

        opened_now: List[Cell] = []
        for v in self._neighbors4(u):
            if v in self.closed_set:
                continue
            node_v = self.grid.node(v)
            tentative_g = node_u.g + 1

            if v not in self.open_set:
                self.open_list.append(v)
                self.open_set.add(v)
                node_v.is_frontier = True
                opened_now.append(v)
                self.events.append(SearchEvent(FRONTIER, v, self.popped_count))
            elif tentative_g >= node_v.g:
                continue

            node_v.parent = self.grid.index(u)
            node_v.g = tentative_g
            node_v.h = manhattan(v, self.goal_cell)
            node_v.f = node_v.g + node_v.h

        return StepResult(status=RUNNING, opened=opened_now, closed=[u], current=u,
                          metrics=self.metrics())

    def run(self) -> StepResult:
        """Step until the search succeeds or the open set is exhausted."""
        res = self.step()
        while not res.finished and res.status != IDLE:
            res = self.step()
        return res

    # -------------------- metrics --------------------

    def metrics(self, path_len: int = 0) -> Dict[str, object]:
        return {
            "algo": self.name,
            "popped": self.popped_count,
            "open_size": len(self.open_list),
            "closed_count": len(self.closed_set),
            "path_len": path_len,
            "total_cost": self.grid.node(self.goal_cell).g if self.done else None,
        }


def find_path(grid: GridModel, start: Optional[Cell] = None, end: Optional[Cell] = None,
              blocked: Optional[BlockedCheck] = None) -> Optional[List[Cell]]:
    """Run A* to completion; returns start..end inclusive, or None when no path exists."""
    algo = AStarAlgo()
    algo.init(grid, blocked, start=start, goal=end)
    res = algo.run()
    return res.path if res.status == DONE else None
