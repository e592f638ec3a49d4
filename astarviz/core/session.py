# astarviz/core/session.py
#!/usr/bin/env python3
"""
Session: owns the grid, the moving obstacles and the search, and gates who may touch them.

Mode gate:
- "editing": endpoint/obstacle edits and starting a search are allowed.
- "running": a search owns the grid's search fields; edits raise SessionBusyError.

Scheduling (driven by whoever owns the clock, e.g. the viewer's frame loop):
- tick(): advance moving obstacles when the dynamic feature is on, apply a pending
  reset (cancels the search), then run ONE expansion if the search is animated.
- With animation off, start_search() runs the whole search before returning.
"""

import logging
import random
from typing import List, Optional

from astarviz.core.astar import AStarAlgo, BlockedCheck, make_blocked_check
from astarviz.core.grid import GridModel, RESET_FULL, RESET_PATH
from astarviz.core.obstacles import ObstacleSimulator
from astarviz.core.types import (
    Cell, StepResult, MissingEndpointsError, SessionBusyError, DONE, RUNNING,
)

logger = logging.getLogger(__name__)

# Session.mode
EDITING = "editing"
RUNNING_MODE = "running"

# Session.status
STATUS_IDLE = "idle"
STATUS_RUNNING = "running"
STATUS_SUCCEEDED = "succeeded"
STATUS_FAILED = "failed"


class Session:
    def __init__(self, grid: GridModel, *, rng: Optional[random.Random] = None,
                 simulator: Optional[ObstacleSimulator] = None,
                 animate: bool = True, dynamic: bool = False, density: float = 0.3):
        self.grid = grid
        self.rng = rng or random.Random()
        self.simulator = simulator or ObstacleSimulator(grid.cols, grid.rows, self.rng)
        self.algo = AStarAlgo()
        self.animate = animate
        self.dynamic = dynamic
        self.density = density

        self.mode = EDITING
        self.status = STATUS_IDLE
        self.last_result: Optional[StepResult] = None
        self._pending_reset: Optional[str] = None

    @classmethod
    def from_config(cls, cfg, grid: Optional[GridModel] = None,
                    rng: Optional[random.Random] = None) -> "Session":
        """Build a session from a :class:`astarviz.config.Config`."""
        if grid is None:
            grid = GridModel(cfg.grid.cols, cfg.grid.rows)
        ob = cfg.obstacles
        if rng is None:
            rng = random.Random(ob.seed)
        sim = ObstacleSimulator(grid.cols, grid.rows, rng,
                                spawn_min=ob.spawn_min, spawn_max=ob.spawn_max,
                                speed_min=ob.speed_min, speed_max=ob.speed_max)
        return cls(grid, rng=rng, simulator=sim, animate=cfg.search.animate,
                   dynamic=ob.dynamic, density=ob.random_density)

    # -------------------- state --------------------

    @property
    def running(self) -> bool:
        return self.mode == RUNNING_MODE

    @property
    def cancel_pending(self) -> bool:
        return self._pending_reset is not None

    def is_blocked(self, x: int, y: int) -> bool:
        return self.blocked_check()(x, y)

    def blocked_check(self) -> BlockedCheck:
        """Static obstacles, plus moving ones while the dynamic feature is on (read at call time)."""
        static = make_blocked_check(self.grid)

        def is_blocked(x: int, y: int) -> bool:
            return static(x, y) or (self.dynamic and self.simulator.occupies(x, y))
        return is_blocked

    def _require_editing(self, action: str) -> None:
        if self.running:
            raise SessionBusyError(f"cannot {action} while a search is running")

    def _back_to_idle(self) -> None:
        self.status = STATUS_IDLE
        self.last_result = None

    # -------------------- edits --------------------

    def place_start(self, c: Cell) -> None:
        self._require_editing("place the start")
        self.grid.place_start(c)
        self._back_to_idle()

    def place_end(self, c: Cell) -> None:
        self._require_editing("place the end")
        self.grid.place_end(c)
        self.grid.reset(RESET_PATH)
        self._back_to_idle()

    def toggle_obstacle(self, c: Cell) -> bool:
        self._require_editing("edit obstacles")
        return self.grid.toggle_obstacle(c)

    def paint_obstacle(self, c: Cell) -> bool:
        self._require_editing("edit obstacles")
        return self.grid.paint_obstacle(c)

    def edit_cell(self, c: Cell) -> Optional[str]:
        """
        Click routing: start first, then end, then obstacle toggles.
        Returns "start", "end", "obstacle", or None when nothing changed.
        """
        self._require_editing("edit the grid")
        if self.grid.start is None:
            self.place_start(c)
            return "start"
        if self.grid.end is None:
            if c == self.grid.start:
                return None
            self.place_end(c)
            return "end"
        return "obstacle" if self.toggle_obstacle(c) else None

    def randomize_obstacles(self) -> int:
        self._require_editing("randomize obstacles")
        added = self.grid.randomize_obstacles(self.rng, self.density)
        self._back_to_idle()
        logger.info("Randomized obstacles: %d added", added)
        return added

    def spawn_moving_obstacles(self, count: Optional[int] = None):
        return self.simulator.spawn(count)

    def toggle_animation(self) -> bool:
        self.animate = not self.animate
        logger.info("Animation %s", "on" if self.animate else "off")
        return self.animate

    def toggle_dynamic(self) -> bool:
        self.dynamic = not self.dynamic
        logger.info("Dynamic obstacles %s", "on" if self.dynamic else "off")
        return self.dynamic

    # -------------------- resets --------------------

    def reset_path(self) -> None:
        self._reset(RESET_PATH)

    def reset_all(self) -> None:
        self._reset(RESET_FULL)

    def _reset(self, mode: str) -> None:
        if self.running:
            # observed at the next tick, never mid-expansion
            self._pending_reset = mode
            logger.info("Reset (%s) requested during search; cancelling at next step", mode)
            return
        self._apply_reset(mode)

    def _apply_reset(self, mode: str) -> None:
        self.grid.reset(mode)
        if mode == RESET_FULL:
            self.simulator.clear()
        self.mode = EDITING
        self._pending_reset = None
        self._back_to_idle()
        logger.info("Grid reset (%s)", mode)

    # -------------------- search --------------------

    def start_search(self) -> StepResult:
        if self.running:
            raise SessionBusyError("a search is already running")
        if self.grid.start is None or self.grid.end is None:
            raise MissingEndpointsError("place both start and end points")

        self.algo.init(self.grid, self.blocked_check())
        self.mode = RUNNING_MODE
        self.status = STATUS_RUNNING
        logger.info("Search started %s -> %s (%s)", self.grid.start, self.grid.end,
                    "animated" if self.animate else "instant")

        if not self.animate:
            return self._complete(self.algo.run())
        self.last_result = StepResult(status=RUNNING, metrics=self.algo.metrics())
        return self.last_result

    def tick(self, expand: bool = True) -> Optional[StepResult]:
        """
        One scheduler tick. Returns the expansion result, or None if no expansion ran.
        ``expand=False`` only moves obstacles (frames between search steps).
        """
        # obstacles advance every tick, cancelled or not
        if self.dynamic:
            self.simulator.step()

        if self._pending_reset is not None:
            mode = self._pending_reset
            logger.info("Search cancelled after %d expansions", self.algo.popped_count)
            self._apply_reset(mode)
            return None

        if not (self.running and expand):
            return None
        # animation switched off mid-search: finish without further suspension
        res = self.algo.step() if self.animate else self.algo.run()
        if res.finished:
            return self._complete(res)
        self.last_result = res
        return res

    def _complete(self, res: StepResult) -> StepResult:
        self.mode = EDITING
        if res.status == DONE:
            self.status = STATUS_SUCCEEDED
            conflicts: List[Cell] = []
            if self.dynamic:
                conflicts = [c for c in res.path if self.simulator.occupies(*c)]
            res.metrics["blocked_on_path"] = conflicts
            if conflicts:
                logger.warning("Path found but %d cell(s) are now occupied by moving obstacles: %s",
                               len(conflicts), conflicts)
            logger.info("Path found: %d steps, %d cells explored",
                        res.metrics["path_len"], res.metrics["closed_count"])
        else:
            self.status = STATUS_FAILED
            logger.info("No path found after %d expansions", res.metrics.get("popped", 0))
        self.last_result = res
        return res
