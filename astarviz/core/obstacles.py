# astarviz/core/obstacles.py
#!/usr/bin/env python3
"""
Moving obstacles: blockers that drift diagonally across the grid and bounce off its edges.

Positions are continuous; a blocker occupies the cell its floored position falls in.
Speed is throttled with a per-obstacle counter so motion does not depend on frame rate:
each step() adds ``speed`` to the counter and the blocker moves one cell once it reaches 1.
"""

import logging
import math
import random
from dataclasses import dataclass
from typing import List, Optional, Set

from astarviz.core.types import Cell

logger = logging.getLogger(__name__)


@dataclass
class MovingObstacle:
    x: float
    y: float
    dx: int
    dy: int
    speed: float
    counter: float = 0.0

    @property
    def cell(self) -> Cell:
        return (math.floor(self.x), math.floor(self.y))


class ObstacleSimulator:
    def __init__(self, cols: int, rows: int, rng: Optional[random.Random] = None, *,
                 spawn_min: int = 3, spawn_max: int = 5,
                 speed_min: float = 0.05, speed_max: float = 0.2):
        self.cols = cols
        self.rows = rows
        self.rng = rng or random.Random()
        self.spawn_min = spawn_min
        self.spawn_max = spawn_max
        self.speed_min = speed_min
        self.speed_max = speed_max
        self.obstacles: List[MovingObstacle] = []

    def __len__(self) -> int:
        return len(self.obstacles)

    def spawn(self, count: Optional[int] = None) -> List[MovingObstacle]:
        """Add a batch at uniform random positions with random diagonal headings."""
        if count is None:
            count = self.rng.randint(self.spawn_min, self.spawn_max)
        batch = [
            MovingObstacle(
                x=self.rng.uniform(0, self.cols - 1),
                y=self.rng.uniform(0, self.rows - 1),
                dx=self.rng.choice((-1, 1)),
                dy=self.rng.choice((-1, 1)),
                speed=self.rng.uniform(self.speed_min, self.speed_max),
            )
            for _ in range(count)
        ]
        self.obstacles.extend(batch)
        logger.info("Spawned %d moving obstacles (%d total)", count, len(self.obstacles))
        return batch

    def step(self) -> None:
        max_x = self.cols - 1
        max_y = self.rows - 1
        for o in self.obstacles:
            o.counter += o.speed
            if o.counter < 1:
                continue
            o.counter = 0.0
            o.x += o.dx
            o.y += o.dy
            # elastic bounce on the axis that hit the wall
            if (o.x <= 0 and o.dx < 0) or (o.x >= max_x and o.dx > 0):
                o.dx = -o.dx
            if (o.y <= 0 and o.dy < 0) or (o.y >= max_y and o.dy > 0):
                o.dy = -o.dy
            o.x = min(max(o.x, 0.0), float(max_x))
            o.y = min(max(o.y, 0.0), float(max_y))

    def occupies(self, x: int, y: int) -> bool:
        return any(o.cell == (x, y) for o in self.obstacles)

    def occupied_cells(self) -> Set[Cell]:
        return {o.cell for o in self.obstacles}

    def clear(self) -> None:
        self.obstacles.clear()
