# astarviz/core/grid.py
#!/usr/bin/env python3
"""
Grid model: the cell array the search engine and the viewer share.

Cells live in one fixed row-major list (index = y * cols + x). Search
back-links are stored as indices into that list, never as node references,
so resetting a search is just clearing a few fields per node.

Editing rules (kept here so every front-end gets them for free):
- at most one start and one end; placing a new start clears both endpoints
- an endpoint is never an obstacle
- obstacle edits skip endpoint cells silently
"""

import json
import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from astarviz.core.types import Cell, InvalidEndpointError

logger = logging.getLogger(__name__)

RESET_PATH = "path"
RESET_FULL = "full"

# Fixed expansion order: left, right, up, down. Changing it changes tie-breaks.
DIRECTIONS: List[Cell] = [(-1, 0), (1, 0), (0, -1), (0, 1)]


@dataclass
class Node:
    x: int
    y: int
    g: float = 0.0
    h: float = 0.0
    f: float = 0.0
    parent: Optional[int] = None   # index into GridModel.nodes
    is_obstacle: bool = False
    is_start: bool = False
    is_end: bool = False
    is_path: bool = False
    is_explored: bool = False
    is_frontier: bool = False

    @property
    def cell(self) -> Cell:
        return (self.x, self.y)

    def clear_search(self) -> None:
        self.g = 0.0
        self.h = 0.0
        self.f = 0.0
        self.parent = None
        self.is_path = False
        self.is_explored = False
        self.is_frontier = False


class GridModel:
    def __init__(self, cols: int, rows: int):
        if cols <= 0 or rows <= 0:
            raise ValueError(f"grid must be at least 1x1, got {cols}x{rows}")
        self.cols = cols
        self.rows = rows
        self.nodes: List[Node] = [Node(x, y) for y in range(rows) for x in range(cols)]
        self.start: Optional[Cell] = None
        self.end: Optional[Cell] = None

    # -------------------- construction --------------------

    @classmethod
    def from_rows(cls, rows: Sequence[str]) -> "GridModel":
        """Build a grid from text rows: '#' obstacle, 'S' start, 'E' end, anything else free."""
        grid, start, end = cls.parse_rows(rows)
        grid.place_endpoints(start, end)
        return grid

    @classmethod
    def parse_rows(cls, rows: Sequence[str]):
        if not rows or any(len(r) != len(rows[0]) for r in rows):
            raise ValueError("rows must be non-empty and of equal length")
        grid = cls(len(rows[0]), len(rows))
        start = end = None
        for y, line in enumerate(rows):
            for x, ch in enumerate(line):
                if ch == "#":
                    grid.node((x, y)).is_obstacle = True
                elif ch == "S":
                    start = (x, y)
                elif ch == "E":
                    end = (x, y)
        return grid, start, end

    def place_endpoints(self, start: Optional[Cell], end: Optional[Cell]) -> None:
        if end is not None and start is None:
            raise ValueError(f"end {end} given without a start")
        if start is not None:
            self.place_start(start)
        if end is not None:
            self.place_end(end)

    # -------------------- accessors --------------------

    def in_bounds(self, c: Cell) -> bool:
        x, y = c
        return 0 <= x < self.cols and 0 <= y < self.rows

    def index(self, c: Cell) -> int:
        x, y = c
        return y * self.cols + x

    def node(self, c: Cell) -> Node:
        if not self.in_bounds(c):
            raise IndexError(f"cell {c} outside {self.cols}x{self.rows} grid")
        return self.nodes[self.index(c)]

    def is_obstacle(self, c: Cell) -> bool:
        return self.node(c).is_obstacle

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def neighbors(self, c: Cell) -> List[Cell]:
        """Up to four in-bounds, non-obstacle cells in left, right, up, down order."""
        x, y = c
        out: List[Cell] = []
        for dx, dy in DIRECTIONS:
            n = (x + dx, y + dy)
            if self.in_bounds(n) and not self.nodes[self.index(n)].is_obstacle:
                out.append(n)
        return out

    def reconstruct_path(self, end: Cell) -> List[Cell]:
        """Follow parent indices back from ``end`` and return start..end."""
        path: List[Cell] = []
        i: Optional[int] = self.index(end)
        while i is not None:
            n = self.nodes[i]
            path.append(n.cell)
            i = n.parent
        path.reverse()
        return path

    # -------------------- edits --------------------

    def clear_endpoints(self) -> None:
        if self.start is not None:
            self.node(self.start).is_start = False
            self.start = None
        if self.end is not None:
            self.node(self.end).is_end = False
            self.end = None

    def place_start(self, c: Cell) -> None:
        if not self.in_bounds(c):
            raise InvalidEndpointError(f"start {c} is outside the grid")
        self.clear_endpoints()
        self.reset(RESET_PATH)
        n = self.node(c)
        n.is_obstacle = False
        n.is_start = True
        self.start = c

    def place_end(self, c: Cell) -> None:
        if not self.in_bounds(c):
            raise InvalidEndpointError(f"end {c} is outside the grid")
        if self.start is None:
            raise InvalidEndpointError("place the start before the end")
        if c == self.start:
            raise InvalidEndpointError("end cannot be the start cell")
        if self.end is not None:
            self.node(self.end).is_end = False
        n = self.node(c)
        n.is_obstacle = False
        n.is_end = True
        self.end = c

    def toggle_obstacle(self, c: Cell) -> bool:
        """Flip the obstacle flag; returns False (and does nothing) on endpoints."""
        n = self.node(c)
        if n.is_start or n.is_end:
            return False
        n.is_obstacle = not n.is_obstacle
        return True

    def paint_obstacle(self, c: Cell) -> bool:
        n = self.node(c)
        if n.is_start or n.is_end or n.is_obstacle:
            return False
        n.is_obstacle = True
        return True

    def randomize_obstacles(self, rng: random.Random, density: float = 0.3) -> int:
        """Turn each non-endpoint cell into an obstacle with probability ``density``."""
        self.reset(RESET_PATH)
        added = 0
        for n in self.nodes:
            if n.is_start or n.is_end:
                continue
            if rng.random() < density:
                if not n.is_obstacle:
                    added += 1
                n.is_obstacle = True
        logger.debug("randomize_obstacles: %d new obstacles (density %.2f)", added, density)
        return added

    def reset(self, mode: str = RESET_PATH) -> None:
        if mode not in (RESET_PATH, RESET_FULL):
            raise ValueError(f"unknown reset mode {mode!r}")
        for n in self.nodes:
            n.clear_search()
            if mode == RESET_FULL:
                n.is_obstacle = False
        if mode == RESET_FULL:
            self.clear_endpoints()


# ---------- Loader ----------
def load_map(path: Path) -> GridModel:
    """
    Read a JSON map:
        {"cols": W, "rows": H, "cells": [[0|1, ...] * W] * H, "start": [x, y], "end": [x, y]}
    ``cells`` may also be a list of text rows in the ``from_rows`` alphabet.
    ``start``/``end`` are optional.
    """
    with open(path, "r") as f:
        data = json.load(f)
    try:
        cols = int(data["cols"])
        rows = int(data["rows"])
        cells = data["cells"]
    except (KeyError, TypeError, ValueError) as ex:
        raise ValueError(f"{path}: missing or malformed cols/rows/cells ({ex})") from ex

    if len(cells) != rows or any(len(r) != cols for r in cells):
        raise ValueError(f"{path}: cells size mismatch, expected {cols}x{rows}")

    start = end = None
    if cells and isinstance(cells[0], str):
        grid, start, end = GridModel.parse_rows(cells)
    else:
        grid = GridModel(cols, rows)
        for y, row in enumerate(cells):
            for x, v in enumerate(row):
                grid.node((x, y)).is_obstacle = int(v) == 1

    # explicit keys win over 'S'/'E' marks in text rows
    for key in ("start", "end"):
        value = data.get(key)
        if value is None:
            continue
        value = tuple(value)
        if not grid.in_bounds(value):
            raise ValueError(f"{path}: {key} {value} out of bounds")
        if key == "start":
            start = value
        else:
            end = value
    try:
        grid.place_endpoints(start, end)
    except (InvalidEndpointError, ValueError) as ex:
        raise ValueError(f"{path}: {ex}") from ex
    logger.info("Loaded map %s (%dx%d)", path, cols, rows)
    return grid
