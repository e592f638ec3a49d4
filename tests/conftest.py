# tests/conftest.py
import os
from pathlib import Path

import pytest

# headless pygame for viewer tests
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

from astarviz.core.grid import GridModel

MAPS_DIR = Path(__file__).resolve().parents[1] / "maps"


@pytest.fixture
def maps_dir() -> Path:
    return MAPS_DIR


@pytest.fixture
def open_grid() -> GridModel:
    grid = GridModel(10, 10)
    grid.place_start((0, 0))
    grid.place_end((9, 9))
    return grid


@pytest.fixture
def walls_grid() -> GridModel:
    return GridModel.from_rows([
        "S...#.......",
        ".##.#.####..",
        ".#..#....#..",
        ".#.###.#.#..",
        ".#.....#.#..",
        ".#####.#.##.",
        ".......#...E",
        "########....",
    ])
