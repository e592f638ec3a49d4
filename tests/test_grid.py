import dataclasses
import json
import random

import pytest

from astarviz.core.grid import GridModel, load_map, RESET_FULL, RESET_PATH
from astarviz.core.types import InvalidEndpointError


def _state(grid):
    return [dataclasses.astuple(n) for n in grid], grid.start, grid.end


def test_neighbors_fixed_order():
    grid = GridModel(3, 3)
    assert grid.neighbors((1, 1)) == [(0, 1), (2, 1), (1, 0), (1, 2)]
    assert grid.neighbors((0, 0)) == [(1, 0), (0, 1)]


def test_neighbors_skip_obstacles():
    grid = GridModel(3, 3)
    grid.toggle_obstacle((2, 1))
    grid.toggle_obstacle((1, 0))
    assert grid.neighbors((1, 1)) == [(0, 1), (1, 2)]


def test_row_major_index():
    grid = GridModel(4, 3)
    assert grid.index((0, 0)) == 0
    assert grid.index((3, 0)) == 3
    assert grid.index((1, 2)) == 9
    assert grid.nodes[9].cell == (1, 2)


def test_node_outside_grid_raises():
    grid = GridModel(2, 2)
    with pytest.raises(IndexError):
        grid.node((2, 0))


def test_bad_size_rejected():
    with pytest.raises(ValueError):
        GridModel(0, 5)


def test_place_start_clears_previous_endpoints():
    grid = GridModel(5, 5)
    grid.place_start((0, 0))
    grid.place_end((4, 4))
    grid.place_start((2, 2))
    assert grid.start == (2, 2)
    assert grid.end is None
    assert [n.cell for n in grid if n.is_start] == [(2, 2)]
    assert not any(n.is_end for n in grid)


def test_place_start_on_obstacle_clears_obstacle():
    grid = GridModel(3, 3)
    grid.toggle_obstacle((1, 1))
    grid.place_start((1, 1))
    assert not grid.is_obstacle((1, 1))


def test_place_end_rules():
    grid = GridModel(3, 3)
    with pytest.raises(InvalidEndpointError):
        grid.place_end((2, 2))
    grid.place_start((0, 0))
    with pytest.raises(InvalidEndpointError):
        grid.place_end((0, 0))
    with pytest.raises(InvalidEndpointError):
        grid.place_end((3, 0))
    grid.place_end((2, 2))
    grid.place_end((2, 1))
    assert grid.end == (2, 1)
    assert [n.cell for n in grid if n.is_end] == [(2, 1)]


def test_obstacle_edits_skip_endpoints():
    grid = GridModel(3, 3)
    grid.place_start((0, 0))
    grid.place_end((2, 2))
    assert grid.toggle_obstacle((0, 0)) is False
    assert grid.paint_obstacle((2, 2)) is False
    assert grid.toggle_obstacle((1, 1)) is True
    assert grid.is_obstacle((1, 1))
    assert grid.paint_obstacle((1, 1)) is False
    assert grid.toggle_obstacle((1, 1)) is True
    assert not grid.is_obstacle((1, 1))


def test_reset_path_keeps_layout():
    grid = GridModel(3, 3)
    grid.place_start((0, 0))
    grid.place_end((2, 2))
    grid.toggle_obstacle((1, 1))
    n = grid.node((1, 0))
    n.g, n.h, n.f, n.parent = 1, 3, 4, 0
    n.is_explored = n.is_frontier = n.is_path = True

    grid.reset(RESET_PATH)

    assert (n.g, n.h, n.f, n.parent) == (0, 0, 0, None)
    assert not (n.is_explored or n.is_frontier or n.is_path)
    assert grid.is_obstacle((1, 1))
    assert (grid.start, grid.end) == ((0, 0), (2, 2))


def test_reset_full_clears_everything_and_is_idempotent():
    grid = GridModel(4, 4)
    grid.place_start((0, 0))
    grid.place_end((3, 3))
    grid.toggle_obstacle((1, 1))
    grid.node((2, 2)).is_explored = True

    grid.reset(RESET_FULL)
    once = _state(grid)
    grid.reset(RESET_FULL)

    assert _state(grid) == once
    assert once == _state(GridModel(4, 4))


def test_reset_unknown_mode():
    with pytest.raises(ValueError):
        GridModel(2, 2).reset("everything")


def test_randomize_obstacles_never_touches_endpoints():
    grid = GridModel(6, 6)
    grid.place_start((0, 0))
    grid.place_end((5, 5))
    added = grid.randomize_obstacles(random.Random(1), density=1.0)
    assert added == 34
    assert not grid.is_obstacle((0, 0))
    assert not grid.is_obstacle((5, 5))


def test_randomize_obstacles_is_seeded():
    a, b = GridModel(8, 8), GridModel(8, 8)
    a.randomize_obstacles(random.Random(42))
    b.randomize_obstacles(random.Random(42))
    assert [n.is_obstacle for n in a] == [n.is_obstacle for n in b]
    assert GridModel(8, 8).randomize_obstacles(random.Random(3), density=0.0) == 0


def test_reconstruct_path_follows_parent_indices():
    grid = GridModel(3, 1)
    grid.node((1, 0)).parent = grid.index((0, 0))
    grid.node((2, 0)).parent = grid.index((1, 0))
    assert grid.reconstruct_path((2, 0)) == [(0, 0), (1, 0), (2, 0)]


def test_from_rows():
    grid = GridModel.from_rows(["S.#", "..E"])
    assert (grid.cols, grid.rows) == (3, 2)
    assert grid.start == (0, 0)
    assert grid.end == (2, 1)
    assert grid.is_obstacle((2, 0))
    with pytest.raises(ValueError):
        GridModel.from_rows(["...", ".."])


def test_load_map_numeric(tmp_path):
    p = tmp_path / "m.json"
    p.write_text(json.dumps({
        "cols": 3, "rows": 2, "start": [0, 0], "end": [2, 1],
        "cells": [[0, 1, 0], [0, 0, 0]],
    }))
    grid = load_map(p)
    assert grid.is_obstacle((1, 0))
    assert (grid.start, grid.end) == ((0, 0), (2, 1))


def test_from_rows_end_without_start_rejected():
    with pytest.raises(ValueError, match="without a start"):
        GridModel.from_rows(["...E"])


def test_load_map_keeps_text_end_with_json_start(tmp_path):
    p = tmp_path / "m.json"
    p.write_text(json.dumps({"cols": 4, "rows": 1, "cells": ["...E"], "start": [0, 0]}))
    grid = load_map(p)
    assert (grid.start, grid.end) == ((0, 0), (3, 0))
    assert grid.node((3, 0)).is_end


def test_load_map_json_endpoints_override_text_marks(tmp_path):
    p = tmp_path / "m.json"
    p.write_text(json.dumps({"cols": 4, "rows": 1, "cells": ["S..E"], "end": [2, 0]}))
    grid = load_map(p)
    assert (grid.start, grid.end) == ((0, 0), (2, 0))
    assert not grid.node((3, 0)).is_end


def test_load_map_text_end_without_any_start(tmp_path):
    p = tmp_path / "m.json"
    p.write_text(json.dumps({"cols": 4, "rows": 1, "cells": ["...E"]}))
    with pytest.raises(ValueError, match="without a start"):
        load_map(p)


def test_load_map_errors(tmp_path):
    p = tmp_path / "bad.json"
    p.write_text(json.dumps({"cols": 3, "rows": 2, "cells": [[0, 0, 0]]}))
    with pytest.raises(ValueError, match="size mismatch"):
        load_map(p)

    p.write_text(json.dumps({"cols": 1, "rows": 1, "cells": [[0]], "start": [5, 5]}))
    with pytest.raises(ValueError, match="out of bounds"):
        load_map(p)

    p.write_text(json.dumps({"rows": 1, "cells": [[0]]}))
    with pytest.raises(ValueError):
        load_map(p)


def test_shipped_maps_load(maps_dir):
    for path in sorted(maps_dir.glob("*.json")):
        grid = load_map(path)
        assert grid.start is not None and grid.end is not None, path.name
