import pytest

from astarviz.core.astar import AStarAlgo, find_path, make_blocked_check, manhattan
from astarviz.core.grid import GridModel
from astarviz.core.obstacles import MovingObstacle, ObstacleSimulator
from astarviz.core.types import (
    DONE, NO_PATH, RUNNING, EXPLORED, FRONTIER, PATH,
    InvalidEndpointError, MissingEndpointsError,
)


def _adjacent(a, b):
    return manhattan(a, b) == 1


def _explored_order(algo):
    return [e.cell for e in algo.events if e.kind == EXPLORED]


def test_open_grid_10x10(open_grid):
    algo = AStarAlgo()
    algo.init(open_grid)
    res = algo.run()

    assert res.status == DONE
    assert res.path[0] == (0, 0) and res.path[-1] == (9, 9)
    assert res.metrics["path_len"] == 18
    assert len(res.path) == 19
    assert res.metrics["total_cost"] == 18
    assert res.metrics["closed_count"] <= 100
    assert all(_adjacent(a, b) for a, b in zip(res.path, res.path[1:]))


@pytest.mark.parametrize("start,end", [
    ((0, 0), (4, 0)),
    ((3, 3), (0, 0)),
    ((6, 1), (1, 5)),
    ((2, 6), (6, 2)),
    ((0, 6), (0, 0)),
])
def test_obstacle_free_path_length_is_manhattan(start, end):
    grid = GridModel(7, 7)
    path = find_path(grid, start, end)
    assert len(path) - 1 == manhattan(start, end)


def test_tie_break_prefers_earliest_inserted():
    grid = GridModel(2, 2)
    grid.place_start((0, 0))
    grid.place_end((1, 1))
    algo = AStarAlgo()
    algo.init(grid)
    res = algo.run()

    # (1, 0) and (0, 1) tie on f=2; right is admitted before down
    assert _explored_order(algo) == [(0, 0), (1, 0), (0, 1), (1, 1)]
    assert res.path == [(0, 0), (1, 0), (1, 1)]
    assert [(e.cell, e.step) for e in algo.events if e.kind == FRONTIER] == [
        ((1, 0), 1), ((0, 1), 1), ((1, 1), 2),
    ]
    assert [e.cell for e in algo.events if e.kind == PATH] == res.path


def test_every_expansion_is_min_f_of_open_set(walls_grid):
    algo = AStarAlgo()
    algo.init(walls_grid)
    while True:
        if algo.open_list:
            fs = [walls_grid.node(c).f for c in algo.open_list]
            expected = algo.open_list[fs.index(min(fs))]
        res = algo.step()
        if res.finished:
            break
        assert res.current == expected
    assert res.status == DONE
    assert res.current == expected


def test_walls_path_is_valid(walls_grid):
    path = find_path(walls_grid)
    assert path[0] == walls_grid.start and path[-1] == walls_grid.end
    assert not any(walls_grid.is_obstacle(c) for c in path)
    assert all(_adjacent(a, b) for a, b in zip(path, path[1:]))


def test_enclosed_start_has_no_path():
    grid = GridModel.from_rows([
        ".....",
        "..#..",
        ".#S#.",
        "..#..",
        "....E",
    ])
    algo = AStarAlgo()
    algo.init(grid)
    res = algo.run()
    assert res.status == NO_PATH
    assert algo.popped_count == 1
    assert find_path(grid) is None


def test_blocked_corridor_has_no_path():
    grid = GridModel.from_rows(["S..#..E"])
    assert find_path(grid) is None
    # explored cells are left flagged for inspection
    assert [n.cell for n in grid if n.is_explored] == [(0, 0), (1, 0), (2, 0)]


def test_same_start_and_end_rejected():
    grid = GridModel(3, 3)
    with pytest.raises(InvalidEndpointError):
        find_path(grid, (1, 1), (1, 1))


def test_missing_endpoints_rejected():
    grid = GridModel(3, 3)
    with pytest.raises(MissingEndpointsError):
        find_path(grid)
    grid.place_start((0, 0))
    with pytest.raises(MissingEndpointsError):
        AStarAlgo().init(grid)


def test_obstacle_endpoint_rejected():
    grid = GridModel(3, 3)
    grid.toggle_obstacle((2, 2))
    with pytest.raises(InvalidEndpointError):
        find_path(grid, (0, 0), (2, 2))


def test_repeated_searches_are_identical(walls_grid):
    first = AStarAlgo()
    first.init(walls_grid)
    r1 = first.run()
    events1 = list(first.events)

    second = AStarAlgo()
    second.init(walls_grid)
    r2 = second.run()

    assert r1.path == r2.path
    assert events1 == second.events


def test_step_is_one_expansion_and_terminal_state_sticks(open_grid):
    algo = AStarAlgo()
    algo.init(open_grid)
    res = algo.step()
    assert res.status == RUNNING
    assert res.closed == [(0, 0)]
    assert res.opened == [(1, 0), (0, 1)]
    assert algo.popped_count == 1

    done = algo.run()
    again = algo.step()
    assert again.status == DONE
    assert again.path == done.path
    assert algo.popped_count == done.metrics["popped"]


def test_step_without_grid_is_idle():
    assert AStarAlgo().step().status == "idle"


def test_grid_flags_after_success():
    grid = GridModel.from_rows(["S..E"])
    path = find_path(grid)
    assert path == [(0, 0), (1, 0), (2, 0), (3, 0)]
    assert [n.cell for n in grid if n.is_path] == [(1, 0), (2, 0)]
    assert grid.node((2, 0)).parent == grid.index((1, 0))
    assert grid.node((0, 0)).parent is None


def test_path_flags_follow_explicit_endpoints():
    grid = GridModel.from_rows([".S.E."])
    path = find_path(grid, (0, 0), (4, 0))
    assert path == [(0, 0), (1, 0), (2, 0), (3, 0), (4, 0)]
    # the grid's own start/end lie mid-path and are marked like any other cell
    assert [n.cell for n in grid if n.is_path] == [(1, 0), (2, 0), (3, 0)]


def test_reset_clears_previous_search(open_grid):
    algo = AStarAlgo()
    algo.init(open_grid)
    algo.run()
    algo.reset()
    assert algo.open_list == [(0, 0)]
    assert not algo.closed_set and not algo.events
    assert not any(n.is_explored or n.is_path for n in open_grid)


def test_moving_obstacle_filters_neighbors():
    grid = GridModel(5, 3)
    sim = ObstacleSimulator(5, 3)
    sim.obstacles.append(MovingObstacle(x=2.0, y=1.0, dx=1, dy=1, speed=0.0))

    straight = find_path(grid, (0, 1), (4, 1))
    assert straight == [(0, 1), (1, 1), (2, 1), (3, 1), (4, 1)]

    around = find_path(grid, (0, 1), (4, 1), blocked=make_blocked_check(grid, sim))
    assert (2, 1) not in around
    assert len(around) - 1 == 6


def test_blocked_check_composes_static_and_moving():
    grid = GridModel(3, 3)
    grid.toggle_obstacle((0, 0))
    sim = ObstacleSimulator(3, 3)
    sim.obstacles.append(MovingObstacle(x=1.5, y=1.5, dx=1, dy=1, speed=0.0))
    blocked = make_blocked_check(grid, sim)
    assert blocked(0, 0)
    assert blocked(1, 1)
    assert not blocked(2, 2)
    assert not make_blocked_check(grid)(1, 1)
