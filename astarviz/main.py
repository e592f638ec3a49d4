# astarviz/main.py
"""Command line entry: open the viewer, or run one search headless."""

from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path
from typing import Optional, Sequence

from astarviz.config import CONFIG_PATH, Config, ConfigError, load_config
from astarviz.core.grid import GridModel, load_map
from astarviz.core.session import Session
from astarviz.core.types import VisualizerError, DONE

logger = logging.getLogger(__name__)

EXIT_FOUND = 0
EXIT_NO_PATH = 1
EXIT_INVALID = 2


def configure_logging(cfg: Config) -> None:
    numeric_level = getattr(logging, cfg.logging.global_level, logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        force=True
    )
    # Apply per-module levels if defined
    for module_name, level_str in cfg.logging.module_levels.items():
        module_numeric_level = getattr(logging, str(level_str).upper(), None)
        if isinstance(module_numeric_level, int):
            logging.getLogger(module_name).setLevel(module_numeric_level)
        else:
            logger.warning("Invalid log level '%s' for module '%s' in config.", level_str, module_name)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="astarviz", description="Interactive A* pathfinding visualizer")
    p.add_argument("--config", type=Path, default=CONFIG_PATH, help="YAML config file")
    p.add_argument("--map", type=Path, default=None, help="JSON map to load")
    p.add_argument("--headless", action="store_true", help="run one instant search and print the result")
    p.add_argument("--seed", type=int, default=None, help="seed for random obstacles")
    return p


def build_session(cfg: Config, map_path: Optional[Path] = None, seed: Optional[int] = None) -> Session:
    grid: GridModel = load_map(map_path) if map_path else GridModel(cfg.grid.cols, cfg.grid.rows)
    if seed is None:
        seed = cfg.obstacles.seed
    return Session.from_config(cfg, grid=grid, rng=random.Random(seed))


def run_headless(session: Session) -> int:
    session.animate = False
    try:
        res = session.start_search()
    except VisualizerError as ex:
        print(f"error: {ex}", file=sys.stderr)
        return EXIT_INVALID
    m = res.metrics
    if res.status == DONE:
        print(f"path found: {m['path_len']} steps, {m['closed_count']} cells explored")
        print(" ".join(f"{x},{y}" for x, y in res.path))
        return EXIT_FOUND
    print(f"no path: {m['closed_count']} cells explored")
    return EXIT_NO_PATH


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        cfg = load_config(args.config)
    except ConfigError as ex:
        print(f"config error: {ex}", file=sys.stderr)
        return EXIT_INVALID
    configure_logging(cfg)

    try:
        session = build_session(cfg, args.map, args.seed)
    except (OSError, ValueError) as ex:
        logger.error("Failed to load map %s: %s", args.map, ex)
        return EXIT_INVALID

    if args.headless:
        return run_headless(session)

    from astarviz.app.viewer import Viewer
    Viewer(session, cell_size=cfg.grid.cell_size, steps_per_sec=cfg.search.steps_per_sec).run()
    return EXIT_FOUND


if __name__ == "__main__":
    sys.exit(main())
