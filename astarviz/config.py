"""Configuration loader for astarviz."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


CONFIG_PATH = Path(__file__).resolve().parents[1] / "config.yaml"


class ConfigError(ValueError):
    """Raised when ``config.yaml`` holds values the visualizer cannot use."""


@dataclass
class GridConfig:
    """Grid dimensions in cells, and cell size in pixels for the viewer."""

    cols: int = 40
    rows: int = 30
    cell_size: int = 20


@dataclass
class SearchConfig:
    animate: bool = True
    steps_per_sec: int = 20


@dataclass
class ObstacleConfig:
    """Random obstacle density and moving-obstacle spawn parameters."""

    random_density: float = 0.3
    spawn_min: int = 3
    spawn_max: int = 5
    speed_min: float = 0.05
    speed_max: float = 0.2
    dynamic: bool = False
    seed: Optional[int] = None


@dataclass
class LoggingConfig:
    global_level: str = "INFO"
    module_levels: Dict[str, str] = field(default_factory=dict)


@dataclass
class Config:
    """Top level configuration dataclass."""

    grid: GridConfig
    search: SearchConfig
    obstacles: ObstacleConfig
    logging: LoggingConfig


def _validate(cfg: Config) -> None:
    if cfg.grid.cols <= 0 or cfg.grid.rows <= 0:
        raise ConfigError(f"grid size must be positive, got {cfg.grid.cols}x{cfg.grid.rows}")
    if cfg.grid.cell_size <= 0:
        raise ConfigError("grid.cell_size must be positive")
    if cfg.search.steps_per_sec <= 0:
        raise ConfigError("search.steps_per_sec must be positive")
    ob = cfg.obstacles
    if not 0.0 <= ob.random_density <= 1.0:
        raise ConfigError(f"obstacles.random_density must be in [0, 1], got {ob.random_density}")
    if ob.spawn_min < 0 or ob.spawn_min > ob.spawn_max:
        raise ConfigError(f"invalid spawn range {ob.spawn_min}..{ob.spawn_max}")
    if ob.speed_min < 0 or ob.speed_min > ob.speed_max:
        raise ConfigError(f"invalid speed range {ob.speed_min}..{ob.speed_max}")


def _parse_config(data: dict[str, Any]) -> Config:
    """Convert raw ``data`` into :class:`Config`."""

    grid_data = data.get("grid") or {}
    grid = GridConfig(
        cols=int(grid_data.get("cols", 40)),
        rows=int(grid_data.get("rows", 30)),
        cell_size=int(grid_data.get("cell_size", 20)),
    )

    search_data = data.get("search") or {}
    search = SearchConfig(
        animate=bool(search_data.get("animate", True)),
        steps_per_sec=int(search_data.get("steps_per_sec", 20)),
    )

    ob_data = data.get("obstacles") or {}
    seed = ob_data.get("seed")
    obstacles = ObstacleConfig(
        random_density=float(ob_data.get("random_density", 0.3)),
        spawn_min=int(ob_data.get("spawn_min", 3)),
        spawn_max=int(ob_data.get("spawn_max", 5)),
        speed_min=float(ob_data.get("speed_min", 0.05)),
        speed_max=float(ob_data.get("speed_max", 0.2)),
        dynamic=bool(ob_data.get("dynamic", False)),
        seed=int(seed) if seed is not None else None,
    )

    log_data = data.get("logging") or {}
    logging_cfg = LoggingConfig(
        global_level=str(log_data.get("global_level", "INFO")).upper(),
        module_levels=dict(log_data.get("module_levels") or {}),
    )

    cfg = Config(grid=grid, search=search, obstacles=obstacles, logging=logging_cfg)
    _validate(cfg)
    return cfg


def load_config(path: Path = CONFIG_PATH) -> Config:
    """Load configuration from ``path`` and return a :class:`Config`."""

    path = Path(path)
    if path.is_file():
        raw = yaml.safe_load(path.read_text()) or {}
    else:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    try:
        return _parse_config(raw)
    except ConfigError:
        raise
    except (TypeError, ValueError) as ex:
        raise ConfigError(f"{path}: {ex}") from ex


__all__ = [
    "CONFIG_PATH",
    "Config",
    "ConfigError",
    "GridConfig",
    "SearchConfig",
    "ObstacleConfig",
    "LoggingConfig",
    "load_config",
]
