# astarviz/core/types.py
#!/usr/bin/env python3
from dataclasses import dataclass, field
from typing import List, Tuple, Optional, Dict, Any

Cell = Tuple[int, int]  # (x, y) == (col, row)

# StepResult.status
IDLE = "idle"
RUNNING = "running"
DONE = "done"
NO_PATH = "no_path"

# SearchEvent.kind
EXPLORED = "explored"
FRONTIER = "frontier"
PATH = "path"


class VisualizerError(Exception):
    """Base class for everything the core reports to the interaction layer."""


class MissingEndpointsError(VisualizerError):
    """A search was requested before both start and end were placed."""


class InvalidEndpointError(VisualizerError):
    """An endpoint is out of bounds, an obstacle, or collides with the other one."""


class SessionBusyError(VisualizerError):
    """An edit or a second search was requested while a search is running."""


@dataclass(frozen=True)
class SearchEvent:
    kind: str    # "explored" | "frontier" | "path"
    cell: Cell
    step: int    # expansion number that produced the event


@dataclass
class StepResult:
    status: str                   # "idle" | "running" | "done" | "no_path"
    opened: List[Cell] = field(default_factory=list)
    closed: List[Cell] = field(default_factory=list)
    current: Optional[Cell] = None
    path: Optional[List[Cell]] = None
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def finished(self) -> bool:
        return self.status in (DONE, NO_PATH)
