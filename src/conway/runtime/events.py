from dataclasses import dataclass, field
from typing import Optional
from uuid import uuid4
import time


@dataclass(frozen=True)
class Event:
    """Base class for all runtime events."""

    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: float = field(default_factory=time.time)

    # Groups the events of one service call
    query_id: Optional[str] = None


@dataclass(frozen=True)
class BoardEvent(Event):
    """Base for events related to a specific board."""

    board_id: str = ""


@dataclass(frozen=True)
class BoardCreated(BoardEvent):
    width: int = 0
    height: int = 0
    rules: str = ""


@dataclass(frozen=True)
class GenerationStepped(BoardEvent):
    """Fired after a board was advanced by one generation and saved."""

    generation: int = 0
    population: int = 0
    changed: bool = True


@dataclass(frozen=True)
class QueryStarted(BoardEvent):
    """Fired when a state-at-generation, jump or final-state query begins."""

    kind: str = ""  # "state_at", "jump", "final"
    target_generation: Optional[int] = None
    max_iterations: Optional[int] = None


@dataclass(frozen=True)
class CacheHit(BoardEvent):
    """Fired when a state-at-generation query was answered from the result cache."""

    generation: int = 0


@dataclass(frozen=True)
class ConvergenceDetected(BoardEvent):
    """Fired when extinction or a cycle was found while answering a query."""

    kind: str = ""
    converged_at: int = 0
    convergence: str = ""  # "extinct" or "cyclical"
    period: Optional[int] = None


@dataclass(frozen=True)
class QueryFinished(BoardEvent):
    kind: str = ""
    status: str = "Unknown"  # JumpStatus value
    generation: int = 0
    iterations: int = 0
    duration: float = 0.0
