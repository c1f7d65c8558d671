from typing import Optional

from .spec.grid import Grid, GridLike, make_grid, from_string, to_string, population
from .spec.rules import RuleSet, CONWAY, HIGHLIFE, DAY_AND_NIGHT, get_rule
from .spec.convergence import ConvergenceKind, ConvergenceType
from .spec.state import GameState, JumpResult, JumpStatus
from .spec.patterns import get_pattern
from .config import EngineConfig, load_config
from .runtime.step import StepEngine
from .runtime.fingerprint import fingerprint
from .runtime.convergence import ConvergenceDetector
from .runtime.jumper import CancellationToken, GenerationJumper
from .runtime.service import GameService
from .runtime.bus import MessageBus
from .runtime.subscribers import HumanReadableLogSubscriber
from .runtime.exceptions import (
    ConwayError,
    InvalidInputError,
    InvalidGridError,
    InvalidRuleError,
    InvalidGenerationError,
    BoardNotFoundError,
)
from .adapters.cache.lru import BoundedResultCache
from .adapters.state.in_memory import InMemoryBoardStore

__all__ = [
    "Grid",
    "make_grid",
    "from_string",
    "to_string",
    "population",
    "RuleSet",
    "CONWAY",
    "HIGHLIFE",
    "DAY_AND_NIGHT",
    "get_rule",
    "get_pattern",
    "ConvergenceKind",
    "ConvergenceType",
    "GameState",
    "JumpResult",
    "JumpStatus",
    "EngineConfig",
    "load_config",
    "StepEngine",
    "fingerprint",
    "ConvergenceDetector",
    "CancellationToken",
    "GenerationJumper",
    "GameService",
    "MessageBus",
    "HumanReadableLogSubscriber",
    "BoundedResultCache",
    "InMemoryBoardStore",
    "ConwayError",
    "InvalidInputError",
    "InvalidGridError",
    "InvalidRuleError",
    "InvalidGenerationError",
    "BoardNotFoundError",
    "state_at",
    "create_service",
]


def state_at(
    cells: GridLike,
    generation: int,
    rules: RuleSet = CONWAY,
    max_iterations: Optional[int] = None,
) -> JumpResult:
    """
    Computes generation `generation` of `cells` with cycle fast-forwarding.

    This is the shortest entry point for one-off queries; boards, caching and
    events live in GameService.
    """
    config = EngineConfig()
    jumper = GenerationJumper(
        rules,
        max_iterations=(
            config.jump_iteration_ceiling if max_iterations is None else max_iterations
        ),
    )
    return jumper.state_at(make_grid(cells), generation)


def create_service(
    config: Optional[EngineConfig] = None, log: bool = True
) -> GameService:
    """
    Builds a GameService over an in-memory board store with a default
    human-readable logger attached to its event bus.
    """
    bus = MessageBus()
    if log:
        HumanReadableLogSubscriber(bus)
    return GameService(InMemoryBoardStore(), config=config, bus=bus)
