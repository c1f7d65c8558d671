"""
Request-boundary checks.

The engine assumes rectangular grids, in-range rules and non-negative
generations. Anything arriving from a user (CLI arguments, files, API payloads)
passes through these functions first.
"""

from typing import Any, Iterable, Optional

import numpy as np

from conway.config import EngineConfig
from conway.runtime.exceptions import InvalidGenerationError, InvalidGridError
from conway.spec.grid import Grid, GridLike, make_grid
from conway.spec.rules import RuleSet, get_rule


def validate_grid(cells: GridLike, config: Optional[EngineConfig] = None) -> Grid:
    config = config or EngineConfig()
    grid = make_grid(cells)
    height, width = grid.shape
    if height == 0 or width == 0:
        raise InvalidGridError("grid has no cells")
    if width > config.max_grid_width or height > config.max_grid_height:
        raise InvalidGridError(
            f"{width}x{height} exceeds the maximum of "
            f"{config.max_grid_width}x{config.max_grid_height}"
        )
    return grid


def validate_generation(value: Any, config: Optional[EngineConfig] = None) -> int:
    config = config or EngineConfig()
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidGenerationError(value, config.max_generation)
    if not 0 <= value <= config.max_generation:
        raise InvalidGenerationError(value, config.max_generation)
    return int(value)


def validate_rules(survive: Iterable[int], birth: Iterable[int]) -> RuleSet:
    return RuleSet(survive=frozenset(survive), birth=frozenset(birth))


def parse_rules(name_or_notation: str) -> RuleSet:
    return get_rule(name_or_notation)
