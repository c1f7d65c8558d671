from .grid import (
    Grid,
    empty_grid,
    from_string,
    grids_equal,
    is_extinct,
    make_grid,
    population,
    random_grid,
    to_string,
)
from .rules import CONWAY, DAY_AND_NIGHT, HIGHLIFE, RULE_PRESETS, RuleSet, get_rule
from .convergence import ConvergenceKind, ConvergenceType
from .state import Board, GameState, JumpResult, JumpStatus
from .patterns import PATTERNS, Pattern, PatternCategory, get_pattern, patterns_in, place

__all__ = [
    "Grid",
    "empty_grid",
    "from_string",
    "grids_equal",
    "is_extinct",
    "make_grid",
    "population",
    "random_grid",
    "to_string",
    "CONWAY",
    "DAY_AND_NIGHT",
    "HIGHLIFE",
    "RULE_PRESETS",
    "RuleSet",
    "get_rule",
    "ConvergenceKind",
    "ConvergenceType",
    "Board",
    "GameState",
    "JumpResult",
    "JumpStatus",
    "PATTERNS",
    "Pattern",
    "PatternCategory",
    "get_pattern",
    "patterns_in",
    "place",
]
