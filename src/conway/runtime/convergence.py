from typing import Optional

from conway.spec.convergence import ConvergenceType
from conway.spec.grid import Grid, is_extinct
from .fingerprint import fingerprint as compute_fingerprint
from .history import StateHistory


class ConvergenceDetector:
    """
    Classifies a grid as continuing, extinct or cyclical against a history of
    previously seen states.

    The detector keeps no state between calls. Growing the history is up to the
    caller, which lets the final-state search and the generation jumper apply
    different history policies.
    """

    def check(
        self,
        grid: Grid,
        history: StateHistory,
        generation: int,
        fingerprint: Optional[str] = None,
    ) -> ConvergenceType:
        """
        Args:
            grid: The state reached at `generation`.
            history: Fingerprints of earlier states and where they were first seen.
            generation: The generation index of `grid`, used to compute the period.
            fingerprint: The grid's fingerprint if the caller already has it.
        """
        if is_extinct(grid):
            return ConvergenceType.extinct()
        if fingerprint is None:
            fingerprint = compute_fingerprint(grid)
        return self.check_cycle(fingerprint, history, generation)

    def check_cycle(
        self, fingerprint: str, history: StateHistory, generation: int
    ) -> ConvergenceType:
        first = history.first_seen(fingerprint)
        if first is None or first >= generation:
            return ConvergenceType.continuing()
        return ConvergenceType.cyclical(generation - first)
