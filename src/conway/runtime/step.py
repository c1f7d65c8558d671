from typing import Tuple

import numpy as np

from conway.spec.grid import Grid, make_grid
from conway.spec.rules import CONWAY, RuleSet

# Moore neighborhood as (row, col) offsets
NEIGHBOR_OFFSETS = [
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1),           (0, 1),
    (1, -1),  (1, 0),  (1, 1),
]


def count_neighbors(grid: Grid) -> np.ndarray:
    """
    Counts living Moore neighbors for every cell.

    Cells outside the grid are dead: the grid is zero-padded by one cell on each
    side instead of rolled, so nothing wraps around.
    """
    height, width = grid.shape
    padded = np.pad(grid.astype(np.uint8), 1)
    counts = np.zeros((height, width), dtype=np.uint8)
    for dr, dc in NEIGHBOR_OFFSETS:
        counts += padded[1 + dr : 1 + dr + height, 1 + dc : 1 + dc + width]
    return counts


def neighbor_count(grid: Grid, row: int, col: int) -> int:
    """Living neighbors of a single cell."""
    height, width = grid.shape
    count = 0
    for dr, dc in NEIGHBOR_OFFSETS:
        r, c = row + dr, col + dc
        if 0 <= r < height and 0 <= c < width and grid[r, c]:
            count += 1
    return count


class StepEngine:
    """
    Applies one generation transition under a rule set.

    The survival and birth sets are compiled once into 9-entry lookup tables so a
    step is a handful of vectorized numpy operations, O(H x W).
    """

    def __init__(self, rules: RuleSet = CONWAY):
        self.rules = rules
        self._survive = rules.survival_table()
        self._birth = rules.birth_table()

    def step(self, grid: Grid) -> Tuple[Grid, bool]:
        """
        Returns (next_grid, changed). When nothing changed the input grid itself is
        returned with changed=False, so callers can keep the value they hold.
        """
        if grid.size == 0:
            return grid, False

        counts = count_neighbors(grid)
        next_cells = np.where(grid, self._survive[counts], self._birth[counts])

        if np.array_equal(next_cells, grid):
            return grid, False
        return make_grid(next_cells), True

    def advance(self, grid: Grid, generations: int) -> Grid:
        """Naive stepping, no convergence shortcuts."""
        for _ in range(generations):
            grid, changed = self.step(grid)
            if not changed:
                break
        return grid
