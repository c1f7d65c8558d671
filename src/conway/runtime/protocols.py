from typing import Hashable, Optional, Protocol

from conway.spec.grid import Grid
from conway.spec.state import Board


class BoardStore(Protocol):
    """
    Protocol for the storage collaborator that owns boards. The engine only
    loads state in and saves state out.
    """

    async def load(self, board_id: str) -> Optional[Board]: ...

    async def save(self, board: Board) -> None: ...

    async def delete(self, board_id: str) -> bool: ...


class ResultCache(Protocol):
    """
    Protocol for a memoization layer in front of the generation jumper.
    """

    def get(self, key: Hashable) -> Optional[Grid]:
        """
        Returns the cached grid, or None on a miss.
        """
        ...

    def put(self, key: Hashable, grid: Grid) -> None: ...

    def discard_board(self, board_id: str) -> None: ...
