import copy
from typing import Dict, List, Optional

from conway.spec.state import Board


class InMemoryBoardStore:
    def __init__(self):
        self._boards: Dict[str, Board] = {}

    async def load(self, board_id: str) -> Optional[Board]:
        board = self._boards.get(board_id)
        # Hand out copies so callers cannot mutate stored records in place.
        return self._copy(board) if board is not None else None

    async def save(self, board: Board) -> None:
        self._boards[board.id] = self._copy(board)

    @staticmethod
    def _copy(board: Board) -> Board:
        # Grids are read-only, only the history list needs its own copy.
        duplicate = copy.copy(board)
        duplicate.state_history = list(board.state_history)
        return duplicate

    async def delete(self, board_id: str) -> bool:
        return self._boards.pop(board_id, None) is not None

    async def list_ids(self) -> List[str]:
        return list(self._boards)

    async def clear(self) -> None:
        self._boards.clear()
