import threading
from collections import OrderedDict
from typing import Hashable, NamedTuple, Optional

from conway.spec.grid import Grid


class CacheKey(NamedTuple):
    board_id: str
    generation: int


class BoundedResultCache:
    """
    A fixed-capacity, least-recently-used map from (board, generation) to a
    computed grid.

    Every read and write happens under one lock, so recency updates and
    evictions are atomic with respect to each other and safe to call from
    worker threads. Grids are immutable, so stored values are shared as-is.
    """

    def __init__(self, capacity: int = 16):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._store: "OrderedDict[Hashable, Grid]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[Grid]:
        with self._lock:
            grid = self._store.get(key)
            if grid is None:
                self.misses += 1
                return None
            self._store.move_to_end(key)
            self.hits += 1
            return grid

    def put(self, key: Hashable, grid: Grid) -> None:
        with self._lock:
            self._store[key] = grid
            self._store.move_to_end(key)
            while len(self._store) > self.capacity:
                self._store.popitem(last=False)

    def discard_board(self, board_id: str) -> None:
        """Drops every entry belonging to `board_id`."""
        with self._lock:
            stale = [
                key
                for key in self._store
                if isinstance(key, CacheKey) and key.board_id == board_id
            ]
            for key in stale:
                del self._store[key]

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def keys(self) -> list:
        """Keys from least to most recently used."""
        with self._lock:
            return list(self._store)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, key: object) -> bool:
        # Membership does not count as a use.
        with self._lock:
            return key in self._store
