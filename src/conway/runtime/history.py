from collections import OrderedDict
from typing import Iterable, Iterator, Optional, Tuple


class StateHistory:
    """
    Maps state fingerprints to the generation at which they were first seen,
    or last seen for histories rebuilt with `keep_latest`.

    With `max_entries` set, the oldest fingerprints are forgotten once the
    window is full, so a long-lived board cannot grow its history without bound.
    Cycles longer than the window then go undetected.
    """

    def __init__(self, max_entries: Optional[int] = None):
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._first_seen: "OrderedDict[str, int]" = OrderedDict()

    @classmethod
    def from_fingerprints(
        cls,
        fingerprints: Iterable[str],
        start_generation: int = 0,
        max_entries: Optional[int] = None,
        keep_latest: bool = False,
    ) -> "StateHistory":
        """
        Rebuilds a history from consecutive fingerprints, oldest first.

        With `keep_latest`, a repeated fingerprint maps to its most recent
        generation, so a state that has cycled several times still yields
        the true period rather than a multiple of it.
        """
        history = cls(max_entries=max_entries)
        for offset, digest in enumerate(fingerprints):
            if keep_latest:
                history._first_seen.pop(digest, None)
            history.record(digest, start_generation + offset)
        return history

    def record(self, digest: str, generation: int) -> None:
        # The first occurrence wins; later repeats do not move the entry.
        if digest in self._first_seen:
            return
        self._first_seen[digest] = generation
        if self.max_entries is not None:
            while len(self._first_seen) > self.max_entries:
                self._first_seen.popitem(last=False)

    def first_seen(self, digest: str) -> Optional[int]:
        return self._first_seen.get(digest)

    def fingerprints(self) -> list:
        return list(self._first_seen)

    def items(self) -> Iterator[Tuple[str, int]]:
        return iter(self._first_seen.items())

    def __contains__(self, digest: object) -> bool:
        return digest in self._first_seen

    def __len__(self) -> int:
        return len(self._first_seen)
