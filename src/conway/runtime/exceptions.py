from typing import Any, Iterable


class ConwayError(Exception):
    """Base class for all errors raised by the conway engine."""

    pass


class InvalidInputError(ConwayError):
    """
    Raised at the request boundary when a caller hands the engine something it
    cannot work with. The engine itself assumes these checks already passed.
    """

    pass


class InvalidGridError(InvalidInputError):
    """Raised when a grid is ragged, malformed or exceeds the configured size."""

    def __init__(self, reason: str, row: int = -1):
        self.reason = reason
        self.row = row
        location = f" (row {row})" if row >= 0 else ""
        super().__init__(f"Invalid grid{location}: {reason}")


class InvalidRuleError(InvalidInputError):
    """Raised when a rule set contains neighbor counts outside 0-8 or cannot be parsed."""

    def __init__(self, reason: str, values: Iterable[Any] = ()):
        self.reason = reason
        self.values = tuple(values)
        super().__init__(f"Invalid rule set: {reason}")


class InvalidGenerationError(InvalidInputError):
    """Raised when a requested generation is negative, non-integral or above the ceiling."""

    def __init__(self, value: Any, limit: int = -1):
        self.value = value
        self.limit = limit
        if limit >= 0:
            message = (
                f"Generation {value!r} is not allowed: expected an integer "
                f"between 0 and {limit}."
            )
        else:
            message = f"Generation {value!r} is not allowed: expected a non-negative integer."
        super().__init__(message)


class BoardNotFoundError(ConwayError):
    """Raised when a board id is not known to the board store."""

    def __init__(self, board_id: str):
        self.board_id = board_id
        super().__init__(f"Board '{board_id}' was not found in the board store.")
