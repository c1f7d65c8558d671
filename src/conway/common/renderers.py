import sys
import json
from enum import Enum
from typing import Any, TextIO, Optional
from datetime import datetime, timezone

import numpy as np
from rich.console import Console
from rich.theme import Theme

from conway.common.messaging import MessageStore, protocols
from conway.runtime.exceptions import InvalidInputError

LOG_LEVELS = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
}

LOG_FORMATS = ("human", "rich", "json")

custom_theme = Theme(
    {
        "debug": "dim",
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
    }
)


def level_value(level: str) -> int:
    try:
        return LOG_LEVELS[level.upper()]
    except KeyError:
        raise InvalidInputError(
            f"Unknown log level '{level}'. Choose one of: {', '.join(LOG_LEVELS)}"
        )


class _LevelFilter:
    def __init__(self, min_level: str):
        self._min_level_val = level_value(min_level)

    def enabled(self, level: str) -> bool:
        return LOG_LEVELS.get(level.upper(), 20) >= self._min_level_val


class CliRenderer(_LevelFilter, protocols.Renderer):
    """
    Renders messages as plain text lines, on stderr unless another stream is given.
    """

    def __init__(
        self,
        store: MessageStore,
        stream: Optional[TextIO] = None,
        min_level: str = "INFO",
    ):
        super().__init__(min_level)
        self._store = store
        self._stream = stream if stream is not None else sys.stderr

    def render(self, msg_id: str, level: str, **kwargs):
        if self.enabled(level):
            print(self._store.get(msg_id, **kwargs), file=self._stream)


def _to_json(o: Any) -> Any:
    """Fallback for values json cannot encode: grids, numpy scalars, enums."""
    if isinstance(o, np.ndarray):
        return o.tolist()
    if isinstance(o, np.generic):
        return o.item()
    if isinstance(o, Enum):
        return o.value
    return repr(o)


class JsonRenderer(_LevelFilter, protocols.Renderer):
    """
    Renders one JSON object per message. With a store, the rendered text is
    included under "message" next to the raw data.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        min_level: str = "INFO",
        store: Optional[MessageStore] = None,
    ):
        super().__init__(min_level)
        self._stream = stream if stream is not None else sys.stderr
        self._store = store

    def render(self, msg_id: str, level: str, **kwargs):
        if not self.enabled(level):
            return
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.upper(),
            "event_id": msg_id,
            "data": kwargs,
        }
        if self._store is not None:
            log_record["message"] = self._store.get(msg_id, **kwargs)
        print(json.dumps(log_record, default=_to_json), file=self._stream)


class RichCliRenderer(_LevelFilter, protocols.Renderer):
    """
    A renderer that uses the 'rich' library for colored output on stderr.
    """

    def __init__(
        self,
        store: MessageStore,
        min_level: str = "INFO",
        console: Optional[Console] = None,
    ):
        super().__init__(min_level)
        self._store = store
        self._console = console or Console(theme=custom_theme, stderr=True)

    def render(self, msg_id: str, level: str, **kwargs):
        if not self.enabled(level):
            return

        message = self._store.get(msg_id, **kwargs)
        style = level.lower() if level.lower() in custom_theme.styles else ""
        # Messages may contain brackets, so markup is off
        self._console.print(message, style=style, markup=False, highlight=False)


def create_renderer(
    log_format: str, store: MessageStore, min_level: str = "INFO"
) -> protocols.Renderer:
    log_format = log_format.lower()
    if log_format == "json":
        return JsonRenderer(min_level=min_level, store=store)
    if log_format == "rich":
        return RichCliRenderer(store=store, min_level=min_level)
    if log_format == "human":
        return CliRenderer(store=store, min_level=min_level)
    raise InvalidInputError(
        f"Unknown log format '{log_format}'. Choose one of: {', '.join(LOG_FORMATS)}"
    )
