import io
import json

import numpy as np
import pytest
from rich.console import Console

from conway.common.messaging import MessageStore
from conway.common.renderers import (
    CliRenderer,
    JsonRenderer,
    RichCliRenderer,
    create_renderer,
    custom_theme,
)
from conway.runtime.exceptions import InvalidInputError


def test_cli_renderer_filters_by_level():
    stream = io.StringIO()
    renderer = CliRenderer(store=MessageStore(), stream=stream, min_level="INFO")

    renderer.render("cli.game.completed", "debug", generations=1)
    renderer.render("cli.game.completed", "info", generations=2)

    assert stream.getvalue() == "Simulation completed after 2 generations.\n"


def test_json_renderer_emits_one_record_per_line():
    stream = io.StringIO()
    renderer = JsonRenderer(stream=stream, min_level="DEBUG")

    renderer.render("query.cache_hit", "debug", board_id="b1", generation=4)

    record = json.loads(stream.getvalue())
    assert record["level"] == "DEBUG"
    assert record["event_id"] == "query.cache_hit"
    assert record["data"] == {"board_id": "b1", "generation": 4}
    assert "timestamp" in record


def test_json_renderer_serializes_unknown_objects_with_repr():
    stream = io.StringIO()
    renderer = JsonRenderer(stream=stream)

    renderer.render("cli.error", "error", error=ValueError("bad"))

    assert json.loads(stream.getvalue())["data"]["error"] == "ValueError('bad')"


def test_rich_renderer_prints_brackets_verbatim():
    output = io.StringIO()
    console = Console(file=output, width=200, theme=custom_theme)
    renderer = RichCliRenderer(store=MessageStore(), console=console, min_level="DEBUG")

    renderer.render("query.cache_hit", "debug", board_id="b1", generation=4)

    assert "[state_at] Board b1" in output.getvalue()


def test_create_renderer_by_format():
    store = MessageStore()

    assert isinstance(create_renderer("json", store), JsonRenderer)
    assert isinstance(create_renderer("rich", store), RichCliRenderer)
    assert isinstance(create_renderer("human", store), CliRenderer)


def test_json_renderer_encodes_numpy_values_and_message():
    stream = io.StringIO()
    renderer = JsonRenderer(stream=stream, store=MessageStore())

    renderer.render(
        "cli.game.completed", "info", generations=np.int64(3), cells=np.eye(2, dtype=bool)
    )

    record = json.loads(stream.getvalue())
    assert record["data"] == {"generations": 3, "cells": [[True, False], [False, True]]}
    assert record["message"] == "Simulation completed after 3 generations."


def test_unknown_format_or_level_is_rejected():
    store = MessageStore()

    with pytest.raises(InvalidInputError, match="log format"):
        create_renderer("xml", store)
    with pytest.raises(InvalidInputError, match="log level"):
        create_renderer("human", store, min_level="chatty")
