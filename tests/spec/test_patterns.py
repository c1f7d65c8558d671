import pytest

from conway.runtime.exceptions import InvalidGridError, InvalidInputError
from conway.spec.grid import population
from conway.spec.patterns import PATTERNS, PatternCategory, get_pattern, patterns_in, place


@pytest.mark.parametrize(
    "name, shape, alive",
    [
        ("block", (4, 4), 4),
        ("beehive", (5, 6), 6),
        ("blinker", (5, 5), 3),
        ("toad", (6, 6), 6),
        ("beacon", (6, 6), 6),
        ("glider", (10, 10), 5),
        ("pulsar", (17, 17), 48),
        ("gospergun", (11, 38), 36),
    ],
)
def test_library_patterns(name, shape, alive):
    pattern = get_pattern(name)

    assert pattern.cells.shape == shape
    assert population(pattern.cells) == alive


@pytest.mark.parametrize("name", ["Gosper-Gun", "gosper_gun", " GOSPERGUN "])
def test_get_pattern_normalizes_names(name):
    assert get_pattern(name) is PATTERNS["gospergun"]


def test_unknown_pattern():
    with pytest.raises(InvalidInputError, match="Available patterns"):
        get_pattern("spaceship-9000")


def test_patterns_by_category():
    names = [p.name for p in patterns_in(PatternCategory.STILL_LIFE)]

    assert names == ["block", "beehive"]
    assert PatternCategory.GUN.description


def test_place_centres_pattern_on_larger_board():
    cells = get_pattern("blinker").cells
    board = place(cells, width=9, height=7, top=1, left=2)

    assert board.shape == (7, 9)
    assert population(board) == 3
    assert board[3, 4] and board[2, 4] and board[4, 4]


def test_place_rejects_patterns_that_do_not_fit():
    with pytest.raises(InvalidGridError):
        place(get_pattern("glider").cells, width=5, height=5)
