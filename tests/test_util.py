import pytest

from hilal import util


def test_tags():
    assert util.tags(day=3, hour=6) == "day: 3 hour: 6"


@pytest.mark.parametrize(
    "count,word,expected",
    [(1, "day", "a day"), (2, "day", "two days"), (70, "day", "seventy days")],
)
def test_tally(count, word, expected):
    assert util.tally(count, word) == expected


def test_ordinal_words():
    assert util.ordinal_words(1) == "first"
    assert util.ordinal_words(19) == "nineteenth"
    assert util.ordinal_words(30) == "thirtieth"


def test_clamp():
    assert util.clamp(5, 0, 3) == 3
    assert util.clamp(-1, 0, 3) == 0
    assert util.clamp01(0.25) == 0.25


def test_smoothstep():
    assert util.smoothstep(0.0, 1.0, -1.0) == 0.0
    assert util.smoothstep(0.0, 1.0, 0.5) == 0.5
    assert util.smoothstep(0.0, 1.0, 2.0) == 1.0
    with pytest.raises(ValueError):
        util.smoothstep(1.0, 1.0, 0.5)


def test_wrap01():
    assert util.wrap01(1.25) == 0.25
    assert util.wrap01(-0.25) == 0.75
    assert util.wrap01(-1e-300) == 0.0

