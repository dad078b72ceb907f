import math

import pytest

from fieldsync.fields.numbers import convert_to_number, is_number, is_numeric_like, parse_number


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0", 0),
        ("42", 42),
        ("-7", -7),
        ("3.5", 3.5),
        ("-0.25", -0.25),
        ("1e3", 1000.0),
        ("-4.031e9", -4.031e9),
        ("4.310e+8", 4.31e8),
        (" 12 ", 12),
    ],
)
def test_parse_number_accepts_the_numeric_grammar(raw: str, expected: float) -> None:
    assert parse_number(raw) == expected


def test_integers_keep_int_type() -> None:
    assert isinstance(parse_number("42"), int)
    assert isinstance(parse_number("42.0"), float)
    assert isinstance(parse_number("1e2"), float)


@pytest.mark.parametrize("raw", ["42a", "+1", "1.", ".5", "1,5", "", "abc", "1e"])
def test_parse_number_rejects_other_strings(raw: str) -> None:
    with pytest.raises(ValueError):
        parse_number(raw)


def test_is_number_excludes_booleans_and_nan() -> None:
    assert is_number(3)
    assert is_number(2.5)
    assert not is_number(True)
    assert not is_number(math.nan)
    assert not is_number("3")


def test_is_numeric_like() -> None:
    assert is_numeric_like("42")
    assert is_numeric_like(42)
    assert not is_numeric_like("42a")
    assert not is_numeric_like(False)
    assert not is_numeric_like(None)


def test_convert_to_number_leaves_text_alone() -> None:
    assert convert_to_number("42") == 42
    assert convert_to_number("hello") == "hello"
    assert convert_to_number([1]) == [1]
