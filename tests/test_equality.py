import pytest

from fieldsync.fields.equality import values_equal
from fieldsync.fields.normalize import TextNormalizer, TextOptions


@pytest.mark.parametrize(
    "left, right, expected",
    [
        ("same", "same", True),
        ("Value", "value", True),
        ("été", "ete", True),
        ("new value", "old value", False),
        ("42", 42, True),
        (42, "42.0", True),
        ("42a", 42, False),
        (1, 1.0, True),
        (2**53 + 1, 2**53, False),
        (str(2**53 + 1), 2**53, False),
        (10**20, str(10**20), True),
        (True, 1, False),
        (True, "true", False),
        (None, None, True),
        (None, "", False),
        (["a", 1], ["A", "1"], True),
        (["a"], ["a", "b"], False),
        ({"x": "1"}, {"x": 1}, True),
        ({"x": 1}, {"y": 1}, False),
    ],
)
def test_values_equal(left, right, expected: bool) -> None:
    assert values_equal(left, right) is expected


def test_case_sensitive_normalizer_distinguishes_case() -> None:
    normalizer = TextNormalizer(TextOptions(lower_case=False, ignore_accents=False))
    assert not values_equal("Value", "value", normalizer)
