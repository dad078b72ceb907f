"""Numeric grammar shared by value coercion and value equality."""
from __future__ import annotations

import math
import re
from typing import Any

__all__ = ["NUMBER_PATTERN", "is_number", "is_numeric_like", "parse_number", "convert_to_number"]

NUMBER_PATTERN = re.compile(r"^-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?$")


def is_number(value: Any) -> bool:
    """Return ``True`` for real numbers (booleans excluded) other than NaN."""

    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return not math.isnan(value)
    return False


def is_numeric_like(value: Any) -> bool:
    """Return ``True`` for numbers and for strings written in the numeric grammar."""

    if is_number(value):
        return True
    if not isinstance(value, str):
        return False
    candidate = value.strip()
    return bool(candidate) and NUMBER_PATTERN.match(candidate) is not None


def parse_number(raw: str) -> int | float:
    """Parse a string written in the numeric grammar.

    Integers keep ``int`` precision; decimals and exponents become ``float``.
    """

    candidate = raw.strip()
    if not NUMBER_PATTERN.match(candidate):
        raise ValueError(f"Not a number: {raw!r}")
    if any(ch in candidate for ch in ".eE"):
        return float(candidate)
    return int(candidate)


def convert_to_number(value: Any) -> Any:
    """Return ``value`` as a number when it is numeric-like, unchanged otherwise."""

    if is_number(value):
        return value
    if isinstance(value, str) and is_numeric_like(value):
        return parse_number(value)
    return value
