"""Semantic equality between an inline value and a stored header value."""
from __future__ import annotations

import re
from typing import Any, Mapping

from .normalize import TextNormalizer
from .numbers import is_numeric_like

__all__ = ["values_equal"]


def _as_number(value: Any) -> Any:
    text = value.strip() if isinstance(value, str) else None
    if text is not None and re.fullmatch(r"-?\d+", text):
        return int(text)
    if isinstance(value, int):
        return value
    return float(text if text is not None else value)


def values_equal(left: Any, right: Any, normalizer: TextNormalizer | None = None) -> bool:
    """Return ``True`` when storing ``left`` over ``right`` would change nothing.

    Strings compare through ``normalizer`` (case and accents folded by
    default), numeric-like values compare numerically so ``"42"`` equals
    ``42``, and containers compare element by element.
    """

    normalizer = normalizer or TextNormalizer()

    if left is right:
        return True
    if type(left) is type(right) and not isinstance(left, (list, tuple, Mapping)):
        if left == right:
            return True

    if isinstance(left, str) and isinstance(right, str):
        if normalizer.normalize(left) == normalizer.normalize(right):
            return True

    if isinstance(left, bool) or isinstance(right, bool):
        return False

    if is_numeric_like(left) and is_numeric_like(right):
        return _as_number(left) == _as_number(right)

    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(values_equal(a, b, normalizer) for a, b in zip(left, right))

    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if set(left) != set(right):
            return False
        return all(values_equal(left[key], right[key], normalizer) for key in left)

    return False
