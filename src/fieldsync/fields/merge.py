"""Non-destructive merging of nested header values."""
from __future__ import annotations

import copy
from typing import Any, Dict, Mapping

from .values import is_absent

__all__ = ["deep_merge"]


def deep_merge(target: Any, source: Any) -> Any:
    """Merge ``source`` into ``target`` without mutating either.

    When one side is absent the other one is returned (as a copy). Two
    mappings are merged key by key, recursing where both sides hold a
    mapping; in every other collision ``source`` wins, so lists and scalars
    are replaced rather than concatenated. Keys only present in ``target``
    are always kept.
    """

    if is_absent(source):
        return copy.deepcopy(target)
    if is_absent(target):
        return copy.deepcopy(source)
    if not isinstance(target, Mapping) or not isinstance(source, Mapping):
        return copy.deepcopy(source)

    merged: Dict[Any, Any] = {key: copy.deepcopy(value) for key, value in target.items()}
    for key, value in source.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged
