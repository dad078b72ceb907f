"""Text normalization profiles used to compare keys and values."""
from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

__all__ = [
    "TextOptions",
    "TextNormalizer",
    "strip_accents",
    "strip_accents_with_mapping",
    "key_variants",
]

_BRACKETS = str.maketrans("", "", "[]()")


@dataclass(frozen=True)
class TextOptions:
    """Switches of a normalization profile."""

    lower_case: bool = True
    ignore_accents: bool = True


def strip_accents(value: str) -> str:
    """Decompose ``value`` and drop combining marks, recomposing what is left."""

    decomposed = unicodedata.normalize("NFD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return unicodedata.normalize("NFC", stripped)


def strip_accents_with_mapping(value: str, *, lower_case: bool = False) -> Tuple[str, list[int]]:
    """Strip accents from ``value`` and map every output char to its source index.

    The mapping lets callers search on the stripped copy while splicing the
    original string at the right offsets.
    """

    normalized_chars: list[str] = []
    mapping: list[int] = []
    for index, char in enumerate(value):
        for item in unicodedata.normalize("NFD", char):
            if unicodedata.combining(item):
                continue
            folded = item.casefold() if lower_case else item
            for out in folded:
                normalized_chars.append(out)
                mapping.append(index)
    return "".join(normalized_chars), mapping


def key_variants(normalized_key: str) -> Tuple[str, ...]:
    """Return the spellings under which a normalized key may reappear.

    Hosts often expose a key twice: as written and in a sanitized form with
    spaces turned into hyphens or formatting brackets dropped.
    """

    hyphenated = normalized_key.replace(" ", "-")
    unbracketed = normalized_key.translate(_BRACKETS)
    return tuple(dict.fromkeys((normalized_key, hyphenated, unbracketed)))


class TextNormalizer:
    """Canonicalize strings under a :class:`TextOptions` profile.

    Results are memoized for the lifetime of the instance. The cache is
    bounded; eviction only costs a recomputation.
    """

    def __init__(self, options: TextOptions | None = None, *, cache_size: int = 4096) -> None:
        self._options = options or TextOptions()
        self._cached = lru_cache(maxsize=cache_size)(self._normalize)

    @property
    def options(self) -> TextOptions:
        return self._options

    def _normalize(self, value: str) -> str:
        result = value
        if self._options.lower_case:
            result = result.casefold()
        if self._options.ignore_accents:
            result = strip_accents(result)
        return result

    def normalize(self, value: str) -> str:
        """Return the canonical form of ``value``."""

        if not self._options.lower_case and not self._options.ignore_accents:
            return value
        return self._cached(value)

    __call__ = normalize

    def cache_info(self):  # pragma: no cover - diagnostics only
        return self._cached.cache_info()

    def __repr__(self) -> str:
        return (
            f"TextNormalizer(lower_case={self._options.lower_case}, "
            f"ignore_accents={self._options.ignore_accents})"
        )
