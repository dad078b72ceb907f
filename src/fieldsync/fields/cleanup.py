"""Remove unwanted fragments from string values before they are stored."""
from __future__ import annotations

import logging
import re
import unicodedata
from typing import Callable, Optional, Sequence

from .normalize import TextOptions, strip_accents_with_mapping
from .rules import RulePattern, compile_pattern

__all__ = ["cleanup_value", "collapse_whitespace"]

LOGGER = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

PatternResolver = Callable[[str], Optional[RulePattern]]


def collapse_whitespace(value: str) -> str:
    return _WHITESPACE.sub(" ", value.strip())


def _remove_literal(text: str, literal: str, options: TextOptions) -> str:
    flags = re.IGNORECASE if options.lower_case else 0
    if not options.ignore_accents:
        return re.sub(re.escape(literal), "", text, flags=flags)

    # Search the accent-free copy, splice the original through the offset map.
    haystack, index_map = strip_accents_with_mapping(text, lower_case=options.lower_case)
    needle, _ = strip_accents_with_mapping(literal, lower_case=options.lower_case)
    if not needle:
        return text
    pieces: list[str] = []
    cursor = 0
    for match in re.finditer(re.escape(needle), haystack, flags):
        start = index_map[match.start()]
        end = index_map[match.end() - 1] + 1
        while end < len(text) and unicodedata.combining(text[end]):
            end += 1
        if start < cursor:
            continue
        pieces.append(text[cursor:start])
        cursor = end
    pieces.append(text[cursor:])
    return "".join(pieces)


def cleanup_value(
    value: str,
    patterns: Sequence[str],
    options: TextOptions | None = None,
    resolve: PatternResolver = compile_pattern,
) -> Optional[str]:
    """Strip every pattern from ``value``.

    Entries written ``/body/flags`` are applied as regular expressions and every match is removed; any
    other entry is removed literally, honouring the case and accent switches
    of ``options``. Whitespace is trimmed and collapsed at the end and
    ``None`` is returned when nothing is left.

    Example:
        >>> cleanup_value("voici une valeur test", ["valeur", "une"], TextOptions(False, False))
        'voici test'
    """

    if not patterns:
        return value

    options = options or TextOptions()
    result = value
    for raw in patterns:
        if not raw:
            continue
        pattern = resolve(raw)
        if pattern is not None:
            result = pattern.remove_all(result).strip()
            continue
        result = _remove_literal(result, raw, options)

    result = collapse_whitespace(result)
    if not result:
        LOGGER.debug("cleanup.emptied", extra={"patterns": list(patterns)})
        return None
    return result
