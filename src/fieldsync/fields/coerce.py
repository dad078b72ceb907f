"""Turn raw inline values into values that can be stored in a header."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from bs4 import BeautifulSoup

from .cleanup import cleanup_value
from .markdown import (
    DEFAULT_HOST_SCHEME,
    DurationOptions,
    format_duration,
    parse_markdown_list,
    rewrite_markdown_links,
    stringify_link,
)
from .normalize import TextNormalizer, TextOptions
from .numbers import convert_to_number
from .rules import CompiledRules
from .values import ABSENT, ValueKind, classify

__all__ = [
    "CoercionContext",
    "ValueCoercer",
    "coerce_fields",
    "html_to_text",
]

LOGGER = logging.getLogger(__name__)

QuerySubstitution = Callable[[str, Mapping[str, Any]], str]


def html_to_text(html: str) -> str:
    """Extract the readable text of an HTML fragment."""

    soup = BeautifulSoup(html, "html.parser")
    return soup.get_text(" ", strip=True)


@dataclass(frozen=True)
class CoercionContext:
    """Everything the coercer needs besides the value itself."""

    list_fields: CompiledRules = field(default_factory=CompiledRules.empty)
    list_suffix: str = "_list"
    cleanup_patterns: Sequence[str] = ()
    cleanup_options: TextOptions = field(default_factory=TextOptions)
    duration: DurationOptions = field(default_factory=DurationOptions)
    host_scheme: str = DEFAULT_HOST_SCHEME
    substitute_queries: Optional[QuerySubstitution] = None
    link_renderer: Optional[Callable[[Any], str]] = None
    html_to_markdown: Callable[[str], str] = html_to_text


class ValueCoercer:
    """Coerce raw inline values under a :class:`CoercionContext`."""

    def __init__(self, context: CoercionContext | None = None) -> None:
        self._context = context or CoercionContext()
        self._suffix_normalizer = TextNormalizer()

    @property
    def context(self) -> CoercionContext:
        return self._context

    def is_list_field(self, field_name: str) -> bool:
        if self._context.list_fields.matches(field_name):
            return True
        suffix = self._context.list_suffix
        if not suffix:
            return False
        normalize = self._suffix_normalizer.normalize
        return normalize(field_name).endswith(normalize(suffix))

    def _clean(self, text: str) -> Any:
        cleaned = cleanup_value(text, self._context.cleanup_patterns, self._context.cleanup_options)
        if cleaned is None:
            return ABSENT
        return convert_to_number(cleaned)

    def _coerce_text(self, text: str, field_name: str, siblings: Mapping[str, Any], *, queries: bool) -> Any:
        if text == "":
            return ABSENT
        if queries and self._context.substitute_queries is not None:
            text = self._context.substitute_queries(text, siblings)
            if text == "":
                return ABSENT

        if self.is_list_field(field_name):
            items = parse_markdown_list(text)
            if items:
                coerced = []
                for item in items:
                    value = self._clean(rewrite_markdown_links(item, host_scheme=self._context.host_scheme))
                    if value is not ABSENT:
                        coerced.append(value)
                return coerced
        return self._clean(text)

    def coerce(self, raw: Any, field_name: str, siblings: Mapping[str, Any] | None = None) -> Any:
        """Return the storable form of ``raw`` or :data:`ABSENT`."""

        siblings = siblings or {}
        kind = classify(raw)

        if kind is ValueKind.STRING:
            return self._coerce_text(raw, field_name, siblings, queries=True)
        if kind is ValueKind.LINK:
            if self._context.link_renderer is not None:
                return self._context.link_renderer(raw)
            return stringify_link(raw)
        if kind is ValueKind.HTML:
            text = self._context.html_to_markdown(raw.html)
            return self._coerce_text(text, field_name, siblings, queries=False)
        if kind in (ValueKind.SCRIPT, ValueKind.WIDGET, ValueKind.ABSENT):
            LOGGER.warning("coerce.unrepresentable", extra={"field": field_name, "kind": kind.value})
            return ABSENT
        if kind is ValueKind.LIST:
            items = []
            for item in raw:
                value = self.coerce(item, field_name, siblings)
                items.append(None if value is ABSENT else value)
            return items
        if kind is ValueKind.DURATION:
            return format_duration(raw, self._context.duration)
        if kind is ValueKind.NESTED:
            nested: Dict[str, Any] = {}
            for key, value in raw.items():
                coerced = self.coerce(value, str(key), siblings)
                if coerced is not ABSENT:
                    nested[key] = coerced
            return nested
        return raw


def coerce_fields(
    raw_fields: Mapping[str, Any],
    coercer: ValueCoercer,
    *,
    document: str | None = None,
) -> Dict[str, Any]:
    """Coerce every field of a document, isolating failures per field.

    Fields that fail or coerce to nothing are left out of the result. Each
    field sees the values already coerced before it as ``siblings``.
    """

    coerced: Dict[str, Any] = {}
    for key, raw in raw_fields.items():
        try:
            value = coercer.coerce(raw, key, coerced)
        except Exception:
            LOGGER.exception("coerce.failed", extra={"field": key, "document": document})
            continue
        if value is ABSENT:
            continue
        coerced[key] = value
    return coerced
