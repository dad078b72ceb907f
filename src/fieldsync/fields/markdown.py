"""Markdown helpers: list items, hyperlinks, wikilinks and durations."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Optional
from urllib.parse import parse_qs, unquote, urlsplit

from .rules import compile_pattern
from .values import Duration, Link

__all__ = [
    "DEFAULT_HOST_SCHEME",
    "DurationOptions",
    "format_duration",
    "parse_markdown_list",
    "rewrite_markdown_links",
    "stringify_link",
]

DEFAULT_HOST_SCHEME = "obsidian://"

_UNORDERED_ITEM = re.compile(r"^[-*+]\s+(.*)$")
_ORDERED_ITEM = re.compile(r"^\d+\.\s+(.*)$")
_MARKDOWN_LINK = re.compile(r"(?<![!\[])\[(?P<display>[^\[\]]*)\]\((?P<target>[^()\s]+)\)")
_DOCUMENT_EXTENSION = re.compile(r"\.md$", re.IGNORECASE)

_SHORT_UNITS = {
    "year": "y",
    "month": "mo",
    "day": "d",
    "hour": "h",
    "minute": "min",
    "second": "s",
}


def parse_markdown_list(markdown: str) -> list[str]:
    """Return the items of a bullet or numbered markdown list.

    Blank lines and lines that are not list items are skipped.
    """

    items: list[str] = []
    for line in markdown.split("\n"):
        stripped = line.strip()
        if not stripped:
            continue
        match = _UNORDERED_ITEM.match(stripped) or _ORDERED_ITEM.match(stripped)
        if match:
            items.append(match.group(1))
    return items


def _resolve_target(target: str, host_scheme: str) -> str:
    if host_scheme and target.startswith(host_scheme):
        query = parse_qs(urlsplit(target).query)
        for name in ("file", "path"):
            if query.get(name):
                resolved = query[name][0]
                break
        else:
            resolved = unquote(target[len(host_scheme):])
    else:
        resolved = unquote(target)
    return _DOCUMENT_EXTENSION.sub("", resolved)


def rewrite_markdown_links(text: str, *, host_scheme: str = DEFAULT_HOST_SCHEME) -> str:
    """Turn ``[display](target)`` hyperlinks into ``[[target|display]]`` references.

    Absolute URLs (``http…``) and absolute local paths (``/…``) are left as
    they are.
    """

    def _replace(match: re.Match[str]) -> str:
        target = match.group("target")
        if target.startswith("http") or target.startswith("/"):
            return match.group(0)
        resolved = _resolve_target(target, host_scheme)
        display = match.group("display").strip()
        if not display or display == resolved:
            return f"[[{resolved}]]"
        return f"[[{resolved}|{display}]]"

    return _MARKDOWN_LINK.sub(_replace, text)


def stringify_link(link: Link) -> str:
    """Render ``link`` as ``[[path#subpath|display]]``."""

    target = link.path
    if link.subpath:
        target += f"#{link.subpath}"
    if link.display:
        target += f"|{link.display}"
    rendered = f"[[{target}]]"
    return f"!{rendered}" if link.embed else rendered


@dataclass(frozen=True)
class DurationOptions:
    """How durations are rendered as text."""

    unit_display: Literal["long", "short"] = "long"
    separator: str = ", "
    replace_pattern: Optional[str] = None
    replace_with: str = ""


def _format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return str(int(amount))
    return f"{amount:g}"


def _format_component(unit: str, amount: float, unit_display: str) -> str:
    text = _format_amount(amount)
    if unit_display == "short":
        return f"{text}{_SHORT_UNITS[unit]}"
    plural = "" if abs(amount) == 1 else "s"
    return f"{text} {unit}{plural}"


def format_duration(duration: Duration, options: DurationOptions | None = None) -> str:
    """Render ``duration`` as human readable text.

    When ``options.replace_pattern`` is set it is applied last, as a regex when
    written ``/body/flags`` and as a literal otherwise.
    """

    options = options or DurationOptions()
    parts = [
        _format_component(unit, amount, options.unit_display)
        for unit, amount in duration.components()
        if amount
    ]
    if not parts:
        parts = [_format_component("second", 0, options.unit_display)]
    text = options.separator.join(parts)

    if options.replace_pattern:
        pattern = compile_pattern(options.replace_pattern)
        if pattern is not None:
            text = pattern.replace(text, options.replace_with)
        else:
            text = text.replace(options.replace_pattern, options.replace_with)
    return text
