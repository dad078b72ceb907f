"""Typed values produced at the extraction boundary."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

__all__ = [
    "ABSENT",
    "Duration",
    "HtmlFragment",
    "Link",
    "ScriptFragment",
    "ValueKind",
    "Widget",
    "classify",
    "is_absent",
]


class _Absent:
    """Sentinel for "no field produced"."""

    _instance: Optional["_Absent"] = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT: Any = _Absent()


def is_absent(value: Any) -> bool:
    return value is ABSENT or value is None


@dataclass(frozen=True)
class Link:
    """Cross reference to another document."""

    path: str
    subpath: Optional[str] = None
    display: Optional[str] = None
    embed: bool = False


@dataclass(frozen=True)
class Duration:
    """Time span split in calendar components."""

    years: float = 0
    months: float = 0
    days: float = 0
    hours: float = 0
    minutes: float = 0
    seconds: float = 0

    def components(self) -> tuple[tuple[str, float], ...]:
        return (
            ("year", self.years),
            ("month", self.months),
            ("day", self.days),
            ("hour", self.hours),
            ("minute", self.minutes),
            ("second", self.seconds),
        )

    @property
    def is_zero(self) -> bool:
        return all(not amount for _, amount in self.components())


@dataclass(frozen=True)
class HtmlFragment:
    """Rendered markup returned by the host for a field."""

    html: str


@dataclass(frozen=True)
class ScriptFragment:
    """Executable value (e.g. a function); never storable."""

    source: str = ""


@dataclass(frozen=True)
class Widget:
    """Interactive host object; never storable."""

    description: str = ""


class ValueKind(str, Enum):
    """Closed set of value shapes the coercer knows how to handle."""

    ABSENT = "absent"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    LINK = "link"
    DURATION = "duration"
    HTML = "html"
    SCRIPT = "script"
    WIDGET = "widget"
    LIST = "list"
    NESTED = "nested"
    OTHER = "other"


def classify(value: Any) -> ValueKind:
    """Return the :class:`ValueKind` of ``value``."""

    if value is None or value is ABSENT:
        return ValueKind.ABSENT
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, Link):
        return ValueKind.LINK
    if isinstance(value, Duration):
        return ValueKind.DURATION
    if isinstance(value, HtmlFragment):
        return ValueKind.HTML
    if isinstance(value, ScriptFragment):
        return ValueKind.SCRIPT
    if isinstance(value, Widget):
        return ValueKind.WIDGET
    if isinstance(value, (list, tuple)):
        return ValueKind.LIST
    if isinstance(value, Mapping):
        return ValueKind.NESTED
    return ValueKind.OTHER
