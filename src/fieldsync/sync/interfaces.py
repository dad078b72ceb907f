"""Boundaries between the synchronizer and its host."""
from __future__ import annotations

from typing import Any, Callable, Dict, Literal, Mapping, Optional, Protocol, runtime_checkable

from ..fields.values import Link

__all__ = [
    "FieldSource",
    "HeaderStore",
    "HeaderTransform",
    "HtmlConverter",
    "LinkRenderer",
    "QueryEvaluator",
    "QueryMode",
]

QueryMode = Literal["dql", "djs"]
HeaderTransform = Callable[[Dict[str, Any]], None]
LinkRenderer = Callable[[Link], str]
HtmlConverter = Callable[[str], str]


@runtime_checkable
class FieldSource(Protocol):
    """Extracts the raw inline fields of a document."""

    async def extract(self, document: str, header: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
        ...


@runtime_checkable
class HeaderStore(Protocol):
    """Reads and atomically rewrites document headers."""

    async def read(self, document: str) -> Optional[Mapping[str, Any]]:
        ...

    async def write(self, document: str, transform: HeaderTransform) -> None:
        """Apply ``transform`` to a mutable copy of the header and persist it."""
        ...


@runtime_checkable
class QueryEvaluator(Protocol):
    """Evaluates an inline query expression to its textual result."""

    def evaluate(
        self, expression: str, mode: QueryMode, document: str, siblings: Mapping[str, Any]
    ) -> str:
        ...
