"""Replace inline query fragments in field values with their evaluated text."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..settings import QueryModes
from .interfaces import QueryEvaluator, QueryMode

__all__ = ["QuerySubstituter", "contains_query", "query_pattern"]

LOGGER = logging.getLogger(__name__)


def query_pattern(prefix: str) -> re.Pattern[str]:
    """Return the pattern of a backtick fragment introduced by ``prefix``."""

    return re.compile(rf"`{re.escape(prefix)}(.+?)`", re.DOTALL)


def contains_query(text: str, modes: QueryModes | None = None) -> bool:
    """Return ``True`` when ``text`` holds an inline query fragment."""

    modes = modes or QueryModes()
    prefixes = [modes.inline_prefix, modes.inline_js_prefix]
    return any(prefix and query_pattern(prefix).search(text) for prefix in prefixes)


@dataclass
class QuerySubstituter:
    """Callable plugged into the coercer for a given document."""

    evaluator: Optional[QueryEvaluator]
    document: str
    modes: QueryModes

    def _substitute(self, text: str, mode: QueryMode, prefix: str, siblings: Mapping[str, Any]) -> str:
        pattern = query_pattern(prefix)

        def _replace(match: re.Match[str]) -> str:
            fragment = match.group(0)
            expression = match.group(1).strip()
            try:
                result = self.evaluator.evaluate(expression, mode, self.document, siblings)
            except Exception as exc:
                LOGGER.warning(
                    "queries.evaluation_failed",
                    extra={"document": self.document, "mode": mode, "error": str(exc)},
                )
                return fragment
            result = "" if result is None else str(result)
            if self.modes.error_marker and self.modes.error_marker in result:
                LOGGER.warning("queries.evaluation_error", extra={"document": self.document, "mode": mode})
                return fragment
            return result

        return pattern.sub(_replace, text)

    def __call__(self, text: str, siblings: Mapping[str, Any]) -> str:
        if self.evaluator is None:
            return text
        if self.modes.djs and self.modes.inline_js_prefix:
            text = self._substitute(text, "djs", self.modes.inline_js_prefix, siblings)
        if self.modes.dql and self.modes.inline_prefix:
            text = self._substitute(text, "dql", self.modes.inline_prefix, siblings)
        return text
