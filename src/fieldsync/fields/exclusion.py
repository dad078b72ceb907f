"""Documents that must never be synchronized."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple

from .rules import RulePattern, compile_pattern, is_delimited_regex

__all__ = ["ExclusionRules"]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExclusionRules:
    """Exclude documents by identity or by a header flag.

    ``paths`` entries written ``/body/flags`` are searched in the document
    identity; any other entry excludes identities that contain it.
    """

    paths: Tuple[str, ...] = ()
    header_key: str = "fieldsync_ignore"

    @classmethod
    def build(cls, paths: Sequence[str], header_key: str = "fieldsync_ignore") -> "ExclusionRules":
        return cls(paths=tuple(path for path in paths if path), header_key=header_key)

    def _patterns(self) -> Tuple[Tuple[str, Optional[RulePattern]], ...]:
        return tuple(
            (path, compile_pattern(path) if is_delimited_regex(path) else None) for path in self.paths
        )

    def excluded_by_path(self, document: str) -> bool:
        for raw, pattern in self._patterns():
            if pattern is not None:
                if pattern.test(document):
                    return True
            elif not is_delimited_regex(raw) and raw in document:
                return True
        return False

    def excluded_by_header(self, header: Mapping[str, Any] | None) -> bool:
        if not header or not self.header_key:
            return False
        flag = header.get(self.header_key)
        return flag is True or flag == "true"

    def is_excluded(self, document: str, header: Mapping[str, Any] | None = None) -> bool:
        if self.excluded_by_path(document):
            LOGGER.debug("exclusion.path", extra={"document": document})
            return True
        if self.excluded_by_header(header):
            LOGGER.debug("exclusion.header", extra={"document": document, "key": self.header_key})
            return True
        return False
