"""Exception hierarchy shared by the fieldsync packages."""
from __future__ import annotations

__all__ = ["FieldSyncError", "ConfigurationError", "HeaderFormatError"]


class FieldSyncError(Exception):
    """Base class for errors raised by fieldsync."""


class ConfigurationError(FieldSyncError):
    """A configuration document could not be loaded or validated."""


class HeaderFormatError(FieldSyncError):
    """A document header is present but cannot be parsed into a mapping."""

    def __init__(self, document: str, reason: str) -> None:
        self.document = document
        self.reason = reason
        super().__init__(f"Invalid header in '{document}': {reason}")
