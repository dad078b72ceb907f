"""Pydantic models describing the synchronization settings."""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .fields.normalize import TextOptions
from .fields.rules import validate_pattern

__all__ = [
    "CleanupText",
    "DeleteFromHeader",
    "DurationFormat",
    "ExcludedDocuments",
    "ForceFields",
    "ListFields",
    "OnlyMode",
    "QueryModes",
    "RuleGroup",
    "SyncSettings",
    "TextProfile",
    "Unflatten",
]


class TextProfile(BaseModel):
    """Case and accent switches applied when comparing strings."""

    lower_case: bool = Field(default=True, description="Compare case-insensitively")
    ignore_accents: bool = Field(default=True, description="Compare accent-insensitively")

    model_config = ConfigDict(extra="forbid")

    def text_options(self) -> TextOptions:
        return TextOptions(lower_case=self.lower_case, ignore_accents=self.ignore_accents)


class RuleGroup(TextProfile):
    """Literal keys or ``/regex/flags`` entries sharing a text profile."""

    fields: List[str] = Field(default_factory=list, description="Literal keys or /regex/flags patterns")

    @field_validator("fields")
    @classmethod
    def _check_patterns(cls, value: List[str]) -> List[str]:
        cleaned = []
        for entry in value:
            entry = entry.strip()
            if not entry:
                continue
            validate_pattern(entry)
            cleaned.append(entry)
        return cleaned


class ListFields(RuleGroup):
    suffix: str = Field(default="_list", description="Fields ending with this suffix are parsed as lists")


class CleanupText(RuleGroup):
    """Fragments removed from every string value."""


class ForceFields(RuleGroup):
    """Fields synchronized even when only-mode is enabled."""


class DeleteFromHeader(TextProfile):
    enabled: bool = Field(default=True, description="Delete header entries whose inline field disappeared")


class OnlyMode(BaseModel):
    """Restrict synchronization to fields holding an inline query."""

    enabled: bool = False
    force_fields: ForceFields = Field(default_factory=ForceFields)

    model_config = ConfigDict(extra="forbid")


class ExcludedDocuments(BaseModel):
    paths: List[str] = Field(default_factory=list, description="Substrings or /regex/flags matched on the document path")
    header_key: str = Field(default="fieldsync_ignore", description="Header flag excluding a document when true")

    model_config = ConfigDict(extra="forbid")

    @field_validator("paths")
    @classmethod
    def _check_paths(cls, value: List[str]) -> List[str]:
        for entry in value:
            validate_pattern(entry)
        return value


class Unflatten(BaseModel):
    """Write dotted keys as nested header mappings."""

    enabled: bool = False
    separator: str = "."

    model_config = ConfigDict(extra="forbid")

    @field_validator("separator")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("separator must not be empty")
        return value


class DurationFormat(BaseModel):
    unit_display: Literal["long", "short"] = "long"
    separator: str = ", "
    replace_pattern: Optional[str] = None
    replace_with: str = ""

    model_config = ConfigDict(extra="forbid")

    @field_validator("replace_pattern")
    @classmethod
    def _check_pattern(cls, value: Optional[str]) -> Optional[str]:
        if value:
            validate_pattern(value)
        return value or None


class QueryModes(BaseModel):
    """Inline query switches and markers understood by the evaluator."""

    dql: bool = True
    djs: bool = True
    inline_prefix: str = "="
    inline_js_prefix: str = "$="
    error_marker: str = "Dataview (for inline query"

    model_config = ConfigDict(extra="forbid")


class SyncSettings(BaseModel):
    """Top level settings of a synchronization run."""

    prefix: str = Field(default="dv_", description="Prepended to every key written in the header")
    debounce_seconds: float = Field(default=1.0, ge=0, description="Delay collapsing rapid document changes")
    host_scheme: str = Field(default="obsidian://", description="URL scheme of in-vault hyperlinks")
    ignore_fields: RuleGroup = Field(default_factory=RuleGroup)
    list_fields: ListFields = Field(default_factory=ListFields)
    cleanup: CleanupText = Field(default_factory=CleanupText)
    delete_from_header: DeleteFromHeader = Field(default_factory=DeleteFromHeader)
    only_mode: OnlyMode = Field(default_factory=OnlyMode)
    excluded: ExcludedDocuments = Field(default_factory=ExcludedDocuments)
    unflatten: Unflatten = Field(default_factory=Unflatten)
    duration: DurationFormat = Field(default_factory=DurationFormat)
    queries: QueryModes = Field(default_factory=QueryModes)

    model_config = ConfigDict(extra="forbid")

    @field_validator("prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("prefix must not be empty")
        return value
