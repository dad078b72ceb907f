"""Compile settings into the immutable rule profiles used by a run."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..fields.coerce import CoercionContext
from ..fields.exclusion import ExclusionRules
from ..fields.markdown import DurationOptions
from ..fields.normalize import TextNormalizer, TextOptions
from ..fields.rules import CompiledRules
from ..settings import QueryModes, SyncSettings

__all__ = ["SyncProfiles", "build_profiles"]


@dataclass(frozen=True)
class SyncProfiles:
    """Everything derived once from a :class:`SyncSettings` generation."""

    settings: SyncSettings
    key_normalizer: TextNormalizer
    removal_normalizer: TextNormalizer
    ignore: CompiledRules
    list_fields: CompiledRules
    force_fields: CompiledRules
    cleanup_patterns: Tuple[str, ...]
    cleanup_options: TextOptions
    duration: DurationOptions
    exclusion: ExclusionRules
    queries: QueryModes

    @property
    def prefix(self) -> str:
        return self.settings.prefix

    @property
    def separator(self) -> Optional[str]:
        if self.settings.unflatten.enabled:
            return self.settings.unflatten.separator
        return None

    @property
    def allow_removals(self) -> bool:
        return self.settings.delete_from_header.enabled

    def coercion_context(self, **overrides) -> CoercionContext:
        return CoercionContext(
            list_fields=self.list_fields,
            list_suffix=self.settings.list_fields.suffix,
            cleanup_patterns=self.cleanup_patterns,
            cleanup_options=self.cleanup_options,
            duration=self.duration,
            host_scheme=self.settings.host_scheme,
            **overrides,
        )


def build_profiles(settings: SyncSettings) -> SyncProfiles:
    ignore = CompiledRules.build(settings.ignore_fields.fields, settings.ignore_fields.text_options())
    duration = settings.duration
    return SyncProfiles(
        settings=settings,
        key_normalizer=ignore.normalizer,
        removal_normalizer=TextNormalizer(settings.delete_from_header.text_options()),
        ignore=ignore,
        list_fields=CompiledRules.build(settings.list_fields.fields, settings.list_fields.text_options()),
        force_fields=CompiledRules.build(
            settings.only_mode.force_fields.fields, settings.only_mode.force_fields.text_options()
        ),
        cleanup_patterns=tuple(settings.cleanup.fields),
        cleanup_options=settings.cleanup.text_options(),
        duration=DurationOptions(
            unit_display=duration.unit_display,
            separator=duration.separator,
            replace_pattern=duration.replace_pattern,
            replace_with=duration.replace_with,
        ),
        exclusion=ExclusionRules.build(settings.excluded.paths, settings.excluded.header_key),
        queries=settings.queries,
    )
