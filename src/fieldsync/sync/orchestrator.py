"""Run a full read → extract → coerce → decide → write cycle for a document."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from ..fields.coerce import ValueCoercer, coerce_fields
from ..fields.decision import ReconcileDecision, apply_decision, decide, fold_duplicates
from ..settings import SyncSettings
from .interfaces import FieldSource, HeaderStore, HtmlConverter, LinkRenderer, QueryEvaluator
from .profiles import SyncProfiles, build_profiles
from .queries import QuerySubstituter, contains_query
from .snapshots import SnapshotStore

__all__ = ["SyncStatus", "SyncReport", "Synchronizer"]

LOGGER = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    """Outcome of one synchronization cycle."""

    WRITTEN = "written"
    UNCHANGED = "unchanged"
    EXCLUDED = "excluded"
    EMPTY = "empty"


@dataclass(frozen=True)
class SyncReport:
    document: str
    status: SyncStatus
    upserted: Tuple[str, ...] = ()
    removed: Tuple[str, ...] = ()
    unchanged: Tuple[str, ...] = ()
    skipped_reason: Optional[str] = None
    dry_run: bool = False
    decision: Optional[ReconcileDecision] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "document": self.document,
            "status": self.status.value,
            "upserted": list(self.upserted),
            "removed": list(self.removed),
            "unchanged": list(self.unchanged),
        }
        if self.skipped_reason:
            payload["skipped_reason"] = self.skipped_reason
        if self.dry_run:
            payload["dry_run"] = True
        return payload


class Synchronizer:
    """Keep the headers of documents in sync with their inline fields."""

    def __init__(
        self,
        settings: SyncSettings,
        source: FieldSource,
        store: HeaderStore,
        snapshots: SnapshotStore | None = None,
        *,
        evaluator: QueryEvaluator | None = None,
        link_renderer: LinkRenderer | None = None,
        html_to_markdown: HtmlConverter | None = None,
    ) -> None:
        self._source = source
        self._store = store
        self._snapshots = snapshots if snapshots is not None else SnapshotStore()
        self._evaluator = evaluator
        self._link_renderer = link_renderer
        self._html_to_markdown = html_to_markdown
        self._profiles = build_profiles(settings)

    @property
    def profiles(self) -> SyncProfiles:
        return self._profiles

    @property
    def snapshots(self) -> SnapshotStore:
        return self._snapshots

    def update_settings(self, settings: SyncSettings) -> None:
        """Swap in a new settings generation; compiled rules are rebuilt wholesale."""

        self._profiles = build_profiles(settings)
        LOGGER.info("sync.settings_updated", extra={"prefix": settings.prefix})

    def forget(self, document: str) -> None:
        """Drop what is known about a deleted document."""

        self._snapshots.forget(document)

    def _coercer(self, document: str) -> ValueCoercer:
        overrides: Dict[str, Any] = {
            "substitute_queries": QuerySubstituter(self._evaluator, document, self._profiles.queries),
            "link_renderer": self._link_renderer,
        }
        if self._html_to_markdown is not None:
            overrides["html_to_markdown"] = self._html_to_markdown
        return ValueCoercer(self._profiles.coercion_context(**overrides))

    def _select_fields(self, raw_fields: Mapping[str, Any]) -> Dict[str, Any]:
        profiles = self._profiles
        folded = fold_duplicates(raw_fields, profiles.key_normalizer)
        selected: Dict[str, Any] = {}
        only_mode = profiles.settings.only_mode.enabled
        for key, value in folded.items():
            if profiles.ignore.matches(key):
                continue
            if only_mode and not profiles.force_fields.matches(key):
                if not (isinstance(value, str) and contains_query(value, profiles.queries)):
                    continue
            selected[key] = value
        return selected

    async def plan(self, document: str) -> Tuple[SyncReport, Optional[Mapping[str, Any]]]:
        """Compute what :meth:`synchronize` would do, without writing anything."""

        profiles = self._profiles
        header = await self._store.read(document)
        if profiles.exclusion.is_excluded(document, header):
            return SyncReport(document=document, status=SyncStatus.EXCLUDED, skipped_reason="excluded"), header

        raw_fields = await self._source.extract(document, header)
        selected = self._select_fields(raw_fields)
        coerced = coerce_fields(selected, self._coercer(document), document=document)
        previous = self._snapshots.get(document)

        decision = decide(
            coerced,
            previous,
            header,
            ignore=profiles.ignore.rule_set,
            normalizer=profiles.key_normalizer,
            removal_normalizer=profiles.removal_normalizer,
            prefix=profiles.prefix,
            separator=profiles.separator,
            allow_removals=profiles.allow_removals,
        )
        if not coerced and not previous:
            status = SyncStatus.EMPTY
        elif decision.needs_write:
            status = SyncStatus.WRITTEN
        else:
            status = SyncStatus.UNCHANGED
        report = SyncReport(
            document=document,
            status=status,
            upserted=tuple(decision.upserted_keys),
            removed=tuple(decision.removed_keys),
            unchanged=decision.unchanged,
            decision=decision,
        )
        return report, header

    async def synchronize(self, document: str, *, dry_run: bool = False) -> SyncReport:
        """Reconcile ``document`` and persist the result.

        Read and write errors of the store propagate; the snapshot is only
        replaced once the write succeeded.
        """

        report, _ = await self.plan(document)
        decision = report.decision
        if decision is None:
            LOGGER.debug("sync.skipped", extra={"document": document, "status": report.status.value})
            return report
        if dry_run:
            return replace(report, dry_run=True)

        if decision.needs_write:
            await self._store.write(document, lambda header: apply_decision(header, decision))
            LOGGER.info(
                "sync.written",
                extra={
                    "document": document,
                    "upserted": decision.upserted_keys,
                    "removed": decision.removed_keys,
                },
            )
        self._snapshots.replace(document, decision.snapshot)
        return report
