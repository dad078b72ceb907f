"""Decide which header entries to add, update or delete for a document."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, MutableMapping, Optional, Tuple

from .equality import values_equal
from .merge import deep_merge
from .normalize import TextNormalizer, key_variants
from .rules import EMPTY_RULE_SET, RuleSet, keys_match, matches
from .values import is_absent

__all__ = [
    "FieldChange",
    "ReconcileDecision",
    "apply_decision",
    "decide",
    "fold_duplicates",
    "header_path",
    "locate_header_entry",
]

LOGGER = logging.getLogger(__name__)

HeaderPath = Tuple[str, ...]


@dataclass(frozen=True)
class FieldChange:
    """One header entry to write (``value`` set) or to delete."""

    key: str
    path: HeaderPath
    value: Any = None

    @property
    def header_key(self) -> str:
        return ".".join(self.path)


@dataclass(frozen=True)
class ReconcileDecision:
    """Outcome of reconciling one document.

    ``snapshot`` is the key set the caller must store for the next run; it is
    the previous snapshot whenever the current extraction produced nothing.
    """

    upserts: Tuple[FieldChange, ...] = ()
    removals: Tuple[FieldChange, ...] = ()
    unchanged: Tuple[str, ...] = ()
    snapshot: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def needs_write(self) -> bool:
        return bool(self.upserts or self.removals)

    @property
    def upserted_keys(self) -> List[str]:
        return [change.key for change in self.upserts]

    @property
    def removed_keys(self) -> List[str]:
        return [change.key for change in self.removals]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "upserts": {change.header_key: change.value for change in self.upserts},
            "removals": [change.header_key for change in self.removals],
            "unchanged": list(self.unchanged),
            "snapshot": sorted(self.snapshot),
        }


def fold_duplicates(fields: Mapping[str, Any], normalizer: TextNormalizer) -> Dict[str, Any]:
    """Keep the first spelling of every key, dropping later equivalent spellings."""

    seen: set[str] = set()
    folded: Dict[str, Any] = {}
    for key, value in fields.items():
        variants = key_variants(normalizer.normalize(key))
        if any(variant in seen for variant in variants):
            LOGGER.debug("decision.duplicate_key", extra={"key": key})
            continue
        seen.update(variants)
        folded[key] = value
    return folded


def header_path(key: str, *, prefix: str = "", separator: Optional[str] = None) -> HeaderPath:
    """Return the header location where ``key`` is written."""

    full = f"{prefix}{key}"
    if separator:
        return tuple(full.split(separator))
    return (full,)


def _is_ignored_header_key(
    header_key: str, prefix: str, ignore: RuleSet, normalizer: TextNormalizer
) -> bool:
    if ignore.is_empty:
        return False
    if prefix and header_key.startswith(prefix):
        return matches(ignore, normalizer, header_key[len(prefix):])
    return matches(ignore, normalizer, header_key)


def _align_keys(existing: Mapping[str, Any], value: Mapping[str, Any], normalizer: TextNormalizer) -> Dict[str, Any]:
    """Respell the keys of ``value`` after their equivalents in ``existing``, recursively."""

    aligned: Dict[str, Any] = {}
    for key, item in value.items():
        target = key
        if isinstance(key, str) and key not in existing:
            for candidate in existing:
                if isinstance(candidate, str) and keys_match(normalizer, candidate, key):
                    target = candidate
                    break
        current = existing.get(target)
        if isinstance(item, Mapping) and isinstance(current, Mapping):
            item = _align_keys(current, item, normalizer)
        aligned[target] = item
    return aligned


def locate_header_entry(
    header: Mapping[str, Any],
    path: HeaderPath,
    normalizer: TextNormalizer,
    *,
    prefix: str = "",
    ignore: RuleSet = EMPTY_RULE_SET,
) -> Optional[Tuple[HeaderPath, Any]]:
    """Find the header entry equivalent to ``path``.

    Each segment is looked up with key equivalence, so ``dv_Title`` is found
    for ``("dv_title",)``. Returns the actual path and the stored value, or
    ``None`` when no equivalent entry exists.
    """

    current: Any = header
    actual: List[str] = []
    for depth, segment in enumerate(path):
        if not isinstance(current, Mapping):
            return None
        found = None
        for candidate in current:
            if not isinstance(candidate, str):
                continue
            if depth == 0 and _is_ignored_header_key(candidate, prefix, ignore, normalizer):
                continue
            if keys_match(normalizer, candidate, segment):
                found = candidate
                break
        if found is None:
            return None
        actual.append(found)
        current = current[found]
    return tuple(actual), current


def decide(
    current_fields: Mapping[str, Any],
    previous_snapshot: Iterable[str] | None,
    existing_header: Mapping[str, Any] | None,
    *,
    ignore: RuleSet = EMPTY_RULE_SET,
    normalizer: TextNormalizer | None = None,
    removal_normalizer: TextNormalizer | None = None,
    prefix: str = "",
    separator: Optional[str] = None,
    allow_removals: bool = True,
) -> ReconcileDecision:
    """Compute the upserts and removals that bring the header in line with the body.

    ``current_fields`` holds the coerced inline values; ``None`` or absent
    values count as "not present". Removals are only proposed for keys that
    were recorded in ``previous_snapshot`` and still have a header entry.
    """

    normalizer = normalizer or TextNormalizer()
    removal_normalizer = removal_normalizer or normalizer
    header: Mapping[str, Any] = existing_header or {}
    previous = frozenset(previous_snapshot or ())

    folded = fold_duplicates(current_fields, normalizer)
    present: Dict[str, Any] = {}
    for key, value in folded.items():
        if matches(ignore, normalizer, key):
            continue
        if is_absent(value):
            continue
        present[key] = value

    upserts: List[FieldChange] = []
    unchanged: List[str] = []
    for key, value in present.items():
        path = header_path(key, prefix=prefix, separator=separator)
        entry = locate_header_entry(header, path, normalizer, prefix=prefix, ignore=ignore)
        if entry is None:
            upserts.append(FieldChange(key=key, path=path, value=value))
            continue
        actual_path, existing = entry
        candidate = value
        if isinstance(value, Mapping) and isinstance(existing, Mapping):
            candidate = deep_merge(existing, _align_keys(existing, value, normalizer))
        if values_equal(candidate, existing, normalizer):
            unchanged.append(key)
        else:
            upserts.append(FieldChange(key=key, path=actual_path, value=candidate))

    removals: List[FieldChange] = []
    if allow_removals and previous:
        current_keys = {removal_normalizer.normalize(key) for key in present}
        for key in sorted(previous):
            if removal_normalizer.normalize(key) in current_keys:
                continue
            if matches(ignore, normalizer, key):
                continue
            path = header_path(key, prefix=prefix, separator=separator)
            entry = locate_header_entry(header, path, removal_normalizer, prefix=prefix, ignore=ignore)
            if entry is None:
                continue
            removals.append(FieldChange(key=key, path=entry[0]))

    snapshot = frozenset(present) if present else previous
    decision = ReconcileDecision(
        upserts=tuple(upserts),
        removals=tuple(removals),
        unchanged=tuple(unchanged),
        snapshot=snapshot,
    )
    LOGGER.debug(
        "decision.computed",
        extra={
            "upserts": decision.upserted_keys,
            "removals": decision.removed_keys,
            "unchanged": len(unchanged),
        },
    )
    return decision


def _set_path(header: MutableMapping[str, Any], path: HeaderPath, value: Any) -> None:
    current = header
    for segment in path[:-1]:
        child = current.get(segment)
        if not isinstance(child, MutableMapping):
            child = {}
            current[segment] = child
        current = child
    current[path[-1]] = value


def _delete_path(header: MutableMapping[str, Any], path: HeaderPath) -> None:
    parents: List[Tuple[MutableMapping[str, Any], str]] = []
    current: Any = header
    for segment in path[:-1]:
        child = current.get(segment) if isinstance(current, MutableMapping) else None
        if not isinstance(child, MutableMapping):
            return
        parents.append((current, segment))
        current = child
    if not isinstance(current, MutableMapping) or path[-1] not in current:
        return
    del current[path[-1]]
    for parent, segment in reversed(parents):
        if parent[segment]:
            break
        del parent[segment]


def apply_decision(header: MutableMapping[str, Any], decision: ReconcileDecision) -> None:
    """Apply ``decision`` to the mutable ``header`` in place."""

    for change in decision.upserts:
        _set_path(header, change.path, change.value)
    for change in decision.removals:
        _delete_path(header, change.path)
