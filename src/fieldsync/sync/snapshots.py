"""Per-document record of the inline keys seen at the last reconciliation."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Optional

__all__ = ["SnapshotStore", "JsonSnapshotStore"]

LOGGER = logging.getLogger(__name__)


class SnapshotStore:
    """In-memory snapshot store."""

    def __init__(self, initial: Optional[Dict[str, Iterable[str]]] = None) -> None:
        self._snapshots: Dict[str, FrozenSet[str]] = {
            document: frozenset(keys) for document, keys in (initial or {}).items()
        }

    def get(self, document: str) -> FrozenSet[str]:
        return self._snapshots.get(document, frozenset())

    def replace(self, document: str, keys: Iterable[str]) -> None:
        """Replace the snapshot of ``document``. Empty key sets are ignored."""

        snapshot = frozenset(keys)
        if not snapshot:
            return
        self._snapshots[document] = snapshot

    def forget(self, document: str) -> None:
        self._snapshots.pop(document, None)

    def documents(self) -> list[str]:
        return sorted(self._snapshots)

    def __contains__(self, document: object) -> bool:
        return document in self._snapshots

    def __len__(self) -> int:
        return len(self._snapshots)


class JsonSnapshotStore(SnapshotStore):
    """Snapshot store persisted as a JSON document after every change."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        initial: Dict[str, Iterable[str]] = {}
        if self._path.exists():
            payload = json.loads(self._path.read_text(encoding="utf-8"))
            initial = {str(document): list(keys) for document, keys in payload.get("documents", {}).items()}
            LOGGER.debug("snapshots.loaded", extra={"path": str(self._path), "documents": len(initial)})
        super().__init__(initial)

    @property
    def path(self) -> Path:
        return self._path

    def replace(self, document: str, keys: Iterable[str]) -> None:
        before = self.get(document)
        super().replace(document, keys)
        if self.get(document) != before:
            self.save()

    def forget(self, document: str) -> None:
        if document in self:
            super().forget(document)
            self.save()

    def save(self) -> None:
        payload = {
            "documents": {document: sorted(self.get(document)) for document in self.documents()},
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".snapshots-", suffix=".json", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self._path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
