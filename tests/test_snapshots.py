import json
from pathlib import Path

from fieldsync.sync.snapshots import JsonSnapshotStore, SnapshotStore


def test_memory_store_replaces_and_forgets() -> None:
    store = SnapshotStore()
    assert store.get("a.md") == frozenset()

    store.replace("a.md", ["x", "y"])
    store.replace("a.md", ["z"])
    assert store.get("a.md") == frozenset({"z"})

    store.replace("a.md", [])
    assert store.get("a.md") == frozenset({"z"})

    store.forget("a.md")
    assert "a.md" not in store
    assert len(store) == 0


def test_json_store_persists_between_instances(tmp_path: Path) -> None:
    path = tmp_path / "state" / "snapshots.json"
    store = JsonSnapshotStore(path)
    store.replace("notes/a.md", ["title", "tag"])

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload == {"documents": {"notes/a.md": ["tag", "title"]}}

    reloaded = JsonSnapshotStore(path)
    assert reloaded.get("notes/a.md") == frozenset({"title", "tag"})

    reloaded.forget("notes/a.md")
    assert json.loads(path.read_text(encoding="utf-8")) == {"documents": {}}
    assert list(path.parent.glob(".snapshots-*")) == []
