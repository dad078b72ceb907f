import asyncio
from pathlib import Path

import pytest

from fieldsync.exceptions import HeaderFormatError
from fieldsync.fields.values import Link
from fieldsync.host.markdown import (
    InlineFieldSource,
    MarkdownFileStore,
    iter_documents,
    parse_inline_fields,
    render_document,
    split_frontmatter,
)
from fieldsync.settings import SyncSettings
from fieldsync.sync.orchestrator import SyncStatus, Synchronizer
from fieldsync.sync.snapshots import SnapshotStore

NOTE = """---
title: Existing
---
# Heading

status:: draft
Mood:: [[Happy]]
Some text with [rating:: 4] and (when:: today).

```
ignored:: inside fence
```

- tags:: first
- tags:: second
a_list::
- one
- two
"""


def test_split_frontmatter() -> None:
    header, body = split_frontmatter(NOTE)
    assert header == {"title": "Existing"}
    assert body.startswith("# Heading")


def test_split_frontmatter_without_header() -> None:
    assert split_frontmatter("just text") == (None, "just text")
    assert split_frontmatter("---\n---\nbody") == ({}, "body")


@pytest.mark.parametrize("text", ["---\n- a\n- b\n---\n", "---\nkey: [unclosed\n---\n"])
def test_invalid_frontmatter_raises(text: str) -> None:
    with pytest.raises(HeaderFormatError):
        split_frontmatter(text, "bad.md")


def test_render_document_round_trips() -> None:
    rendered = render_document({"title": "Été", "n": 1}, "body\n")
    assert rendered == "---\ntitle: Été\nn: 1\n---\nbody\n"
    assert split_frontmatter(rendered) == ({"title": "Été", "n": 1}, "body\n")
    assert render_document({}, "body") == "body"


def test_parse_inline_fields() -> None:
    _, body = split_frontmatter(NOTE)
    fields = parse_inline_fields(body)

    assert fields == {
        "status": "draft",
        "Mood": Link("Happy"),
        "rating": "4",
        "when": "today",
        "tags": ["first", "second"],
        "a_list": "- one\n- two",
    }


def test_iter_documents_skips_hidden_directories(tmp_path: Path) -> None:
    (tmp_path / "sub").mkdir()
    (tmp_path / ".hidden").mkdir()
    (tmp_path / "a.md").write_text("a", encoding="utf-8")
    (tmp_path / "sub" / "b.md").write_text("b", encoding="utf-8")
    (tmp_path / ".hidden" / "c.md").write_text("c", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("x", encoding="utf-8")

    assert list(iter_documents(tmp_path)) == ["a.md", "sub/b.md"]


def test_store_writes_header_and_keeps_body(tmp_path: Path) -> None:
    (tmp_path / "note.md").write_text(NOTE, encoding="utf-8")
    store = MarkdownFileStore(tmp_path)

    asyncio.run(store.write("note.md", lambda header: header.update({"dv_status": "draft"})))

    text = (tmp_path / "note.md").read_text(encoding="utf-8")
    header, body = split_frontmatter(text)
    assert header == {"title": "Existing", "dv_status": "draft"}
    assert body == split_frontmatter(NOTE)[1]
    assert asyncio.run(store.read("note.md")) == header


def test_store_skips_write_when_nothing_changes(tmp_path: Path) -> None:
    path = tmp_path / "note.md"
    path.write_text("---\na:   1\n---\nbody", encoding="utf-8")

    asyncio.run(MarkdownFileStore(tmp_path).write("note.md", lambda header: None))

    assert path.read_text(encoding="utf-8") == "---\na:   1\n---\nbody"


def test_end_to_end_with_markdown_files(tmp_path: Path) -> None:
    (tmp_path / "note.md").write_text(NOTE, encoding="utf-8")
    synchronizer = Synchronizer(
        SyncSettings(),
        InlineFieldSource(tmp_path),
        MarkdownFileStore(tmp_path),
        SnapshotStore(),
    )

    report = asyncio.run(synchronizer.synchronize("note.md"))
    assert report.status is SyncStatus.WRITTEN

    header, _ = split_frontmatter((tmp_path / "note.md").read_text(encoding="utf-8"))
    assert header == {
        "title": "Existing",
        "dv_status": "draft",
        "dv_Mood": "[[Happy]]",
        "dv_rating": 4,
        "dv_when": "today",
        "dv_tags": ["first", "second"],
        "dv_a_list": ["one", "two"],
    }

    again = asyncio.run(synchronizer.synchronize("note.md"))
    assert again.status is SyncStatus.UNCHANGED
