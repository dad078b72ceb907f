"""Markdown files with YAML frontmatter as a synchronization host."""
from __future__ import annotations

import asyncio
import copy
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import yaml

from ..exceptions import HeaderFormatError
from ..fields.values import Link
from ..sync.interfaces import HeaderTransform

__all__ = [
    "InlineFieldSource",
    "MarkdownFileStore",
    "iter_documents",
    "parse_inline_fields",
    "render_document",
    "split_frontmatter",
]

LOGGER = logging.getLogger(__name__)

_FRONTMATTER = re.compile(r"\A---[ \t]*\r?\n(?P<yaml>.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE)
_FENCE = re.compile(r"^\s*(```|~~~)")
_LINE_FIELD = re.compile(
    r"^\s*(?:[-*+>]\s+)?\**(?P<key>[^\s:*\[\]()`][^:\[\]()`]*?)\**::[ \t]*(?P<value>.*?)\s*$"
)
_BRACKET_FIELD = re.compile(r"[\[(](?P<key>[^\[\]()`:]+?)::[ \t]*(?P<value>[^\[\]()]*(?:\[\[[^\]]*\]\][^\[\]()]*)*)[\])]")
_LIST_ITEM = re.compile(r"^\s*(?:[-*+]|\d+\.)\s+\S")
_WIKILINK = re.compile(r"^(?P<embed>!)?\[\[(?P<path>[^\]|#]+)(?:#(?P<subpath>[^\]|]+))?(?:\|(?P<display>[^\]]+))?\]\]$")


def split_frontmatter(text: str, document: str = "<text>") -> Tuple[Optional[Dict[str, Any]], str]:
    """Split ``text`` into its YAML header (``None`` when absent) and body."""

    match = _FRONTMATTER.match(text)
    if match is None:
        return None, text
    try:
        loaded = yaml.safe_load(match.group("yaml"))
    except yaml.YAMLError as exc:
        raise HeaderFormatError(document, str(exc)) from exc
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise HeaderFormatError(document, f"expected a mapping, got {type(loaded).__name__}")
    return loaded, text[match.end():]


def render_document(header: Mapping[str, Any] | None, body: str) -> str:
    """Serialize ``header`` as YAML frontmatter in front of ``body``."""

    if not header:
        return body
    dumped = yaml.safe_dump(dict(header), sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"---\n{dumped}---\n{body}"


def iter_documents(root: Path) -> Iterator[str]:
    """Yield the markdown documents under ``root`` as POSIX relative paths."""

    for path in sorted(root.rglob("*.md")):
        relative = path.relative_to(root)
        if any(part.startswith(".") for part in relative.parts):
            continue
        yield relative.as_posix()


def _atomic_write(path: Path, text: str) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}-", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class MarkdownFileStore:
    """Header store backed by markdown files under ``root``."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._locks: Dict[str, asyncio.Lock] = {}

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, document: str) -> Path:
        return self._root / document

    def _lock(self, document: str) -> asyncio.Lock:
        lock = self._locks.get(document)
        if lock is None:
            lock = self._locks[document] = asyncio.Lock()
        return lock

    def _read_text(self, document: str) -> str:
        return self.path_for(document).read_text(encoding="utf-8")

    async def read(self, document: str) -> Optional[Mapping[str, Any]]:
        text = await asyncio.to_thread(self._read_text, document)
        header, _ = split_frontmatter(text, document)
        return header

    def _rewrite(self, document: str, transform: HeaderTransform) -> bool:
        path = self.path_for(document)
        text = path.read_text(encoding="utf-8")
        header, body = split_frontmatter(text, document)
        original = dict(header or {})
        updated: Dict[str, Any] = copy.deepcopy(original)
        transform(updated)
        if updated == original:
            return False
        _atomic_write(path, render_document(updated, body))
        return True

    async def write(self, document: str, transform: HeaderTransform) -> None:
        async with self._lock(document):
            changed = await asyncio.to_thread(self._rewrite, document, transform)
        LOGGER.debug("host.write", extra={"document": document, "changed": changed})


def _convert_value(raw: str) -> Any:
    match = _WIKILINK.match(raw)
    if match is None:
        return raw
    return Link(
        path=match.group("path").strip(),
        subpath=match.group("subpath"),
        display=match.group("display"),
        embed=bool(match.group("embed")),
    )


def _add(fields: Dict[str, Any], key: str, value: Any) -> None:
    if key not in fields:
        fields[key] = value
        return
    current = fields[key]
    if isinstance(current, list):
        current.append(value)
    else:
        fields[key] = [current, value]


def parse_inline_fields(body: str) -> Dict[str, Any]:
    """Collect the ``key:: value`` fields of a markdown body.

    Whole-line fields and bracketed ``[key:: value]`` / ``(key:: value)``
    fields are recognized outside fenced code blocks. A whole-line field with
    an empty value takes the list that immediately follows it as its value.
    """

    fields: Dict[str, Any] = {}
    lines = body.splitlines()
    in_fence = False
    index = 0
    while index < len(lines):
        line = lines[index]
        index += 1
        if _FENCE.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue

        bracketed = list(_BRACKET_FIELD.finditer(line))
        if bracketed:
            for match in bracketed:
                _add(fields, match.group("key").strip(), _convert_value(match.group("value").strip()))
            continue

        match = _LINE_FIELD.match(line)
        if match is None:
            continue
        key = match.group("key").strip()
        value = match.group("value")
        if not value:
            items: List[str] = []
            while index < len(lines) and _LIST_ITEM.match(lines[index]):
                items.append(lines[index].strip())
                index += 1
            value = "\n".join(items)
        _add(fields, key, _convert_value(value))
    return fields


class InlineFieldSource:
    """Field source reading inline fields straight from markdown files."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    def _extract(self, document: str) -> Dict[str, Any]:
        text = (self._root / document).read_text(encoding="utf-8")
        _, body = split_frontmatter(text, document)
        return parse_inline_fields(body)

    async def extract(self, document: str, header: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
        return await asyncio.to_thread(self._extract, document)
