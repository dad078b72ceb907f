"""Reference host backed by markdown files."""
from __future__ import annotations

from .markdown import (
    InlineFieldSource,
    MarkdownFileStore,
    iter_documents,
    parse_inline_fields,
    render_document,
    split_frontmatter,
)

__all__ = [
    "InlineFieldSource",
    "MarkdownFileStore",
    "iter_documents",
    "parse_inline_fields",
    "render_document",
    "split_frontmatter",
]
