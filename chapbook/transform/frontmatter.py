"""Parses a leading YAML frontmatter block into ``meta``."""

from __future__ import annotations

import re

import yaml

from chapbook.document.meta import merge, to_json_value
from chapbook.document.models import Document
from chapbook.errors import FrontmatterError

# Block must open on the very first line; the closing fence is the next
# line made of three dashes.
_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\n(?:(.*?)\n)?---[ \t]*(?:\n|\Z)", re.DOTALL)


def split_frontmatter(text: str) -> tuple[str | None, str]:
    """Split text into (frontmatter, body).

    frontmatter is None when there is no block at all, and "" for an empty
    block. The body is trimmed only when a block was found.
    """
    match = _FRONTMATTER_RE.match(text)
    if not match:
        return None, text
    return (match.group(1) or "").strip(), text[match.end():].strip()


def parse_frontmatter(doc: Document) -> Document:
    """Merge the YAML frontmatter block into meta and drop it from content.

    Documents without a block come back unchanged. Invalid YAML, or YAML that
    is not a mapping, raises FrontmatterError and leaves nothing half-applied.
    """
    frontmatter, body = split_frontmatter(doc.content)
    if frontmatter is None:
        return doc
    try:
        loaded = yaml.safe_load(frontmatter) if frontmatter else {}
    except yaml.YAMLError as exc:
        raise FrontmatterError("invalid YAML frontmatter", id_path=doc.id_path, cause=exc) from exc
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise FrontmatterError(
            f"frontmatter must be a mapping, got {type(loaded).__name__}", id_path=doc.id_path
        )
    return doc.model_copy(
        update={"meta": merge(doc.meta, to_json_value(loaded)), "content": body}
    )


def parse_and_uplift_frontmatter(doc: Document) -> Document:
    """Parse frontmatter, then copy blessed fields (title, created, ...) onto the doc."""
    return parse_frontmatter(doc).uplift_meta()
