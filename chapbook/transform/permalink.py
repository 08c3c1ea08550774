"""Assigns output paths from ``{token}`` templates over a document's path and date."""

from __future__ import annotations

from pathlib import PurePosixPath

from chapbook.document.models import Document
from chapbook.text import render_tokens, to_slug

from .pipeline import Transform

BLOG_PERMALINK = "{yyyy}/{mm}/{dd}/{slug}/index.html"
PAGE_PERMALINK = "{parents}/{slug}/index.html"


def permalink_parts(doc: Document) -> dict[str, str] | None:
    """Template parts for doc, or None if any part can't be derived.

    A root-level file has no parent and a file without an extension has no
    ext; either way there is no partial map.
    """
    path = PurePosixPath(doc.id_path)
    parent = path.parent
    if not path.suffix or not parent.name:
        return None
    return {
        # Name including extension
        "name": path.name,
        # Name excluding extension
        "stem": path.stem,
        "slug": to_slug(path.stem),
        "ext": path.suffix.lstrip("."),
        # All parents
        "parents": parent.as_posix(),
        # Just the closest parent
        "parent": parent.name,
        "yyyy": doc.created.strftime("%Y"),
        "yy": doc.created.strftime("%y"),
        "mm": doc.created.strftime("%m"),
        "dd": doc.created.strftime("%d"),
    }


def render_permalink(template: str, doc: Document) -> str:
    return render_tokens(template, permalink_parts(doc) or {})


def set_permalink(doc: Document, template: str) -> Document:
    return doc.set_output_path(render_permalink(template, doc))


def blog_permalink(doc: Document) -> Document:
    """``yyyy/mm/dd/slug/index.html``"""
    return set_permalink(doc, BLOG_PERMALINK)


def page_permalink(doc: Document) -> Document:
    """``parent/directories/slug/index.html``"""
    return set_permalink(doc, PAGE_PERMALINK)


def nice_path(id_path: str) -> str:
    """``a/b.md`` -> ``a/b/index.html``; ``a/index.md`` -> ``a/index.html``."""
    path = PurePosixPath(id_path)
    if path.stem == "index":
        return path.with_suffix(".html").as_posix()
    return (path.with_suffix("") / "index.html").as_posix()


def set_nice_path(doc: Document) -> Document:
    return doc.set_output_path(nice_path(doc.id_path))


class Permalink(Transform):
    def __init__(self, template: str):
        self.template = template

    def apply(self, doc: Document) -> Document:
        return set_permalink(doc, self.template)
