"""Markdown steps. Any ``str -> str`` renderer can be injected; CommonMark is the default."""

from __future__ import annotations

from collections.abc import Callable

from markdown_it import MarkdownIt

from chapbook.document.models import Document
from chapbook.text import strip_html

from .pipeline import Transform

MarkdownRenderer = Callable[[str], str]

_COMMONMARK = MarkdownIt("commonmark")


def markdown_to_html(text: str) -> str:
    """Render CommonMark text to HTML. Raw HTML in the source is passed through."""
    return _COMMONMARK.render(text)


def render_markdown(doc: Document, renderer: MarkdownRenderer = markdown_to_html) -> Document:
    return doc.model_copy(update={"content": renderer(doc.content)})


def strip_markdown(doc: Document, renderer: MarkdownRenderer = markdown_to_html) -> Document:
    """Render, then strip tags, leaving plain text."""
    return doc.model_copy(update={"content": strip_html(renderer(doc.content))})


class Markdown(Transform):
    def __init__(self, renderer: MarkdownRenderer = markdown_to_html):
        self.renderer = renderer

    def apply(self, doc: Document) -> Document:
        return render_markdown(doc, self.renderer)
