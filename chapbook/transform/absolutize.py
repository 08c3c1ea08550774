"""Rewrites root-relative ``src``/``href`` URLs against the site URL."""

from __future__ import annotations

import re

from chapbook.document.models import Document

from .pipeline import Transform

_URL_ATTR_RE = re.compile(r"""(src|href)=["'](.*?)["']""")


def qualify_url(url: str, base_url: str) -> str:
    if url.startswith("/") and not url.startswith("//"):
        return base_url.rstrip("/") + url
    return url


def absolutize_urls_in_html(html: str, base_url: str) -> str:
    return _URL_ATTR_RE.sub(
        lambda m: f'{m.group(1)}="{qualify_url(m.group(2), base_url)}"', html
    )


def absolutize_urls(doc: Document, base_url: str) -> Document:
    if not base_url:
        return doc
    return doc.model_copy(update={"content": absolutize_urls_in_html(doc.content, base_url)})


class Absolutize(Transform):
    def __init__(self, base_url: str):
        self.base_url = base_url

    def apply(self, doc: Document) -> Document:
        return absolutize_urls(doc, self.base_url)
