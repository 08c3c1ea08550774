"""Wikilinks: ``[[Target]]`` and ``[[Target|Display text]]``.

Resolution takes two passes over a finished collection: index every
document by its slugified title, then rewrite the links in each document
against that index. Stripping is a single pass and needs no index.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

from chapbook.document.models import Document
from chapbook.text import first_sentence, render_tokens, strip_html, to_slug

from .pipeline import Transform

logger = logging.getLogger(__name__)

_WIKILINK_RE = re.compile(r"\[\[([^\]]+)\]\]")
# A line holding nothing but one wikilink
_TRANSCLUDE_RE = re.compile(r"^[ \t]*\[\[([^\]]+)\]\][ \t]*$", re.MULTILINE)

DEFAULT_LINK_TEMPLATE = '<a class="wikilink" href="{output_path}">{text}</a>'
DEFAULT_NOLINK_TEMPLATE = '<span class="nolink">{text}</span>'

SlugIndex = dict[str, Document]


@dataclass(frozen=True)
class Wikilink:
    text: str
    slug: str


def parse_wikilink(inner: str) -> Wikilink:
    """Parse the text between the brackets.

    ``Page Name`` -> text "Page Name", slug "page-name".
    ``slug|Display Text`` -> text "Display Text", slug "slug".
    """
    target, sep, display = inner.strip().partition("|")
    if sep:
        return Wikilink(text=display.strip(), slug=to_slug(target.strip()))
    text = target.strip()
    return Wikilink(text=text, slug=to_slug(text))


def find_wikilinks(text: str) -> Iterator[Wikilink]:
    for m in _WIKILINK_RE.finditer(text):
        yield parse_wikilink(m.group(1))


def find_transcludes(text: str) -> Iterator[Wikilink]:
    for m in _TRANSCLUDE_RE.finditer(text):
        yield parse_wikilink(m.group(1))


def strip_wikilinks(text: str) -> str:
    """Replace wikilinks with their display text; transclude lines are dropped."""
    text = _TRANSCLUDE_RE.sub("", text)
    return _WIKILINK_RE.sub(lambda m: parse_wikilink(m.group(1)).text, text)


def wiki_summary(text: str) -> str:
    """First sentence of text as plain text, with wikilinks and tags stripped."""
    return strip_html(strip_wikilinks(first_sentence(text)))


def index_by_title_slug(docs: Iterable[Document]) -> SlugIndex:
    """Key docs by slugified title.

    When two docs share a slug the later one wins; the collision is logged.
    Docs whose title slugifies to nothing are left out.
    """
    index: SlugIndex = {}
    for doc in docs:
        slug = doc.title_slug
        if not slug:
            continue
        if slug in index:
            logger.warning(
                "wikilink slug %r claimed by %s, replacing %s",
                slug,
                doc.id_path,
                index[slug].id_path,
            )
        index[slug] = doc
    return index


def render_wikilinks(
    text: str,
    index: Mapping[str, Document],
    link_template: str = DEFAULT_LINK_TEMPLATE,
    nolink_template: str = DEFAULT_NOLINK_TEMPLATE,
    transclude: bool = False,
) -> str:
    """Rewrite every wikilink in text using index.

    Found links render link_template with output_path, title, summary, text
    and slug. Missing targets render nolink_template with text and slug only.
    With transclude on, a line holding only a resolvable wikilink is replaced
    by the target's content.
    """
    if transclude:

        def _transclude(m: re.Match) -> str:
            slug = parse_wikilink(m.group(1)).slug
            target = index.get(slug) if slug else None
            return target.content if target is not None else m.group(0)

        text = _TRANSCLUDE_RE.sub(_transclude, text)

    def _render(m: re.Match) -> str:
        link = parse_wikilink(m.group(1))
        target = index.get(link.slug) if link.slug else None
        if target is None:
            return render_tokens(nolink_template, {"text": link.text, "slug": link.slug})
        return render_tokens(
            link_template,
            {
                "output_path": target.output_path,
                "title": target.title,
                "summary": target.summary,
                "text": link.text,
                "slug": link.slug,
            },
        )

    return _WIKILINK_RE.sub(_render, text)


def resolve_wikilinks(
    doc: Document,
    index: Mapping[str, Document],
    link_template: str = DEFAULT_LINK_TEMPLATE,
    nolink_template: str = DEFAULT_NOLINK_TEMPLATE,
    transclude: bool = False,
) -> Document:
    content = render_wikilinks(doc.content, index, link_template, nolink_template, transclude)
    return doc.model_copy(update={"content": content})


def resolve_wikilinks_between(
    docs: Iterable[Document],
    link_template: str = DEFAULT_LINK_TEMPLATE,
    nolink_template: str = DEFAULT_NOLINK_TEMPLATE,
    transclude: bool = False,
) -> Iterator[Document]:
    """Link docs to each other: a link matches a doc whose title slug equals its slug."""
    materialized = list(docs)
    index = index_by_title_slug(materialized)
    logger.debug("wikilink index: %d slugs over %d docs", len(index), len(materialized))
    for doc in materialized:
        yield resolve_wikilinks(doc, index, link_template, nolink_template, transclude)


class WikilinkResolver(Transform):
    def __init__(
        self,
        index: Mapping[str, Document],
        link_template: str = DEFAULT_LINK_TEMPLATE,
        nolink_template: str = DEFAULT_NOLINK_TEMPLATE,
        transclude: bool = False,
    ):
        self.index = index
        self.link_template = link_template
        self.nolink_template = nolink_template
        self.transclude = transclude

    def apply(self, doc: Document) -> Document:
        return resolve_wikilinks(
            doc, self.index, self.link_template, self.nolink_template, self.transclude
        )
