"""Lazy document streams and the combinators that run over them.

Most stages are one-pass generators: nothing happens until a consumer pulls.
Sorting, taxonomy and wikilink stages need the whole set, so they drain
their upstream into a list on the first pull before yielding anything.
"""

from __future__ import annotations

import fnmatch
import itertools
import logging
import re
from collections.abc import Callable, Iterable, Iterator
from enum import Enum
from pathlib import PurePosixPath

from chapbook.document.models import Document
from chapbook.errors import PipelineValueError
from chapbook.pipeline.results import (
    DocResult,
    FallibleTransform,
    Transform,
    and_then,
    attempt,
    dump_errors,
    fail_fast,
)
from chapbook.transform import frontmatter, permalink, taxonomy, wikilink
from chapbook.transform.blog import blog_pipeline
from chapbook.transform.markdown import MarkdownRenderer, markdown_to_html, render_markdown
from chapbook.transform.template import TemplateRenderer, render_in_content, render_template

logger = logging.getLogger(__name__)

DRAFT_PREFIX = "_"

# A "[" that doesn't open a well-formed character class
_UNCLOSED_CLASS_RE = re.compile(r"\[(?![!^]?\]?[^\]]*\])")


class SortKey(str, Enum):
    id_path = "id_path"
    output_path = "output_path"
    created = "created"
    modified = "modified"
    title = "title"


# ---------------------------------------------------------------------------
# Filters (streaming)
# ---------------------------------------------------------------------------


def remove_with_id_path(docs: Iterable[Document], id_path: str) -> Iterator[Document]:
    return (doc for doc in docs if doc.id_path != id_path)


def compile_glob(pattern: str) -> re.Pattern:
    """Compile a case-sensitive glob. ``*`` also matches across ``/``."""
    if not pattern:
        raise PipelineValueError("empty glob pattern")
    if _UNCLOSED_CLASS_RE.search(pattern):
        raise PipelineValueError(f"invalid glob pattern {pattern!r}: unclosed '['")
    return re.compile(fnmatch.translate(pattern))


def filter_matching(docs: Iterable[Document], pattern: str) -> Iterator[Document]:
    """Keep docs whose id_path matches a glob pattern."""
    matcher = compile_glob(pattern)
    return (doc for doc in docs if matcher.match(doc.id_path))


def is_draft(doc: Document, prefix: str = DRAFT_PREFIX) -> bool:
    return PurePosixPath(doc.id_path).name.startswith(prefix)


def is_index(doc: Document) -> bool:
    return PurePosixPath(doc.id_path).stem == "index"


def remove_drafts(docs: Iterable[Document], prefix: str = DRAFT_PREFIX) -> Iterator[Document]:
    """Drop docs whose file name starts with the draft prefix (``_`` by default)."""
    return (doc for doc in docs if not is_draft(doc, prefix))


def remove_index(docs: Iterable[Document]) -> Iterator[Document]:
    return (doc for doc in docs if not is_index(doc))


def dedupe(docs: Iterable[Document]) -> Iterator[Document]:
    """Keep the first doc for each id_path, in original order."""
    seen: set[str] = set()
    for doc in docs:
        if doc.id_path in seen:
            logger.debug("dropping duplicate %s", doc.id_path)
            continue
        seen.add(doc.id_path)
        yield doc


# ---------------------------------------------------------------------------
# Ordering (materializing)
# ---------------------------------------------------------------------------


def parse_sort_key(key: SortKey | str) -> SortKey:
    try:
        return SortKey(key)
    except ValueError:
        valid = ", ".join(k.value for k in SortKey)
        raise PipelineValueError(f"unknown sort key {key!r} (expected one of: {valid})") from None


def _sorted(docs: Iterable[Document], attr: str, ascending: bool) -> Iterator[Document]:
    materialized = list(docs)
    logger.debug("sorting %d docs by %s", len(materialized), attr)
    # sorted() is stable in both directions, so ties keep input order
    yield from sorted(materialized, key=lambda d: getattr(d, attr), reverse=not ascending)


def sort_by(
    docs: Iterable[Document], key: SortKey | str, ascending: bool = True
) -> Iterator[Document]:
    """Stable sort on one of the SortKey fields. Drains docs on first pull."""
    return _sorted(docs, parse_sort_key(key).value, ascending)


def most_recent(docs: Iterable[Document], n: int) -> Iterator[Document]:
    """Up to n docs, newest created first."""
    if n < 0:
        raise PipelineValueError(f"most_recent limit must be >= 0, got {n}")
    return itertools.islice(sort_by(docs, SortKey.created, ascending=False), n)


# ---------------------------------------------------------------------------
# Stage objects
# ---------------------------------------------------------------------------


class DocStream:
    """A chainable, single-use stream of documents.

    Each method wraps the current stream and returns a new DocStream; the
    chain runs when iterated. ``materialize()`` drains it into a list.
    """

    def __init__(self, docs: Iterable[Document]):
        self._docs = docs

    def __iter__(self) -> Iterator[Document]:
        return iter(self._docs)

    def materialize(self) -> list[Document]:
        return list(self._docs)

    # -- generic ------------------------------------------------------------

    def map(self, fn: Transform) -> DocStream:
        return DocStream(fn(doc) for doc in self._docs)

    def filter(self, predicate: Callable[[Document], bool]) -> DocStream:
        return DocStream(doc for doc in self._docs if predicate(doc))

    def take(self, n: int) -> DocStream:
        if n < 0:
            raise PipelineValueError(f"take limit must be >= 0, got {n}")
        return DocStream(itertools.islice(self._docs, n))

    def chain(self, *others: Iterable[Document]) -> DocStream:
        return DocStream(itertools.chain(self._docs, *others))

    def try_map(self, fn: Transform) -> ResultStream:
        """Apply a transform that may raise ChapbookError, capturing failures."""
        return ResultStream(attempt(fn)(doc) for doc in self._docs)

    # -- filters ------------------------------------------------------------

    def remove_with_id_path(self, id_path: str) -> DocStream:
        return DocStream(remove_with_id_path(self._docs, id_path))

    def filter_matching(self, pattern: str) -> DocStream:
        return DocStream(filter_matching(self._docs, pattern))

    def remove_drafts(self, prefix: str = DRAFT_PREFIX) -> DocStream:
        return DocStream(remove_drafts(self._docs, prefix))

    def remove_index(self) -> DocStream:
        return DocStream(remove_index(self._docs))

    def dedupe(self) -> DocStream:
        return DocStream(dedupe(self._docs))

    # -- ordering -----------------------------------------------------------

    def sort_by(self, key: SortKey | str, ascending: bool = True) -> DocStream:
        return DocStream(sort_by(self._docs, key, ascending))

    def most_recent(self, n: int) -> DocStream:
        return DocStream(most_recent(self._docs, n))

    # -- per-document transforms -------------------------------------------

    def parse_frontmatter(self, uplift: bool = True) -> ResultStream:
        fn = frontmatter.parse_and_uplift_frontmatter if uplift else frontmatter.parse_frontmatter
        return self.try_map(fn)

    def set_permalink(self, template: str) -> DocStream:
        return self.map(permalink.Permalink(template))

    def set_nice_path(self) -> DocStream:
        return self.map(permalink.set_nice_path)

    def set_extension(self, extension: str) -> DocStream:
        return self.map(lambda doc: doc.set_extension(extension))

    def auto_template(self) -> DocStream:
        return self.map(Document.auto_template)

    def auto_summary(self) -> DocStream:
        return self.map(Document.auto_summary)

    def render_markdown(self, renderer: MarkdownRenderer = markdown_to_html) -> DocStream:
        return self.map(lambda doc: render_markdown(doc, renderer))

    def render_template(
        self, renderer: TemplateRenderer, context: dict | None = None
    ) -> ResultStream:
        return self.try_map(lambda doc: render_template(doc, renderer, context))

    def render_in_content(
        self, renderer: TemplateRenderer, context: dict | None = None
    ) -> ResultStream:
        return self.try_map(lambda doc: render_in_content(doc, renderer, context))

    def blog(
        self,
        permalink_template: str,
        renderer: TemplateRenderer,
        context: dict | None = None,
        site_url: str = "",
        markdown: MarkdownRenderer | None = markdown_to_html,
    ) -> ResultStream:
        """Run each doc through ``blog_pipeline``, capturing render failures."""
        return self.try_map(
            blog_pipeline(permalink_template, renderer, context, site_url, markdown)
        )

    # -- cross-document (materializing) ------------------------------------

    def resolve_wikilinks(
        self,
        link_template: str = wikilink.DEFAULT_LINK_TEMPLATE,
        nolink_template: str = wikilink.DEFAULT_NOLINK_TEMPLATE,
        transclude: bool = False,
    ) -> DocStream:
        return DocStream(
            wikilink.resolve_wikilinks_between(
                self._docs, link_template, nolink_template, transclude
            )
        )

    def add_related(self, taxonomy_key: str = taxonomy.DEFAULT_TAXONOMY) -> DocStream:
        return DocStream(taxonomy.add_related(self._docs, taxonomy_key))

    def tag_archives(
        self,
        taxonomy_key: str = taxonomy.DEFAULT_TAXONOMY,
        output_path_template: str = taxonomy.DEFAULT_ARCHIVE_PATH,
        template_ref: str | None = None,
    ) -> DocStream:
        """Replace this stream with the archive docs generated from it."""
        return DocStream(
            taxonomy.generate_tag_archives(
                self._docs, taxonomy_key, output_path_template, template_ref
            )
        )


class ResultStream:
    """A stream of DocResults. Pick an error policy to get back a DocStream."""

    def __init__(self, results: Iterable[DocResult]):
        self._results = results

    def __iter__(self) -> Iterator[DocResult]:
        return iter(self._results)

    def and_then(self, fn: FallibleTransform) -> ResultStream:
        return ResultStream(and_then(self._results, fn))

    def try_map(self, fn: Transform) -> ResultStream:
        """Chain another raising transform onto the Ok results."""
        return self.and_then(attempt(fn))

    def dump_errors(self) -> DocStream:
        return DocStream(dump_errors(self._results))

    def fail_fast(self) -> DocStream:
        return DocStream(fail_fast(self._results))
