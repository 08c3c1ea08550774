"""Tag (taxonomy) indexing, related-document lookup, and archive generation.

Building an index needs every document, so these functions drain their
input into a list first. Once built, an index is read-only and lookups
against it can stream.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator

from pydantic import JsonValue

from chapbook.document.models import Document, Stub
from chapbook.text import render_tokens, to_slug, to_tag

from .pipeline import Transform

logger = logging.getLogger(__name__)

DEFAULT_TAXONOMY = "tags"
DEFAULT_ARCHIVE_PATH = "{taxonomy}/{term}/index.html"

TagIndex = dict[str, list[Stub]]


def _term_text(value: JsonValue) -> str | None:
    # bool is an int subclass but "true" is never a meaningful tag
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def get_terms(doc: Document, taxonomy_key: str = DEFAULT_TAXONOMY) -> list[str] | None:
    """Normalized, de-duplicated terms from an array-valued meta field.

    Returns None when the field is missing or not an array. Elements that
    aren't strings or numbers, or that normalize to nothing, are skipped.
    """
    values = doc.meta.get(taxonomy_key)
    if not isinstance(values, list):
        return None
    terms: list[str] = []
    for value in values:
        text = _term_text(value)
        if text is None:
            continue
        term = to_tag(text)
        if term and term not in terms:
            terms.append(term)
    return terms


def index_by_tag(docs: Iterable[Document], taxonomy_key: str = DEFAULT_TAXONOMY) -> TagIndex:
    """Map each term to stubs of the documents carrying it, in input order."""
    index: TagIndex = {}
    count = 0
    for doc in docs:
        count += 1
        terms = get_terms(doc, taxonomy_key)
        if not terms:
            continue
        stub = doc.to_stub()
        for term in terms:
            index.setdefault(term, []).append(stub)
    logger.debug("indexed %d docs into %d %r terms", count, len(index), taxonomy_key)
    return index


def related_stubs(
    index: TagIndex, terms: Iterable[str], exclude_id_path: str | None = None
) -> list[Stub]:
    """Union the buckets for terms, de-duplicated by id_path.

    Order follows the terms as given, then bucket order within each term.
    """
    seen: set[str] = set()
    if exclude_id_path is not None:
        seen.add(exclude_id_path)
    related: list[Stub] = []
    for term in terms:
        for stub in index.get(term, ()):
            if stub.id_path not in seen:
                seen.add(stub.id_path)
                related.append(stub)
    return related


def _stubs_json(stubs: Iterable[Stub]) -> list[JsonValue]:
    return [stub.model_dump(mode="json") for stub in stubs]


def set_related_from_index(
    doc: Document, index: TagIndex, taxonomy_key: str = DEFAULT_TAXONOMY
) -> Document:
    """Set ``meta["related"]`` to docs sharing any term with doc (doc excluded)."""
    terms = get_terms(doc, taxonomy_key)
    if terms is None:
        return doc
    related = related_stubs(index, terms, exclude_id_path=doc.id_path)
    return doc.merge_meta({"related": _stubs_json(related)})


def add_related(
    docs: Iterable[Document], taxonomy_key: str = DEFAULT_TAXONOMY
) -> Iterator[Document]:
    """Two passes: index the whole set, then enrich each doc from the index."""
    materialized = list(docs)
    index = index_by_tag(materialized, taxonomy_key)
    for doc in materialized:
        yield set_related_from_index(doc, index, taxonomy_key)


def generate_tag_index_doc(
    docs: Iterable[Document], taxonomy_key: str, output_path: str
) -> Document:
    """A single synthetic doc whose content is the JSON term -> stubs index.

    Handy as a data file for templates.
    """
    index = index_by_tag(docs, taxonomy_key)
    content = json.dumps(
        {term: _stubs_json(stubs) for term, stubs in index.items()},
        indent=2,
        ensure_ascii=False,
    )
    return Document(id_path=output_path, title=taxonomy_key, content=content)


def generate_tag_archives(
    docs: Iterable[Document],
    taxonomy_key: str = DEFAULT_TAXONOMY,
    output_path_template: str = DEFAULT_ARCHIVE_PATH,
    template_ref: str | None = None,
) -> Iterator[Document]:
    """One archive doc per term, listing its members under ``meta["items"]``.

    Output paths come from output_path_template with ``{taxonomy}`` and
    ``{term}`` filled in, both slugified.
    """
    index = index_by_tag(docs, taxonomy_key)
    for term, stubs in index.items():
        parts = {"taxonomy": to_slug(taxonomy_key), "term": to_slug(term)}
        output_path = render_tokens(output_path_template, parts)
        yield Document(
            id_path=output_path,
            template_ref=template_ref,
            title=term,
            meta={"taxonomy": taxonomy_key, "term": term, "items": _stubs_json(stubs)},
        )


class RelatedFromIndex(Transform):
    """Enrich docs from a prebuilt index. The index must not change afterwards."""

    def __init__(self, index: TagIndex, taxonomy_key: str = DEFAULT_TAXONOMY):
        self.index = index
        self.taxonomy_key = taxonomy_key

    def apply(self, doc: Document) -> Document:
        return set_related_from_index(doc, self.index, self.taxonomy_key)
