"""Per-document results for fallible transforms, and the two error policies.

A fallible transform raises a ChapbookError; ``attempt`` turns that into an
``Err`` DocResult so one bad document does not stop the stream by itself.
What happens next is the caller's choice, made once for the whole stream:

- ``dump_errors`` logs each error and drops the document.
- ``fail_fast`` raises the first error, aborting the run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass

from chapbook.document.models import Document
from chapbook.errors import ChapbookError

logger = logging.getLogger(__name__)

Transform = Callable[[Document], Document]
FallibleTransform = Callable[[Document], "DocResult"]


@dataclass(frozen=True)
class DocResult:
    """Either a transformed document or the error that prevented it."""

    doc: Document | None = None
    error: ChapbookError | None = None
    id_path: str | None = None

    @classmethod
    def ok(cls, doc: Document) -> DocResult:
        return cls(doc=doc, id_path=doc.id_path)

    @classmethod
    def err(cls, error: ChapbookError, id_path: str | None = None) -> DocResult:
        return cls(error=error, id_path=id_path or error.id_path)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Document:
        if self.error is not None:
            raise self.error
        assert self.doc is not None
        return self.doc


def lift(fn: Transform) -> FallibleTransform:
    """Adapt an infallible transform so it can sit in a fallible chain."""

    def _lifted(doc: Document) -> DocResult:
        return DocResult.ok(fn(doc))

    return _lifted


def attempt(fn: Transform) -> FallibleTransform:
    """Wrap a transform that may raise ChapbookError into one returning DocResult.

    Only ChapbookError is captured. Anything else is a bug and propagates.
    """

    def _attempted(doc: Document) -> DocResult:
        try:
            return DocResult.ok(fn(doc))
        except ChapbookError as exc:
            return DocResult.err(exc, id_path=doc.id_path)

    return _attempted


def and_then(results: Iterable[DocResult], fn: FallibleTransform) -> Iterator[DocResult]:
    """Apply a fallible transform to Ok results; errors pass through untouched."""
    for result in results:
        yield fn(result.doc) if result.is_ok else result


def dump_errors(results: Iterable[DocResult]) -> Iterator[Document]:
    """Log and drop failed documents, yielding the rest."""
    for result in results:
        if result.is_ok:
            yield result.unwrap()
        else:
            logger.error("Dropped %s: %s", result.id_path or "<unknown>", result.error)


def fail_fast(results: Iterable[DocResult]) -> Iterator[Document]:
    """Yield documents until the first error, then raise it.

    Lazy: documents before the failure have already been yielded. Callers
    that cannot accept partial output should materialize before the sink.
    """
    for result in results:
        yield result.unwrap()
