"""Transform and TransformPipeline: per-document steps composed in order."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence

from chapbook.document.models import Document


class Transform(ABC):
    """A parameterized, reusable Document -> Document step.

    Plain functions work wherever a Transform does; subclass this when the
    step carries configuration (a template, an index, a renderer).
    """

    @abstractmethod
    def apply(self, doc: Document) -> Document:
        """Return a transformed copy of doc. May raise ChapbookError."""
        ...

    def __call__(self, doc: Document) -> Document:
        return self.apply(doc)


class TransformPipeline(Transform):
    def __init__(self, transforms: Sequence[Callable[[Document], Document]]):
        self.transforms = list(transforms)

    def apply(self, doc: Document) -> Document:
        for t in self.transforms:
            doc = t(doc)
        return doc
