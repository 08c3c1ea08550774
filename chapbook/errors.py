"""Exception hierarchy for the document pipeline."""

from __future__ import annotations


class ChapbookError(Exception):
    """Base error. Carries the id_path of the document that failed, if known."""

    def __init__(
        self, message: str, id_path: str | None = None, cause: Exception | None = None
    ) -> None:
        self.message = message
        self.id_path = id_path
        prefix = f"{id_path}: " if id_path else ""
        detail = f" ({cause})" if cause is not None else ""
        super().__init__(f"{prefix}{message}{detail}")
        self.__cause__ = cause


class DocumentIOError(ChapbookError):
    """Reading or writing a path failed."""


class ParseError(ChapbookError):
    """Structured data could not be deserialized."""


class FrontmatterError(ParseError):
    """A frontmatter block was not valid YAML or not a mapping."""


class RenderError(ChapbookError):
    """A template failed to render."""


class PipelineValueError(ChapbookError, ValueError):
    """Bad argument to a pipeline stage (sort key, glob pattern, limit)."""
