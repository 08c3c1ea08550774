"""Chapbook - a streaming document pipeline for static sites."""

from chapbook.config import ChapbookConfig, load_config
from chapbook.document import Document, Stub
from chapbook.errors import ChapbookError
from chapbook.pipeline import DocResult, DocStream, ResultStream, SortKey

__version__ = "0.1.0"

__all__ = [
    "ChapbookConfig",
    "ChapbookError",
    "DocResult",
    "DocStream",
    "Document",
    "ResultStream",
    "SortKey",
    "Stub",
    "load_config",
]
