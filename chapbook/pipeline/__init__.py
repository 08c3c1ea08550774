"""Streaming pipeline: lazy document streams and per-document results."""

from chapbook.pipeline.results import DocResult, attempt, dump_errors, fail_fast, lift
from chapbook.pipeline.stream import (
    DocStream,
    ResultStream,
    SortKey,
    dedupe,
    filter_matching,
    most_recent,
    remove_drafts,
    remove_index,
    remove_with_id_path,
    sort_by,
)

__all__ = [
    "DocResult",
    "DocStream",
    "ResultStream",
    "SortKey",
    "attempt",
    "dedupe",
    "dump_errors",
    "fail_fast",
    "filter_matching",
    "lift",
    "most_recent",
    "remove_drafts",
    "remove_index",
    "remove_with_id_path",
    "sort_by",
]
