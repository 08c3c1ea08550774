"""Output subsystem: writes documents to disk."""

from chapbook.output.writer import DocWriter, WriteError, WriteReport

__all__ = [
    "DocWriter",
    "WriteError",
    "WriteReport",
]
