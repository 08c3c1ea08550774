"""DocWriter: the terminal sink that writes documents into an output directory."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel

from chapbook.document.io import write_document
from chapbook.document.models import Document
from chapbook.errors import ChapbookError, DocumentIOError

logger = logging.getLogger(__name__)


class WriteError(BaseModel):
    id_path: str
    error: str


class WriteReport(BaseModel):
    written: list[str] = []
    errors: list[WriteError] = []
    duration: float = 0.0


class DocWriter:
    """Writes each document's content to ``output_dir / output_path``.

    Refuses output paths that would land outside output_dir. A failed write
    is recorded in the report and the remaining documents are still written.
    """

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)

    def destination(self, doc: Document) -> Path:
        dest = self.output_dir / doc.output_path
        if not dest.resolve().is_relative_to(self.output_dir.resolve()):
            raise DocumentIOError(
                f"output path escapes {self.output_dir}: {doc.output_path}", id_path=doc.id_path
            )
        return dest

    def write(self, doc: Document, *, dry_run: bool = False) -> Path:
        """Write a single document. Returns the Path of the written (or would-be) file."""
        dest = self.destination(doc)
        if dry_run:
            logger.debug("dry-run: would write %s", dest)
            return dest
        write_document(doc, self.output_dir)
        logger.info("wrote %s -> %s (%d bytes)", doc.id_path, dest, len(doc.content))
        return dest

    def write_all(self, docs: Iterable[Document], *, dry_run: bool = False) -> WriteReport:
        """Drain docs into the output directory."""
        start = time.monotonic()
        report = WriteReport()
        for doc in docs:
            try:
                report.written.append(str(self.write(doc, dry_run=dry_run)))
            except ChapbookError as exc:
                report.errors.append(WriteError(id_path=doc.id_path, error=str(exc)))
                logger.error("Error writing %s: %s", doc.id_path, exc)
        report.duration = time.monotonic() - start
        return report
