"""Reading and writing documents: source files, JSON records, JSON-lines streams."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import IO

from pydantic import BaseModel, TypeAdapter, ValidationError

from chapbook.document.models import Document, Stub
from chapbook.errors import DocumentIOError, ParseError
from chapbook.pipeline.results import DocResult

logger = logging.getLogger(__name__)

_DOC_LIST = TypeAdapter(list[Document])
_STUB_LIST = TypeAdapter(list[Stub])


def write_file_deep(path: Path, content: str) -> None:
    """Write content to path, creating parent directories as needed."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise DocumentIOError(f"could not write {path}", cause=exc) from exc


# ---------------------------------------------------------------------------
# Source files
# ---------------------------------------------------------------------------


def read_document(path: str | Path, root: str | Path | None = None) -> Document:
    """Load a document from a text file.

    The file stem becomes the title and file timestamps become created and
    modified. When root is given, id_path is made relative to it.
    """
    path = Path(path)
    try:
        stat = path.stat()
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DocumentIOError(f"could not read {path}", id_path=str(path), cause=exc) from exc

    try:
        id_path = path.relative_to(root) if root is not None else path
    except ValueError as exc:
        raise DocumentIOError(
            f"{path} is not under root {root}", id_path=str(path), cause=exc
        ) from exc
    # st_birthtime is only available on some platforms
    created = getattr(stat, "st_birthtime", stat.st_ctime)
    return Document(
        id_path=PurePosixPath(*id_path.parts).as_posix(),
        input_path=str(path),
        created=datetime.fromtimestamp(created, tz=timezone.utc),
        modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        title=path.stem,
        content=content,
    )


def read_documents(
    paths: Iterable[str | Path], root: str | Path | None = None
) -> Iterator[DocResult]:
    """Lazily load documents from paths, one result per path."""
    for path in paths:
        try:
            yield DocResult.ok(read_document(path, root=root))
        except DocumentIOError as exc:
            yield DocResult.err(exc, id_path=str(path))


def write_document(doc: Document, output_dir: str | Path) -> Path:
    """Write doc content to ``output_dir / output_path``. Returns the written path."""
    write_path = Path(output_dir) / doc.output_path
    write_file_deep(write_path, doc.content)
    return write_path


# ---------------------------------------------------------------------------
# JSON records
# ---------------------------------------------------------------------------


def document_from_json(text: str) -> Document:
    try:
        return Document.model_validate_json(text)
    except ValidationError as exc:
        raise ParseError("invalid document record", cause=exc) from exc


def document_to_json(doc: Document, indent: int | None = None) -> str:
    return doc.model_dump_json(indent=indent)


def write_document_json(doc: Document, output_dir: str | Path) -> Path:
    """Serialize doc to ``output_dir / <id_path with .json extension>``."""
    rel = PurePosixPath(doc.id_path).with_suffix(".json")
    write_path = Path(output_dir) / rel
    write_file_deep(write_path, document_to_json(doc, indent=2))
    return write_path


def read_jsonl(stream: IO[str]) -> Iterator[DocResult]:
    """Parse one document per line. Blank lines are skipped."""
    for lineno, line in enumerate(stream, start=1):
        if not line.strip():
            continue
        try:
            yield DocResult.ok(document_from_json(line))
        except ParseError as exc:
            yield DocResult.err(exc, id_path=f"<line {lineno}>")


def write_jsonl(docs: Iterable[Document], stream: IO[str]) -> int:
    """Write one JSON document per line. Returns the number written."""
    count = 0
    for doc in docs:
        stream.write(document_to_json(doc))
        stream.write("\n")
        count += 1
    stream.flush()
    return count


# ---------------------------------------------------------------------------
# Stash archives (a JSON array in a single file)
# ---------------------------------------------------------------------------


def write_stash(items: Iterable[BaseModel], path: str | Path) -> Path:
    """Write documents or stubs to a JSON array file. Materializes items."""
    records = [item.model_dump(mode="json") for item in items]
    path = Path(path)
    write_file_deep(path, json.dumps(records, ensure_ascii=False))
    logger.debug("stashed %d records to %s", len(records), path)
    return path


def _read_stash_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentIOError(f"could not read stash {path}", cause=exc) from exc


def read_stash(path: str | Path) -> list[Document]:
    path = Path(path)
    try:
        return _DOC_LIST.validate_json(_read_stash_text(path))
    except ValidationError as exc:
        raise ParseError(f"invalid stash {path}", cause=exc) from exc


def read_stub_stash(path: str | Path) -> list[Stub]:
    path = Path(path)
    try:
        return _STUB_LIST.validate_json(_read_stash_text(path))
    except ValidationError as exc:
        raise ParseError(f"invalid stub stash {path}", cause=exc) from exc
