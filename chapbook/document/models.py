"""Pydantic models for documents and their lightweight stubs."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, JsonValue, field_validator, model_validator

from chapbook.document.meta import get_deep, merge
from chapbook.text import strip_html, to_slug, truncate_280


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(value: str) -> datetime | None:
    """Parse an ISO 8601 date or datetime string. Naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Stub(BaseModel):
    """Summary details of a document: no content, meta, or template.

    Snapshotted from a Document; it does not follow later changes to it.
    """

    model_config = ConfigDict(frozen=True)

    id_path: str
    output_path: str
    created: datetime
    modified: datetime
    title: str = ""
    summary: str = ""


class Document(BaseModel):
    """The unit of work that flows through a pipeline.

    Frozen: transforms return a new Document via ``model_copy``.
    """

    model_config = ConfigDict(frozen=True)

    id_path: str = Field(min_length=1)
    output_path: str = ""
    input_path: str | None = None
    template_ref: str | None = None
    created: datetime = Field(default_factory=_utcnow)
    modified: datetime = Field(default_factory=_utcnow)
    title: str = ""
    summary: str = ""
    content: str = ""
    meta: dict[str, JsonValue] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def default_output_path(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("output_path"):
            data = {**data, "output_path": data.get("id_path")}
        return data

    @field_validator("id_path")
    @classmethod
    def validate_id_path(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("id_path cannot be empty or whitespace")
        return v

    @field_validator("meta", mode="before")
    @classmethod
    def null_meta_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("created", "modified")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    # -- Construction --------------------------------------------------------

    @classmethod
    def draft(cls, id_path: str, **fields: Any) -> Document:
        """Create a document from just an id_path (plus any overrides)."""
        return cls(id_path=id_path, **fields)

    # -- Paths ---------------------------------------------------------------

    def set_output_path(self, output_path: str) -> Document:
        """Set output_path. A blank value falls back to id_path."""
        output_path = str(output_path)
        if not output_path.strip():
            output_path = self.id_path
        return self.model_copy(update={"output_path": output_path})

    def set_extension(self, extension: str) -> Document:
        """Swap the output_path extension, e.g. ``posts/a.md`` -> ``posts/a.html``."""
        path = PurePosixPath(self.output_path).with_suffix(f".{extension.lstrip('.')}")
        return self.set_output_path(str(path))

    def set_extension_html(self) -> Document:
        return self.set_extension("html")

    def set_extension_md(self) -> Document:
        return self.set_extension("md")

    # -- Templates -----------------------------------------------------------

    def set_template(self, template_ref: str) -> Document:
        return self.model_copy(update={"template_ref": template_ref})

    def auto_template(self) -> Document:
        """Assign a template named after the parent directory, once.

        ``posts/a.md`` gets ``posts.html``; a root-level doc gets
        ``default.html``. Docs that already have a template are left alone.
        """
        if self.template_ref is not None:
            return self
        parent = PurePosixPath(self.id_path).parent.name
        return self.set_template(f"{parent}.html" if parent else "default.html")

    # -- Text fields ---------------------------------------------------------

    @property
    def title_slug(self) -> str:
        return to_slug(self.title)

    def auto_summary(self) -> Document:
        """Derive a plain-text summary from content if none has been assigned.

        Wikilinks are reduced to their display text and HTML tags are dropped
        before truncating.
        """
        from chapbook.transform.wikilink import strip_wikilinks

        if self.summary:
            return self
        text = strip_html(strip_wikilinks(self.content))
        return self.model_copy(update={"summary": truncate_280(text)})

    # -- Meta ----------------------------------------------------------------

    def get_meta(self, path: str) -> JsonValue:
        """Dot-path lookup into meta, e.g. ``doc.get_meta("music.artist.name")``."""
        return get_deep(self.meta, path)

    def set_meta(self, meta: dict[str, JsonValue]) -> Document:
        return self.model_copy(update={"meta": dict(meta)})

    def merge_meta(self, patch: dict[str, JsonValue]) -> Document:
        return self.model_copy(update={"meta": merge(self.meta, patch)})

    def uplift_meta(self) -> Document:
        """Copy blessed meta fields onto the document.

        Recognized: title, summary, created, modified, permalink (output_path)
        and template (template_ref). Non-string values, blank permalinks and
        unparsable dates are ignored.
        """
        update: dict[str, Any] = {}
        meta = self.meta
        if isinstance(title := meta.get("title"), str):
            update["title"] = title
        if isinstance(summary := meta.get("summary"), str):
            update["summary"] = summary
        for key in ("created", "modified"):
            if isinstance(raw := meta.get(key), str) and (parsed := parse_datetime(raw)):
                update[key] = parsed
        if isinstance(permalink := meta.get("permalink"), str) and permalink.strip():
            update["output_path"] = permalink
        if isinstance(template := meta.get("template"), str):
            update["template_ref"] = template
        return self.model_copy(update=update) if update else self

    # -- Projections ---------------------------------------------------------

    def to_stub(self) -> Stub:
        return Stub(
            id_path=self.id_path,
            output_path=self.output_path,
            created=self.created,
            modified=self.modified,
            title=self.title,
            summary=self.summary,
        )
