"""Template rendering: the TemplateRenderer seam and a Jinja2-backed default."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from chapbook.document.models import Document
from chapbook.errors import RenderError

from .markdown import MarkdownRenderer, markdown_to_html
from .pipeline import Transform

logger = logging.getLogger(__name__)

# Jinja delimiters never appear in a template file name
_INLINE_MARKERS = ("{{", "{%")


@runtime_checkable
class TemplateRenderer(Protocol):
    """Renders a document through a named or inline template. Raises RenderError."""

    def render(
        self, doc: Document, template_ref: str, context: Mapping[str, Any]
    ) -> str: ...

    def render_string(
        self, doc: Document, source: str, context: Mapping[str, Any]
    ) -> str: ...


class JinjaRenderer:
    """Jinja2 environment over a template directory.

    Templates see ``doc`` (the document as plain JSON data) plus whatever
    context is passed, and get a ``markdown`` filter. HTML templates
    autoescape, so pre-rendered content needs ``{{ doc.content | safe }}``.
    """

    def __init__(
        self, template_dir: str | Path, markdown: MarkdownRenderer = markdown_to_html
    ) -> None:
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(default_for_string=False),
        )
        self.env.filters["markdown"] = markdown

    def _context(self, doc: Document, context: Mapping[str, Any]) -> dict[str, Any]:
        return {**context, "doc": doc.model_dump(mode="json")}

    def render(self, doc: Document, template_ref: str, context: Mapping[str, Any]) -> str:
        try:
            template = self.env.get_template(template_ref)
            return template.render(**self._context(doc, context))
        except TemplateError as exc:
            raise RenderError(
                f"could not render template {template_ref!r}", id_path=doc.id_path, cause=exc
            ) from exc

    def render_string(self, doc: Document, source: str, context: Mapping[str, Any]) -> str:
        """Render an inline template source instead of a file."""
        try:
            return self.env.from_string(source).render(**self._context(doc, context))
        except TemplateError as exc:
            raise RenderError("could not render inline template", id_path=doc.id_path, cause=exc) from exc


def is_inline_template(template_ref: str) -> bool:
    """True when template_ref holds template source rather than a template name."""
    return any(marker in template_ref for marker in _INLINE_MARKERS)


def render_template(
    doc: Document, renderer: TemplateRenderer, context: Mapping[str, Any] | None = None
) -> Document:
    """Replace content with the rendered template. Docs without a template pass through.

    A template_ref containing ``{{`` or ``{%`` is rendered as inline source.
    """
    if doc.template_ref is None:
        return doc
    if is_inline_template(doc.template_ref):
        content = renderer.render_string(doc, doc.template_ref, context or {})
        logger.debug("rendered %s with an inline template", doc.id_path)
    else:
        content = renderer.render(doc, doc.template_ref, context or {})
        logger.debug("rendered %s with %s", doc.id_path, doc.template_ref)
    return doc.model_copy(update={"content": content})


def render_in_content(
    doc: Document, renderer: TemplateRenderer, context: Mapping[str, Any] | None = None
) -> Document:
    """Treat the doc's own content as a template and replace it with the result."""
    content = renderer.render_string(doc, doc.content, context or {})
    return doc.model_copy(update={"content": content})


class TemplateRender(Transform):
    def __init__(self, renderer: TemplateRenderer, context: Mapping[str, Any] | None = None):
        self.renderer = renderer
        self.context = dict(context or {})

    def apply(self, doc: Document) -> Document:
        return render_template(doc, self.renderer, self.context)
