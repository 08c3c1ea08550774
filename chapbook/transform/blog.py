"""Ready-made transform chain for blog posts and pages."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from chapbook.document.models import Document

from .absolutize import Absolutize
from .markdown import Markdown, MarkdownRenderer, markdown_to_html
from .permalink import Permalink
from .pipeline import TransformPipeline
from .template import TemplateRender, TemplateRenderer


def blog_pipeline(
    permalink_template: str,
    renderer: TemplateRenderer,
    context: Mapping[str, Any] | None = None,
    site_url: str = "",
    markdown: MarkdownRenderer | None = markdown_to_html,
) -> TransformPipeline:
    """permalink -> auto template -> markdown -> absolutize -> template.

    Pass ``markdown=None`` for content that is already HTML. The template step can raise RenderError, so run this through
    ``DocStream.try_map``.
    """
    steps = [Permalink(permalink_template), Document.auto_template]
    if markdown is not None:
        steps.append(Markdown(markdown))
    steps += [Absolutize(site_url), TemplateRender(renderer, context)]
    return TransformPipeline(steps)
