"""Document transforms: frontmatter, permalinks, tags, wikilinks, templates."""

from .pipeline import Transform, TransformPipeline
from .absolutize import Absolutize, absolutize_urls
from .blog import blog_pipeline
from .frontmatter import parse_and_uplift_frontmatter, parse_frontmatter, split_frontmatter
from .markdown import Markdown, MarkdownRenderer, markdown_to_html, render_markdown, strip_markdown
from .permalink import Permalink, nice_path, permalink_parts, set_nice_path, set_permalink
from .taxonomy import (
    RelatedFromIndex,
    add_related,
    generate_tag_archives,
    generate_tag_index_doc,
    get_terms,
    index_by_tag,
    related_stubs,
)
from .template import (
    JinjaRenderer,
    TemplateRender,
    TemplateRenderer,
    is_inline_template,
    render_in_content,
    render_template,
)
from .wikilink import (
    WikilinkResolver,
    find_wikilinks,
    index_by_title_slug,
    resolve_wikilinks,
    resolve_wikilinks_between,
    strip_wikilinks,
)

__all__ = [
    "Absolutize",
    "JinjaRenderer",
    "Markdown",
    "MarkdownRenderer",
    "Permalink",
    "RelatedFromIndex",
    "TemplateRender",
    "TemplateRenderer",
    "Transform",
    "TransformPipeline",
    "WikilinkResolver",
    "absolutize_urls",
    "add_related",
    "blog_pipeline",
    "find_wikilinks",
    "generate_tag_archives",
    "generate_tag_index_doc",
    "get_terms",
    "index_by_tag",
    "index_by_title_slug",
    "is_inline_template",
    "markdown_to_html",
    "nice_path",
    "parse_and_uplift_frontmatter",
    "parse_frontmatter",
    "permalink_parts",
    "related_stubs",
    "render_in_content",
    "render_markdown",
    "render_template",
    "resolve_wikilinks",
    "resolve_wikilinks_between",
    "set_nice_path",
    "set_permalink",
    "split_frontmatter",
    "strip_markdown",
    "strip_wikilinks",
]
