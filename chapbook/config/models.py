from pydantic import BaseModel, Field
from typing import Any, Literal

from chapbook.transform.permalink import BLOG_PERMALINK, PAGE_PERMALINK
from chapbook.transform.taxonomy import DEFAULT_ARCHIVE_PATH, DEFAULT_TAXONOMY
from chapbook.transform.wikilink import DEFAULT_LINK_TEMPLATE, DEFAULT_NOLINK_TEMPLATE


class PermalinkConfig(BaseModel):
    post: str = BLOG_PERMALINK
    page: str = PAGE_PERMALINK


class TaxonomyConfig(BaseModel):
    key: str = Field(default=DEFAULT_TAXONOMY, min_length=1)
    archive_path: str = DEFAULT_ARCHIVE_PATH
    archive_template: str | None = None


class WikilinkConfig(BaseModel):
    link_template: str = DEFAULT_LINK_TEMPLATE
    nolink_template: str = DEFAULT_NOLINK_TEMPLATE
    transclude: bool = False


class ChapbookConfig(BaseModel):
    output_dir: str = "public"
    template_dir: str = "templates"
    site_url: str = ""
    site_title: str = ""
    site_description: str = ""
    site_author: str = ""
    data: dict[str, Any] = Field(default_factory=dict)
    permalink: PermalinkConfig = Field(default_factory=PermalinkConfig)
    taxonomy: TaxonomyConfig = Field(default_factory=TaxonomyConfig)
    wikilink: WikilinkConfig = Field(default_factory=WikilinkConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
