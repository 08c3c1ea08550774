"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import ChapbookConfig

CONFIG_FILENAME = "chapbook.yaml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")


def config_search_path(cli_path: str | None = None) -> list[Path]:
    """Candidate config files, highest priority first."""
    if cli_path:
        path = Path(cli_path)
        if not path.exists():
            raise ValueError(f"Config file not found: {cli_path}")
        return [path]
    return [Path(".") / CONFIG_FILENAME, Path.home() / ".chapbook" / "config.yaml"]


def _read_config_file(path: Path) -> ChapbookConfig | None:
    """Parse one config file. An empty file yields None so the search moves on."""
    try:
        raw = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid config in {path}: expected a mapping")
    try:
        return ChapbookConfig(**_expand_env_vars(raw))
    except ValidationError as e:
        raise ValueError(f"Invalid config in {path}: {e}") from e


def load_config(cli_path: str | None = None) -> ChapbookConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults.

    A missing explicit path is an error. Absent or empty files are skipped.
    """
    for path in config_search_path(cli_path):
        if not path.exists():
            continue
        config = _read_config_file(path)
        if config is not None:
            return config
    return ChapbookConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings. Unset vars become ""."""
    if isinstance(obj, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `chapbook config init`
DEFAULT_CONFIG_TEMPLATE = """\
# chapbook.yaml

output_dir: "public"
template_dir: "templates"

site_url: ""                   # e.g. https://example.com, used to absolutize links
site_title: ""
site_description: ""
site_author: ""

# Extra data exposed to templates as `data`
data: {}

# Permalink templates. Tokens: {name} {stem} {slug} {ext} {parents}
# {parent} {yyyy} {yy} {mm} {dd}. Unknown tokens are left as-is.
permalink:
  post: "{yyyy}/{mm}/{dd}/{slug}/index.html"
  page: "{parents}/{slug}/index.html"

# Tag indexing and archive pages
taxonomy:
  key: "tags"
  archive_path: "{taxonomy}/{term}/index.html"
  # archive_template: "archive.html"

# Wikilink rendering. Tokens: {output_path} {title} {summary} {text} {slug}
wikilink:
  link_template: '<a class="wikilink" href="{output_path}">{text}</a>'
  nolink_template: '<span class="nolink">{text}</span>'
  transclude: false

# Logging (written to stderr)
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
