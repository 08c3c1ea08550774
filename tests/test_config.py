"""Tests for chapbook.config: models and YAML loader."""

import os
from unittest.mock import patch

import pytest
import yaml
from pydantic import ValidationError

from chapbook.config.loader import DEFAULT_CONFIG_TEMPLATE, _expand_env_vars, load_config
from chapbook.config.models import (
    ChapbookConfig,
    PermalinkConfig,
    TaxonomyConfig,
    WikilinkConfig,
)


# ── ChapbookConfig defaults ─────────────────────────────────────────


class TestChapbookConfigDefaults:
    def test_default_log_level(self, sample_config):
        assert sample_config.log_level == "info"

    def test_default_log_format(self, sample_config):
        assert sample_config.log_format == "text"

    def test_default_dirs(self, sample_config):
        assert sample_config.output_dir == "public"
        assert sample_config.template_dir == "templates"

    def test_default_permalinks(self, sample_config):
        assert sample_config.permalink.post == "{yyyy}/{mm}/{dd}/{slug}/index.html"
        assert sample_config.permalink.page == "{parents}/{slug}/index.html"

    def test_default_taxonomy(self, sample_config):
        assert sample_config.taxonomy.key == "tags"
        assert sample_config.taxonomy.archive_template is None

    def test_default_wikilink(self, sample_config):
        assert sample_config.wikilink.transclude is False
        assert "{output_path}" in sample_config.wikilink.link_template


# ── Validation ──────────────────────────────────────────────────────


class TestValidation:
    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            ChapbookConfig(log_level="verbose")

    def test_invalid_log_format(self):
        with pytest.raises(ValidationError):
            ChapbookConfig(log_format="xml")

    def test_empty_taxonomy_key(self):
        with pytest.raises(ValidationError):
            TaxonomyConfig(key="")

    def test_nested_from_dict(self):
        cfg = ChapbookConfig(permalink={"post": "{slug}.html"}, wikilink={"transclude": True})
        assert isinstance(cfg.permalink, PermalinkConfig)
        assert cfg.permalink.post == "{slug}.html"
        assert cfg.permalink.page == "{parents}/{slug}/index.html"
        assert isinstance(cfg.wikilink, WikilinkConfig)
        assert cfg.wikilink.transclude is True


# ── Loader ──────────────────────────────────────────────────────────


class TestLoadConfig:
    def test_defaults_when_no_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        cfg = load_config()
        assert cfg == ChapbookConfig()

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "site.yaml"
        path.write_text("output_dir: build\ntaxonomy:\n  key: categories\n")
        cfg = load_config(str(path))
        assert cfg.output_dir == "build"
        assert cfg.taxonomy.key == "categories"

    def test_missing_explicit_path(self, tmp_path):
        with pytest.raises(ValueError, match="not found"):
            load_config(str(tmp_path / "nope.yaml"))

    def test_project_local_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "chapbook.yaml").write_text("site_title: Local\n")
        assert load_config().site_title == "Local"

    def test_empty_file_falls_through(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        (tmp_path / "chapbook.yaml").write_text("")
        assert load_config() == ChapbookConfig()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("output_dir: [unclosed\n")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(str(path))

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("log_level: loud\n")
        with pytest.raises(ValueError, match="Invalid config"):
            load_config(str(path))

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="expected a mapping"):
            load_config(str(path))

    def test_env_var_expansion(self, tmp_path):
        path = tmp_path / "site.yaml"
        path.write_text('site_url: "${SITE_URL}"\n')
        with patch.dict(os.environ, {"SITE_URL": "https://example.com"}):
            assert load_config(str(path)).site_url == "https://example.com"


class TestExpandEnvVars:
    def test_nested(self):
        with patch.dict(os.environ, {"A": "1"}):
            assert _expand_env_vars({"x": ["${A}", {"y": "${A}/z"}], "n": 3}) == {
                "x": ["1", {"y": "1/z"}],
                "n": 3,
            }

    def test_unset_var_becomes_empty(self):
        with patch.dict(os.environ, {}, clear=True):
            assert _expand_env_vars("${NOPE}") == ""


class TestDefaultTemplate:
    def test_template_loads_as_default_config(self):
        raw = yaml.safe_load(DEFAULT_CONFIG_TEMPLATE)
        assert ChapbookConfig(**raw) == ChapbookConfig()
