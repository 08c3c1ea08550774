"""Shared test fixtures for chapbook."""

import logging
from datetime import datetime, timezone

import pytest

from chapbook.config.models import ChapbookConfig
from chapbook.document.models import Document


def _make_doc(id_path: str, tags=None, created=None, **fields) -> Document:
    """Build a Document with optional tags in meta."""
    meta = dict(fields.pop("meta", {}))
    if tags is not None:
        meta["tags"] = tags
    if created is not None:
        fields["created"] = created
    return Document(id_path=id_path, meta=meta, **fields)


@pytest.fixture
def sample_config():
    return ChapbookConfig()


@pytest.fixture
def site_docs():
    """Two tagged posts and an untagged page."""
    return [
        _make_doc("posts/a.md", tags=["news"], title="A"),
        _make_doc("posts/b.md", tags=["news", "life"], title="B"),
        _make_doc("pages/about.md", title="About"),
    ]


@pytest.fixture
def dated_docs():
    """Docs created on consecutive days, listed out of order."""
    return [
        _make_doc("b.md", created=datetime(2023, 1, 2, tzinfo=timezone.utc), title="b"),
        _make_doc("c.md", created=datetime(2023, 1, 3, tzinfo=timezone.utc), title="c"),
        _make_doc("a.md", created=datetime(2023, 1, 1, tzinfo=timezone.utc), title="a"),
    ]


@pytest.fixture(autouse=True)
def _reset_root_logger():
    """The CLI installs a root handler; keep it from leaking between tests."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if getattr(handler, "_chapbook", False):
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def make_doc():
    return _make_doc
