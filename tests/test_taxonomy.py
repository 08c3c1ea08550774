"""Tests for tag indexing, related lookups, and archive generation."""

import json
import logging

from chapbook.pipeline import DocStream
from chapbook.transform.taxonomy import (
    RelatedFromIndex,
    add_related,
    generate_tag_archives,
    generate_tag_index_doc,
    get_terms,
    index_by_tag,
    related_stubs,
)


def _ids(items):
    return [item.id_path for item in items]


class TestGetTerms:
    def test_normalizes_and_dedupes(self, make_doc):
        doc = make_doc("a.md", tags=["News", "news", " Rust Lang!", "rust lang"])
        assert get_terms(doc) == ["news", "rust_lang"]

    def test_numbers_kept_other_values_skipped(self, make_doc):
        doc = make_doc("a.md", tags=[2023, True, None, {"x": 1}, ["nested"], "ok"])
        assert get_terms(doc) == ["2023", "ok"]

    def test_missing_or_non_array(self, make_doc):
        assert get_terms(make_doc("a.md")) is None
        assert get_terms(make_doc("a.md", tags="news")) is None

    def test_custom_key(self, make_doc):
        doc = make_doc("a.md", meta={"series": ["Intro"]})
        assert get_terms(doc, "series") == ["intro"]


class TestIndexByTag:
    def test_buckets_in_input_order(self, site_docs):
        index = index_by_tag(site_docs)
        assert set(index) == {"news", "life"}
        assert _ids(index["news"]) == ["posts/a.md", "posts/b.md"]
        assert _ids(index["life"]) == ["posts/b.md"]

    def test_duplicate_terms_fan_out_once(self, make_doc):
        index = index_by_tag([make_doc("a.md", tags=["x", "X", "x "])])
        assert _ids(index["x"]) == ["a.md"]

    def test_logs_summary(self, site_docs, caplog):
        with caplog.at_level(logging.DEBUG, logger="chapbook.transform.taxonomy"):
            index_by_tag(site_docs)
        assert "indexed 3 docs into 2" in caplog.text


class TestRelated:
    def _abc(self, make_doc):
        return [
            make_doc("A.md", tags=["x", "y"]),
            make_doc("B.md", tags=["y"]),
            make_doc("C.md", tags=["z"]),
        ]

    def test_union_excludes_self(self, make_doc):
        a, b, c = self._abc(make_doc)
        index = index_by_tag([a, b, c])
        assert _ids(related_stubs(index, get_terms(a), exclude_id_path=a.id_path)) == ["B.md"]
        assert related_stubs(index, get_terms(c), exclude_id_path=c.id_path) == []

    def test_union_dedupes_across_terms(self, make_doc):
        docs = [make_doc("a.md", tags=["x", "y"]), make_doc("b.md", tags=["x", "y"])]
        index = index_by_tag(docs)
        assert _ids(related_stubs(index, ["x", "y"])) == ["a.md", "b.md"]

    def test_order_follows_terms(self, make_doc):
        docs = [make_doc("a.md", tags=["y"]), make_doc("b.md", tags=["x"])]
        index = index_by_tag(docs)
        assert _ids(related_stubs(index, ["x", "y"])) == ["b.md", "a.md"]

    def test_add_related_sets_meta(self, make_doc):
        result = list(add_related(self._abc(make_doc)))
        assert [r["id_path"] for r in result[0].meta["related"]] == ["B.md"]
        assert [r["id_path"] for r in result[1].meta["related"]] == ["A.md"]
        assert result[2].meta["related"] == []

    def test_add_related_skips_untagged(self, site_docs):
        about = list(add_related(site_docs))[2]
        assert "related" not in about.meta

    def test_related_from_index_transform(self, make_doc):
        a, b, c = self._abc(make_doc)
        enrich = RelatedFromIndex(index_by_tag([a, b, c]))
        assert [r["id_path"] for r in enrich(b).meta["related"]] == ["A.md"]

    def test_stream_add_related(self, site_docs):
        docs = DocStream(site_docs).add_related().materialize()
        assert [r["id_path"] for r in docs[0].meta["related"]] == ["posts/b.md"]


class TestArchives:
    def test_one_archive_per_term(self, site_docs):
        archives = {doc.meta["term"]: doc for doc in generate_tag_archives(site_docs)}
        assert set(archives) == {"news", "life"}

        news = archives["news"]
        assert news.id_path == "tags/news/index.html"
        assert news.output_path == "tags/news/index.html"
        assert news.title == "news"
        assert news.meta["taxonomy"] == "tags"
        assert [item["id_path"] for item in news.meta["items"]] == ["posts/a.md", "posts/b.md"]

    def test_custom_path_and_template(self, site_docs):
        archives = list(
            generate_tag_archives(
                site_docs, "tags", "topics/{term}.html", template_ref="archive.html"
            )
        )
        assert archives[0].id_path == "topics/news.html"
        assert archives[0].template_ref == "archive.html"

    def test_no_tags_no_archives(self, make_doc):
        assert list(generate_tag_archives([make_doc("a.md")])) == []

    def test_tag_index_doc(self, site_docs):
        doc = generate_tag_index_doc(site_docs, "tags", "data/tags.json")
        assert doc.id_path == "data/tags.json"
        data = json.loads(doc.content)
        assert [s["id_path"] for s in data["news"]] == ["posts/a.md", "posts/b.md"]
        assert [s["id_path"] for s in data["life"]] == ["posts/b.md"]
