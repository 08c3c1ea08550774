"""Tests for lazy streams, stream combinators, and error policies."""

import logging
from datetime import datetime, timezone

import pytest

from chapbook.document.models import Document
from chapbook.errors import ChapbookError, ParseError, PipelineValueError
from chapbook.pipeline import (
    DocResult,
    DocStream,
    ResultStream,
    SortKey,
    attempt,
    dedupe,
    dump_errors,
    fail_fast,
    filter_matching,
    lift,
    most_recent,
    remove_drafts,
    remove_index,
    remove_with_id_path,
    sort_by,
)


def _ids(docs):
    return [doc.id_path for doc in docs]


def _fails_on(id_path):
    def _transform(doc):
        if doc.id_path == id_path:
            raise ParseError("boom", id_path=doc.id_path)
        return doc.model_copy(update={"title": "done"})

    return _transform


class TestFilters:
    def test_remove_with_id_path(self):
        docs = [Document(id_path="a.md"), Document(id_path="b.md")]
        assert _ids(remove_with_id_path(docs, "a.md")) == ["b.md"]

    def test_filter_matching(self):
        docs = [Document(id_path=p) for p in ["posts/a.md", "posts/b.txt", "pages/c.md"]]
        assert _ids(filter_matching(docs, "posts/*.md")) == ["posts/a.md"]

    def test_filter_matching_star_crosses_dirs(self):
        docs = [Document(id_path="posts/2023/a.md")]
        assert _ids(filter_matching(docs, "posts/*.md")) == ["posts/2023/a.md"]

    def test_filter_matching_is_case_sensitive(self):
        docs = [Document(id_path="Posts/a.md")]
        assert _ids(filter_matching(docs, "posts/*")) == []

    def test_filter_matching_character_class(self):
        docs = [Document(id_path=p) for p in ["a1.md", "b1.md"]]
        assert _ids(filter_matching(docs, "[a]1.md")) == ["a1.md"]

    @pytest.mark.parametrize("pattern", ["", "posts/[abc.md"])
    def test_malformed_glob_raises(self, pattern):
        with pytest.raises(PipelineValueError):
            filter_matching([], pattern)

    def test_remove_drafts(self):
        docs = [Document(id_path=p) for p in ["posts/_draft.md", "posts/live.md"]]
        assert _ids(remove_drafts(docs)) == ["posts/live.md"]

    def test_remove_index(self):
        docs = [Document(id_path=p) for p in ["posts/index.md", "posts/a.md"]]
        assert _ids(remove_index(docs)) == ["posts/a.md"]


class TestDedupe:
    def test_keeps_first_occurrence_in_place(self):
        docs = [
            Document(id_path="a.md", title="first"),
            Document(id_path="b.md"),
            Document(id_path="a.md", title="second"),
            Document(id_path="c.md"),
            Document(id_path="a.md", title="third"),
        ]
        result = list(dedupe(docs))
        assert _ids(result) == ["a.md", "b.md", "c.md"]
        assert result[0].title == "first"

    def test_streams(self):
        def _gen():
            yield Document(id_path="a.md")
            raise AssertionError("pulled too far")

        assert next(dedupe(_gen())).id_path == "a.md"


class TestSort:
    def test_sort_by_created(self, dated_docs):
        assert _ids(sort_by(dated_docs, "created")) == ["a.md", "b.md", "c.md"]

    def test_sort_descending(self, dated_docs):
        result = sort_by(dated_docs, SortKey.created, ascending=False)
        assert _ids(result) == ["c.md", "b.md", "a.md"]

    def test_sort_is_stable(self):
        docs = [
            Document(id_path="1.md", title="same"),
            Document(id_path="2.md", title="other"),
            Document(id_path="3.md", title="same"),
            Document(id_path="4.md", title="same"),
        ]
        assert _ids(sort_by(docs, "title")) == ["2.md", "1.md", "3.md", "4.md"]
        assert _ids(sort_by(docs, "title", ascending=False)) == ["1.md", "3.md", "4.md", "2.md"]

    def test_unknown_key_raises_eagerly(self):
        with pytest.raises(PipelineValueError):
            sort_by([], "weight")

    def test_most_recent(self, dated_docs):
        assert _ids(most_recent(dated_docs, 2)) == ["c.md", "b.md"]

    def test_most_recent_more_than_available(self, dated_docs):
        assert len(list(most_recent(dated_docs, 10))) == 3

    def test_most_recent_zero(self, dated_docs):
        assert list(most_recent(dated_docs, 0)) == []

    def test_most_recent_negative(self):
        with pytest.raises(PipelineValueError):
            most_recent([], -1)

    def test_take_negative(self):
        with pytest.raises(PipelineValueError):
            DocStream([]).take(-1)


class TestResults:
    def test_ok_and_err(self):
        doc = Document(id_path="a.md")
        assert DocResult.ok(doc).unwrap() is doc
        err = DocResult.err(ParseError("bad", id_path="a.md"))
        assert not err.is_ok
        assert err.id_path == "a.md"
        with pytest.raises(ParseError):
            err.unwrap()

    def test_lift(self):
        result = lift(lambda d: d.set_output_path("x.html"))(Document(id_path="a.md"))
        assert result.unwrap().output_path == "x.html"

    def test_attempt_captures_chapbook_errors(self):
        result = attempt(_fails_on("a.md"))(Document(id_path="a.md"))
        assert isinstance(result.error, ParseError)

    def test_attempt_lets_bugs_propagate(self):
        def _buggy(doc):
            raise KeyError("oops")

        with pytest.raises(KeyError):
            attempt(_buggy)(Document(id_path="a.md"))

    def test_dump_errors_logs_and_drops(self, caplog):
        docs = [Document(id_path=p) for p in ["a.md", "b.md", "c.md"]]
        results = (attempt(_fails_on("b.md"))(d) for d in docs)
        with caplog.at_level(logging.ERROR):
            kept = list(dump_errors(results))
        assert _ids(kept) == ["a.md", "c.md"]
        assert "b.md" in caplog.text

    def test_fail_fast_raises_first_error(self):
        docs = [Document(id_path=p) for p in ["a.md", "b.md", "c.md"]]
        results = (attempt(_fails_on("b.md"))(d) for d in docs)
        stream = fail_fast(results)
        assert next(stream).id_path == "a.md"
        with pytest.raises(ParseError) as exc_info:
            next(stream)
        assert exc_info.value.id_path == "b.md"

    def test_error_keeps_cause(self):
        cause = ValueError("inner")
        err = ParseError("outer", id_path="a.md", cause=cause)
        assert err.__cause__ is cause
        assert str(err) == "a.md: outer (inner)"
        assert isinstance(err, ChapbookError)


class TestDocStream:
    def test_is_lazy(self):
        pulled = []

        def _source():
            for p in ["a.md", "b.md", "c.md"]:
                pulled.append(p)
                yield Document(id_path=p)

        stream = DocStream(_source()).map(lambda d: d.set_extension("html")).take(1)
        assert pulled == []
        assert _ids(stream) == ["a.md"]
        assert pulled == ["a.md"]

    def test_chain_of_stages(self):
        docs = [
            Document(id_path="posts/_draft.md"),
            Document(id_path="posts/a.md"),
            Document(id_path="posts/a.md"),
            Document(id_path="posts/index.md"),
        ]
        result = (
            DocStream(docs)
            .remove_drafts()
            .remove_index()
            .dedupe()
            .set_extension("html")
            .materialize()
        )
        assert [d.output_path for d in result] == ["posts/a.html"]

    def test_filter_and_chain(self):
        stream = DocStream([Document(id_path="a.md")]).chain([Document(id_path="b.md")])
        assert _ids(stream.filter(lambda d: d.id_path != "a.md")) == ["b.md"]

    def test_try_map_then_policy(self, caplog):
        docs = [Document(id_path=p) for p in ["a.md", "b.md"]]
        result = DocStream(docs).try_map(_fails_on("a.md")).dump_errors().materialize()
        assert _ids(result) == ["b.md"]
        assert result[0].title == "done"

    def test_result_stream_and_then_passes_errors_through(self):
        docs = [Document(id_path=p) for p in ["a.md", "b.md"]]
        results = list(
            DocStream(docs)
            .try_map(_fails_on("a.md"))
            .try_map(lambda d: d.set_output_path("out.html"))
        )
        assert not results[0].is_ok
        assert results[1].unwrap().output_path == "out.html"

    def test_result_stream_fail_fast(self):
        stream = ResultStream([DocResult.err(ParseError("bad", id_path="x.md"))]).fail_fast()
        with pytest.raises(ParseError):
            stream.materialize()

    def test_sort_and_most_recent(self, dated_docs):
        assert _ids(DocStream(dated_docs).sort_by("title")) == ["a.md", "b.md", "c.md"]
        assert _ids(DocStream(dated_docs).most_recent(1)) == ["c.md"]

    def test_auto_summary_and_template(self):
        doc = DocStream([Document(id_path="posts/a.md", content="First. Second.")])
        result = doc.auto_summary().auto_template().materialize()[0]
        assert result.summary == "First. Second."
        assert result.template_ref == "posts.html"

    def test_filter_matching_and_remove(self):
        docs = [Document(id_path=p) for p in ["posts/a.md", "posts/b.md", "c.md"]]
        stream = DocStream(docs).filter_matching("posts/*").remove_with_id_path("posts/b.md")
        assert _ids(stream) == ["posts/a.md"]

    def test_most_recent_uses_created_not_input_order(self):
        docs = [
            Document(id_path="old.md", created=datetime(2020, 1, 1, tzinfo=timezone.utc)),
            Document(id_path="new.md", created=datetime(2024, 1, 1, tzinfo=timezone.utc)),
        ]
        assert _ids(DocStream(docs).most_recent(1)) == ["new.md"]
