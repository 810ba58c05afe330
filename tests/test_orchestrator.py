"""Unit tests for orchestrator.py (end-to-end replacement with stubs)."""

from __future__ import annotations

import httpx
import pytest

from imgreplace_claude.articles import IntercomArticleStore, NotFoundError, PersistError
from imgreplace_claude.fetcher import RetrievalError
from imgreplace_claude.models import ComparisonUsage
from imgreplace_claude.orchestrator import (
    MSG_NO_IMAGES,
    MSG_NO_MATCHES,
    ReplacementOrchestrator,
    ReplacementSummary,
)
from tests.conftest import FakeStore, StubFetcher, StubOracle, img

_A = "https://x/a.png"
_B = "https://x/b.png"
_OLD = "https://old/logo.png"
_NEW = "https://new/logo.png"


def _run(store, fetcher, oracle=None, article_id="1", **kwargs) -> ReplacementSummary:
    orchestrator = ReplacementOrchestrator(
        store, fetcher, oracle or StubOracle(), **kwargs,
    )
    return orchestrator.run(article_id, _OLD, _NEW)


def _assert_invariants(summary: ReplacementSummary) -> None:
    assert summary.matches_found <= summary.images_found
    assert (summary.replacements == 0) == (summary.matches_found == 0)


class TestReplacementSummary:
    """Tests for ReplacementSummary."""

    def test_details(self):
        summary = ReplacementSummary(
            success=True, message="ok", images_found=2, matches_found=1, replacements=3,
        )
        assert summary.details == "Images found: 2 | Matches: 1 | Replaced: 3"


class TestReplacementOrchestrator:
    """Tests for ReplacementOrchestrator.run()."""

    def test_one_of_two_images_matches(self):
        """Only a.png is equivalent: it is replaced, b.png is untouched."""
        body = img(_A) + img(_B)
        store = FakeStore({"1": body})
        fetcher = StubFetcher({_OLD: b"logo", _A: b"logo", _B: b"other"})

        summary = _run(store, fetcher)

        assert summary.success is True
        assert summary.images_found == 2
        assert summary.matches_found == 1
        assert summary.replacements == 1
        assert summary.message == "Successfully replaced 1 image occurrences"
        assert summary.matched_references == [_A]
        assert store.updates == [("1", img(_NEW) + img(_B))]
        _assert_invariants(summary)

    def test_nothing_matches(self):
        body = img(_A) + img(_B)
        store = FakeStore({"1": body})
        fetcher = StubFetcher({_OLD: b"logo", _A: b"x", _B: b"y"})

        summary = _run(store, fetcher)

        assert summary.success is False
        assert summary.message == MSG_NO_MATCHES
        assert summary.images_found == 2
        assert summary.matches_found == 0
        assert summary.replacements == 0
        assert store.updates == []
        assert store.articles["1"] == body
        _assert_invariants(summary)

    def test_no_images_short_circuits(self):
        """No references: no fetches and no oracle calls."""
        store = FakeStore({"1": "<p>text only</p>"})
        fetcher = StubFetcher({_OLD: b"logo"})
        oracle = StubOracle()

        summary = _run(store, fetcher, oracle)

        assert summary.success is False
        assert summary.message == MSG_NO_IMAGES
        assert summary.images_found == 0
        assert summary.matches_found == 0
        assert summary.replacements == 0
        assert fetcher.calls == []
        assert oracle.calls == []
        assert store.updates == []
        _assert_invariants(summary)

    def test_repeated_reference_counts_all_occurrences(self):
        """a.png three times and b.png once; only a.png matches."""
        body = img(_A) + img(_B) + img(_A) + img(_A)
        store = FakeStore({"1": body})
        fetcher = StubFetcher({_OLD: b"logo", _A: b"logo", _B: b"other"})

        summary = _run(store, fetcher)

        assert summary.images_found == 2
        assert summary.matches_found == 1
        assert summary.replacements == 3
        assert store.articles["1"] == img(_NEW) + img(_B) + img(_NEW) + img(_NEW)

    def test_two_references_match(self):
        body = img(_A) + img(_A) + img(_B)
        store = FakeStore({"1": body})
        fetcher = StubFetcher({_OLD: b"logo", _A: b"logo", _B: b"logo"})

        summary = _run(store, fetcher)

        assert summary.matches_found == 2
        assert summary.replacements == 3
        assert summary.matched_references == [_A, _B]

    def test_target_fetched_once(self):
        store = FakeStore({"1": img(_A) + img(_B)})
        fetcher = StubFetcher({_OLD: b"logo", _A: b"logo", _B: b"other"})

        _run(store, fetcher)

        assert fetcher.calls == [_OLD, _A, _B]

    def test_failed_candidate_reported(self):
        c = "https://x/c.png"
        store = FakeStore({"1": img(_A) + img("https://x/gone.png") + img(c)})
        fetcher = StubFetcher({_OLD: b"logo", _A: b"logo", c: b"nope"})

        summary = _run(store, fetcher)

        assert summary.success is True
        assert summary.images_found == 3
        assert summary.matches_found == 1
        assert summary.failed_references == ["https://x/gone.png"]

    def test_article_not_found_propagates(self):
        with pytest.raises(NotFoundError):
            _run(FakeStore(), StubFetcher({}))

    def test_store_unavailable_raises_not_found(self):
        client = httpx.Client(
            transport=httpx.MockTransport(lambda request: httpx.Response(503)),
        )
        store = IntercomArticleStore("tok", http_client=client)
        fetcher = StubFetcher({})

        with pytest.raises(NotFoundError) as exc_info:
            _run(store, fetcher)
        assert exc_info.value.status_code == 503
        assert fetcher.calls == []

    def test_new_reference_already_in_article(self):
        """An equivalent copy of the new image is replaced once, not twice."""
        store = FakeStore({"1": img(_A) + img(_NEW)})
        fetcher = StubFetcher({_OLD: b"logo", _A: b"logo", _NEW: b"logo"})

        summary = _run(store, fetcher)

        assert summary.matches_found == 2
        assert summary.replacements == 2
        assert store.articles["1"] == img(_NEW) + img(_NEW)

    def test_target_fetch_failure_propagates(self):
        store = FakeStore({"1": img(_A)})
        fetcher = StubFetcher({_A: b"logo"})

        with pytest.raises(RetrievalError) as exc_info:
            _run(store, fetcher)
        assert exc_info.value.reference == _OLD
        assert store.updates == []

    def test_persist_failure_propagates_without_partial_write(self):
        body = img(_A)
        store = FakeStore({"1": body}, fail_update=True)
        fetcher = StubFetcher({_OLD: b"logo", _A: b"logo"})

        with pytest.raises(PersistError):
            _run(store, fetcher)
        assert store.articles["1"] == body

    def test_dry_run_does_not_persist(self):
        body = img(_A) + img(_B)
        store = FakeStore({"1": body})
        fetcher = StubFetcher({_OLD: b"logo", _A: b"logo", _B: b"other"})

        summary = _run(store, fetcher, dry_run=True)

        assert summary.success is False
        assert summary.matches_found == 1
        assert summary.replacements == 1
        assert summary.message.startswith("Dry run")
        assert store.updates == []
        _assert_invariants(summary)

    def test_parallel_matches_sequential(self):
        refs = [f"https://x/{i}.png" for i in range(6)]
        body = "".join(img(r) for r in refs)
        images = {_OLD: b"logo"}
        images.update({r: (b"logo" if i % 2 == 0 else b"no") for i, r in enumerate(refs)})

        sequential = _run(FakeStore({"1": body}), StubFetcher(images))
        parallel = _run(FakeStore({"1": body}), StubFetcher(images), max_workers=4)

        assert parallel.matched_references == sequential.matched_references
        assert parallel.replacements == sequential.replacements == 3

    def test_usage_attached_when_oracle_reports_it(self):
        class CountingOracle(StubOracle):
            def __init__(self):
                super().__init__()
                self.usage = ComparisonUsage()

        store = FakeStore({"1": img(_A)})
        fetcher = StubFetcher({_OLD: b"logo", _A: b"logo"})
        oracle = CountingOracle()

        summary = _run(store, fetcher, oracle)

        assert summary.usage is oracle.usage

    def test_usage_none_for_plain_oracle(self):
        store = FakeStore({"1": "<p/>"})
        assert _run(store, StubFetcher({})).usage is None
