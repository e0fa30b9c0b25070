"""
tests/test_search_aggregator.py

Unit tests for SearchAggregator with in-process fake providers.

Coverage
--------
- Cross-provider URL dedup and rank assignment
- Partial provider failure
- Budget stops further provider calls
- Plan order (free-first and precision-first)
- Unconfigured and throttled providers
- Seen-domain recency filtering, including a failing store
- Brand exclusion by domain and title
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from leadgen.config import SearchSettings
from leadgen.connectors.base import ProviderRequestError, SearchProvider
from leadgen.discovery.aggregator import SearchAggregator
from leadgen.discovery.rate_gate import RateGate
from leadgen.domain.search import SearchResult
from leadgen.storage.base import SeenDomainStore
from leadgen.storage.memory import InMemorySeenDomainStore

SETTINGS = SearchSettings(rate_limit_per_window=1000, max_wait_seconds=0.0)


class BrokenSeenStore(SeenDomainStore):
    def was_seen_within(self, domain: str, window: timedelta, now: datetime | None = None) -> bool:
        raise OperationalError("SELECT seen_domains", {}, Exception("db down"))

    def mark_seen(self, domains: Iterable[str], now: datetime | None = None) -> int:
        raise OperationalError("INSERT seen_domains", {}, Exception("db down"))


class StaticProvider(SearchProvider):
    def __init__(
        self,
        provider_id: str,
        hits: list[tuple[str, str]] | None = None,
        *,
        error: Exception | None = None,
        configured: bool = True,
    ) -> None:
        super().__init__(settings=SETTINGS)
        self.provider_id = provider_id
        self._hits = hits or []
        self._error = error
        self._configured = configured
        self.calls: list[tuple[str, int]] = []

    def is_configured(self) -> bool:
        return self._configured

    def _search(self, query: str, limit: int) -> list[SearchResult]:
        self.calls.append((query, limit))
        if self._error is not None:
            raise self._error
        results = [self._build_result(url=url, title=title, query=query) for url, title in self._hits]
        return [result for result in results if result is not None]


def _aggregator(*providers: SearchProvider, settings: SearchSettings = SETTINGS, **kwargs) -> SearchAggregator:
    return SearchAggregator(providers=providers, settings=settings, sleep=lambda _seconds: None, **kwargs)


# ---------------------------------------------------------------------------
# Merge and dedup
# ---------------------------------------------------------------------------


class TestMerge:
    def test_duplicate_url_across_providers_is_kept_once(self) -> None:
        first = StaticProvider("serper", [("https://a.com/x", "A")])
        second = StaticProvider("brave", [("https://a.com/x/", "A again"), ("https://b.com", "B")])

        results = _aggregator(first, second).discover("stretch wrap wholesale", budget=10)

        assert [r.url for r in results] == ["https://a.com/x", "https://b.com/"]
        assert [r.rank for r in results] == [1, 2]
        assert results[0].source_provider_id == "serper"
        assert results[0].title == "A"

    def test_scores_descend_with_rank(self) -> None:
        provider = StaticProvider(
            "serper",
            [("https://a.com/1", ""), ("https://a.com/2", ""), ("https://b.com/", "")],
        )
        results = _aggregator(provider).discover("q", budget=10)
        scores = [r.score for r in results]
        assert scores[0] > scores[1]
        # Novelty bonus lifts the first hit from a new domain.
        assert scores[2] > scores[1]

    def test_blank_queries_are_skipped(self) -> None:
        provider = StaticProvider("serper", [("https://a.com/", "")])
        assert _aggregator(provider).discover(["", "   "], budget=5) == []
        assert provider.calls == []


# ---------------------------------------------------------------------------
# Failure handling and budget
# ---------------------------------------------------------------------------


class TestFailuresAndBudget:
    def test_failing_provider_does_not_abort_discovery(self) -> None:
        broken = StaticProvider("serper", error=ProviderRequestError("serper: HTTP 500."))
        healthy = StaticProvider("brave", [("https://b.com/", "B")])

        results = _aggregator(broken, healthy).discover("q", budget=5)

        assert [r.url for r in results] == ["https://b.com/"]
        assert len(broken.calls) == 1

    def test_unexpected_exception_is_contained(self) -> None:
        broken = StaticProvider("serper", error=KeyError("organic"))
        assert _aggregator(broken).discover("q", budget=5) == []

    def test_budget_stops_later_providers(self) -> None:
        first = StaticProvider("serper", [("https://a.com/", ""), ("https://b.com/", "")])
        second = StaticProvider("brave", [("https://c.com/", "")])

        results = _aggregator(first, second).discover(["q1", "q2"], budget=2)

        assert len(results) == 2
        assert second.calls == []
        assert first.calls == [("q1", 2)]

    def test_limit_passed_to_provider_shrinks_with_remaining_budget(self) -> None:
        first = StaticProvider("serper", [("https://a.com/", "")])
        second = StaticProvider("brave", [("https://b.com/", "")])
        _aggregator(first, second).discover("q", budget=4)
        assert first.calls == [("q", 4)]
        assert second.calls == [("q", 3)]


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


class TestPlan:
    def test_free_first_order(self) -> None:
        aggregator = _aggregator(
            StaticProvider("bing"), StaticProvider("serper"), StaticProvider("common_crawl"), StaticProvider("custom")
        )
        assert aggregator.plan() == ["common_crawl", "serper", "bing", "custom"]

    def test_precision_first_order(self) -> None:
        settings = SearchSettings(free_first=False, rate_limit_per_window=1000, max_wait_seconds=0.0)
        aggregator = _aggregator(StaticProvider("serper"), StaticProvider("bing"), settings=settings)
        assert aggregator.plan() == ["bing", "serper"]

    def test_unconfigured_provider_is_never_called(self) -> None:
        offline = StaticProvider("serper", [("https://a.com/", "")], configured=False)
        online = StaticProvider("brave", [("https://b.com/", "")])
        results = _aggregator(offline, online).discover("q", budget=5)
        assert [r.domain for r in results] == ["b.com"]
        assert offline.calls == []

    def test_throttled_provider_is_skipped(self) -> None:
        settings = SearchSettings(rate_limit_per_window=1, rate_window_ms=60_000, max_wait_seconds=0.0)
        provider = StaticProvider("serper", [("https://a.com/", "")])
        aggregator = _aggregator(provider, settings=settings, rate_gate=RateGate(clock_ms=lambda: 0))

        aggregator.discover(["q1", "q2"], budget=5)

        assert [query for query, _limit in provider.calls] == ["q1"]


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


class TestFiltering:
    def test_recently_seen_domains_are_skipped(self) -> None:
        store = InMemorySeenDomainStore()
        store.mark_seen(["b.com"], now=datetime.now(timezone.utc) - timedelta(hours=2))
        provider = StaticProvider("serper", [("https://a.com/", ""), ("https://www.b.com/about", "")])

        results = _aggregator(provider, seen_store=store, recency_window=timedelta(days=1)).discover("q", budget=5)

        assert [r.domain for r in results] == ["a.com"]

    def test_seen_domains_outside_window_are_kept(self) -> None:
        store = InMemorySeenDomainStore()
        store.mark_seen(["b.com"], now=datetime.now(timezone.utc) - timedelta(days=30))
        provider = StaticProvider("serper", [("https://b.com/", "")])

        results = _aggregator(provider, seen_store=store, recency_window=timedelta(days=1)).discover("q", budget=5)

        assert [r.domain for r in results] == ["b.com"]

    @pytest.mark.parametrize(
        "url,title",
        [("https://www.uline.com/boxes", "Boxes"), ("https://reseller.com/", "Uline boxes in stock")],
    )
    def test_excluded_brands_match_domain_or_title(self, url: str, title: str) -> None:
        provider = StaticProvider("serper", [(url, title), ("https://small.co/", "Small Co")])
        results = _aggregator(provider).discover("q", budget=5, exclude_brands=["ULINE"])
        assert [r.domain for r in results] == ["small.co"]

    def test_constructor_brands_apply_to_every_call(self) -> None:
        provider = StaticProvider("serper", [("https://uline.com/", ""), ("https://small.co/", "")])
        aggregator = _aggregator(provider, exclude_brands=["uline"])
        assert [r.domain for r in aggregator.discover("q", budget=5)] == ["small.co"]

    def test_failing_seen_store_keeps_results(self) -> None:
        provider = StaticProvider("serper", [("https://a.com/", ""), ("https://b.com/", "")])
        aggregator = _aggregator(provider, seen_store=BrokenSeenStore(), recency_window=timedelta(days=1))

        results = aggregator.discover("q", budget=5)

        assert [r.domain for r in results] == ["a.com", "b.com"]
