"""
leadgen/discovery/aggregator.py

Multi-provider search aggregation with budget, dedup and scoring.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import timedelta

from leadgen.config import SearchSettings
from leadgen.connectors.base import SearchProvider
from leadgen.discovery.rate_gate import RateGate, acquire_slot
from leadgen.domain.search import SearchResult
from leadgen.logging_utils import log_event
from leadgen.storage.base import SeenDomainStore
from leadgen.urls import domain_of, normalize_url

logger = logging.getLogger(__name__)

FREE_FIRST_PLAN: tuple[str, ...] = ("common_crawl", "serper", "brave", "google_cse", "bing")
NOVELTY_BONUS = 0.25


class SearchAggregator:
    """
    Queries providers in plan order and merges their results.

    Providers are called strictly sequentially in plan order for each query,
    stopping once `budget` unique results exist. Every provider failure is
    logged and treated as an empty result; `discover` never raises.
    """

    def __init__(
        self,
        *,
        providers: Sequence[SearchProvider],
        settings: SearchSettings,
        rate_gate: RateGate | None = None,
        seen_store: SeenDomainStore | None = None,
        recency_window: timedelta = timedelta(0),
        exclude_brands: Sequence[str] = (),
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._providers = {provider.provider_id: provider for provider in providers}
        self._settings = settings
        self._rate_gate = rate_gate or RateGate()
        self._seen_store = seen_store
        self._recency_window = recency_window
        self._exclude_brands = tuple(brand.strip().lower() for brand in exclude_brands if brand.strip())
        self._sleep = sleep

    def plan(self) -> list[str]:
        """
        Return provider ids in call order: free-tier first, or reversed in
        precision-first mode. Providers outside the known plan go last.
        """

        order = list(FREE_FIRST_PLAN) if self._settings.free_first else list(reversed(FREE_FIRST_PLAN))
        known = [provider_id for provider_id in order if provider_id in self._providers]
        extra = sorted(provider_id for provider_id in self._providers if provider_id not in FREE_FIRST_PLAN)
        return known + extra

    def discover(
        self,
        queries: str | Sequence[str],
        budget: int,
        *,
        exclude_brands: Sequence[str] = (),
    ) -> list[SearchResult]:
        """
        Return at most `budget` deduplicated, ranked results for `queries`.

        `exclude_brands` extends the brands configured on the aggregator for
        this call only.
        """

        query_list = [queries] if isinstance(queries, str) else list(queries)
        want = max(1, int(budget))
        plan = self.plan()
        brands = self._exclude_brands + tuple(
            brand.strip().lower() for brand in exclude_brands if brand.strip()
        )

        collected: list[SearchResult] = []
        seen_urls: set[str] = set()
        skipped_domains: set[str] = set()
        provider_failures = 0

        for query in query_list:
            if len(collected) >= want:
                break
            if not query or not query.strip():
                continue

            for provider_id in plan:
                if len(collected) >= want:
                    break
                batch = self._call_provider(provider_id, query, want - len(collected))
                if batch is None:
                    provider_failures += 1
                    continue

                for result in batch:
                    if len(collected) >= want:
                        break
                    key = normalize_url(result.url)
                    if not key or key in seen_urls:
                        continue
                    seen_urls.add(key)
                    domain = domain_of(key)
                    if domain in skipped_domains or self._should_skip(domain, result, brands):
                        skipped_domains.add(domain)
                        continue
                    collected.append(replace(result, url=key))

        ranked = self._rank(collected, want)
        log_event(
            logger,
            logging.INFO,
            "search_discovery_completed",
            queries=len(query_list),
            budget=want,
            results=len(ranked),
            provider_failures=provider_failures,
            skipped_domains=len(skipped_domains),
        )
        return ranked

    def _call_provider(self, provider_id: str, query: str, remaining: int) -> list[SearchResult] | None:
        """
        Return the provider's results, [] when throttled, or None on failure.
        """

        provider = self._providers[provider_id]
        if not provider.is_configured():
            return []

        admitted = acquire_slot(
            self._rate_gate,
            f"search:{provider_id}",
            max_per_window=self._settings.rate_limit_per_window,
            window_ms=self._settings.rate_window_ms,
            max_wait_seconds=self._settings.max_wait_seconds,
            sleep=self._sleep,
        )
        if not admitted:
            log_event(logger, logging.WARNING, "search_provider_throttled", provider=provider_id, query=query)
            return []

        limit = min(remaining, self._settings.results_per_call)
        try:
            return provider.search(query, limit)
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "search_provider_failed",
                provider=provider_id,
                query=query,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return None

    def _should_skip(self, domain: str, result: SearchResult, brands: tuple[str, ...]) -> bool:
        if not domain:
            return True
        if brands:
            title = result.title.lower()
            if any(brand in domain or brand in title for brand in brands):
                return True
        if self._seen_store is not None and self._recency_window > timedelta(0):
            try:
                return self._seen_store.was_seen_within(domain, self._recency_window)
            except Exception as exc:
                log_event(
                    logger,
                    logging.WARNING,
                    "seen_store_lookup_failed",
                    domain=domain,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
        return False

    @staticmethod
    def _rank(results: list[SearchResult], want: int) -> list[SearchResult]:
        ranked: list[SearchResult] = []
        seen_domains: set[str] = set()
        for index, result in enumerate(results):
            domain = domain_of(result.url)
            novelty = NOVELTY_BONUS if domain not in seen_domains else 0.0
            seen_domains.add(domain)
            score = (want - index) / want + novelty
            ranked.append(replace(result, rank=index + 1, score=round(score, 6)))
        return ranked
