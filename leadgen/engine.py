"""
Lead discovery engine: compose, search, crawl, extract, score, recommend.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

from leadgen.discovery.aggregator import SearchAggregator
from leadgen.discovery.query_composer import QueryComposer
from leadgen.domain.discovery_run import LeadDiscoveryRun
from leadgen.domain.lead_query import LeadQuery
from leadgen.domain.search import LeadCandidate, SearchResult
from leadgen.logging_utils import log_event
from leadgen.scraping.spider import Spider
from leadgen.scraping.types import CrawlOptions, CrawlResult
from leadgen.storage.base import SeenDomainStore
from outreach.bandit import BanditOptions, ChannelBandit
from outreach.segments import build_segment_key, company_size_band
from scoring.constraints import constraint_penalties, largest_team_size
from scoring.dimensions import build_dimensions
from scoring.engine import ScoredCandidate, ScoringEngine, rank
from signals.base import SignalOutput
from signals.registry import RegistryRun, SignalRegistry

logger = logging.getLogger(__name__)


class LeadDiscoveryEngine:
    """
    Orchestrates one discovery run over injected collaborators.
    """

    def __init__(
        self,
        *,
        composer: QueryComposer,
        aggregator: SearchAggregator,
        spider: Spider,
        crawl_options: CrawlOptions,
        registry: SignalRegistry | None = None,
        scoring_engine: ScoringEngine | None = None,
        seen_store: SeenDomainStore | None = None,
        bandit: ChannelBandit | None = None,
        channels: Sequence[str] = (),
        bandit_options: BanditOptions | None = None,
        crawl_concurrency: int = 4,
        hosts_to_crawl: int = 15,
    ) -> None:
        self._composer = composer
        self._aggregator = aggregator
        self._spider = spider
        self._crawl_options = crawl_options
        self._registry = registry or SignalRegistry()
        self._scoring_engine = scoring_engine or ScoringEngine()
        self._seen_store = seen_store
        self._bandit = bandit
        self._channels = tuple(channels)
        self._bandit_options = bandit_options or BanditOptions()
        self._crawl_concurrency = max(1, crawl_concurrency)
        self._hosts_to_crawl = max(1, hosts_to_crawl)

    def run(self, query: LeadQuery, *, budget: int) -> LeadDiscoveryRun:
        queries = self._composer.compose(query)
        results = self._aggregator.discover(queries, budget, exclude_brands=query.exclude_brands)
        candidates = self.group_by_domain(results)[: self._hosts_to_crawl]

        options = replace(self._crawl_options, keywords=tuple(query.product_keywords))
        crawls = self._crawl_all(candidates, options)

        errors: list[str] = []
        scored: list[ScoredCandidate] = []
        states: dict[str, str | None] = {}
        for candidate in candidates:
            crawl = crawls.get(candidate.domain)
            try:
                item, signals = self._score(query, candidate, crawl)
                scored.append(item)
                states[candidate.domain] = self._first_state(signals)
            except Exception as exc:
                errors.append(f"{candidate.domain}: {exc}")
                log_event(logger, logging.ERROR, "lead_scoring_failed", domain=candidate.domain, error=str(exc))

        ranked = rank(scored)
        if self._bandit is not None and self._channels:
            ranked = [
                self._recommend_channel(query, item, crawls.get(item.candidate.domain), states.get(item.candidate.domain))
                for item in ranked
            ]

        if self._seen_store is not None and candidates:
            try:
                self._seen_store.mark_seen([candidate.domain for candidate in candidates])
            except Exception as exc:
                errors.append(f"seen_store: {exc}")
                log_event(logger, logging.ERROR, "seen_store_mark_failed", domains=len(candidates), error=str(exc))

        crawl_failures = sum(1 for crawl in crawls.values() if crawl is None or crawl.pages_fetched == 0)
        status = "success"
        if errors or crawl_failures:
            status = "partial_success" if ranked else "failed"
        elif not ranked:
            status = "empty"

        run = LeadDiscoveryRun(
            queries=queries,
            results_found=len(results),
            hosts_crawled=len(crawls),
            crawl_failures=crawl_failures,
            status=status,
            candidates=ranked,
            errors=errors,
        )
        log_event(
            logger,
            logging.INFO,
            "lead_discovery_completed",
            queries=len(queries),
            results_found=run.results_found,
            hosts_crawled=run.hosts_crawled,
            crawl_failures=run.crawl_failures,
            candidates=len(ranked),
            status=status,
        )
        return run

    @staticmethod
    def group_by_domain(results: Sequence[SearchResult]) -> list[LeadCandidate]:
        """
        Keep the first (highest-ranked) result per domain, in rank order.
        """

        candidates: list[LeadCandidate] = []
        seen: set[str] = set()
        for result in sorted(results, key=lambda item: item.rank):
            domain = result.domain
            if not domain or domain in seen:
                continue
            seen.add(domain)
            candidates.append(LeadCandidate.from_result(result))
        return candidates

    def _crawl_all(self, candidates: list[LeadCandidate], options: CrawlOptions) -> dict[str, CrawlResult | None]:
        if not candidates:
            return {}

        crawls: dict[str, CrawlResult | None] = {}
        workers = min(self._crawl_concurrency, len(candidates))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="crawl") as executor:
            futures = {
                candidate.domain: executor.submit(self._spider.crawl, candidate.url, options)
                for candidate in candidates
            }
            for domain, future in futures.items():
                try:
                    crawls[domain] = future.result()
                except Exception as exc:
                    crawls[domain] = None
                    log_event(logger, logging.ERROR, "crawl_failed", domain=domain, error=str(exc))
        return crawls

    def _score(
        self,
        query: LeadQuery,
        candidate: LeadCandidate,
        crawl: CrawlResult | None,
    ) -> tuple[ScoredCandidate, RegistryRun]:
        if crawl is not None and crawl.pages:
            raw = crawl.combined_html
            visible = " ".join(part for part in (candidate.title, candidate.snippet, crawl.combined_text) if part)
        else:
            raw = " ".join(part for part in (candidate.title, candidate.snippet) if part)
            visible = raw

        signals: RegistryRun = self._registry.run_all(raw)
        dimensions = build_dimensions(query, candidate, crawl, signals)
        penalties = constraint_penalties(query, candidate, visible)
        scored = self._scoring_engine.score(
            dimensions,
            penalties=penalties,
            candidate=candidate,
            extra_reasons=signals.reasons,
        )
        return scored, signals

    def _recommend_channel(
        self,
        query: LeadQuery,
        item: ScoredCandidate,
        crawl: CrawlResult | None,
        state: str | None,
    ) -> ScoredCandidate:
        text = crawl.combined_text if crawl is not None else ""
        segment = build_segment_key(
            country="US",
            state=state,
            product_tag=query.product_keywords[0] if query.product_keywords else None,
            company_size=company_size_band(largest_team_size(text)),
        )
        choice = self._bandit.choose(segment, self._channels, self._bandit_options)
        return item.with_channel(choice.chosen)

    @staticmethod
    def _first_state(signals: RegistryRun) -> str | None:
        geo = signals.results.get("geo")
        if not isinstance(geo, SignalOutput):
            return None
        states = geo.details.get("states") or []
        return states[0] if states else None
