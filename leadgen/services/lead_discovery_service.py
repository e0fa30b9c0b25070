"""
leadgen/services/lead_discovery_service.py

Service wiring for lead discovery runs from environment settings.
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

import requests
from sqlalchemy.orm import Session

from leadgen.config import (
    get_bandit_settings,
    get_crawl_settings,
    get_discovery_settings,
    get_search_settings,
)
from leadgen.connectors import (
    BingProvider,
    BraveProvider,
    CommonCrawlProvider,
    GoogleCSEProvider,
    SearchProvider,
    SerperProvider,
)
from leadgen.discovery.aggregator import SearchAggregator
from leadgen.discovery.query_composer import QueryComposer
from leadgen.discovery.rate_gate import RateGate
from leadgen.domain.discovery_run import LeadDiscoveryRun
from leadgen.domain.lead_query import LeadQuery
from leadgen.engine import LeadDiscoveryEngine
from leadgen.scraping.robots import RobotsPolicyManager
from leadgen.scraping.spider import Spider
from leadgen.scraping.types import CrawlOptions
from leadgen.storage import InMemorySeenDomainStore, SeenDomainStore, SQLAlchemySeenDomainStore
from outreach.bandit import BanditOptions, ChannelBandit


def build_providers(session: requests.Session) -> list[SearchProvider]:
    settings = get_search_settings()
    return [
        CommonCrawlProvider(settings=settings, session=session),
        SerperProvider(settings=settings, session=session),
        BraveProvider(settings=settings, session=session),
        GoogleCSEProvider(settings=settings, session=session),
        BingProvider(settings=settings, session=session),
    ]


class LeadDiscoveryService:
    """
    Runs the discovery pipeline with process-wide rate gate and bandit state.
    """

    def __init__(self, *, session: requests.Session | None = None) -> None:
        self._session = session or requests.Session()
        self._search_settings = get_search_settings()
        self._crawl_settings = get_crawl_settings()
        self._discovery_settings = get_discovery_settings()
        self._bandit_settings = get_bandit_settings()
        self._rate_gate = RateGate()
        self._bandit = ChannelBandit()
        self._memory_seen_store = InMemorySeenDomainStore()
        self._robots_policy = RobotsPolicyManager(
            session=self._session,
            timeout_seconds=self._crawl_settings.timeout_seconds,
        )

    @property
    def bandit(self) -> ChannelBandit:
        return self._bandit

    def discover(
        self,
        *,
        query: LeadQuery,
        budget: int | None = None,
        db: Session | None = None,
        recommend_channels: bool = True,
    ) -> LeadDiscoveryRun:
        seen_store: SeenDomainStore
        if db is not None:
            seen_store = SQLAlchemySeenDomainStore(session=db)
        else:
            seen_store = self._memory_seen_store

        aggregator = SearchAggregator(
            providers=build_providers(self._session),
            settings=self._search_settings,
            rate_gate=self._rate_gate,
            seen_store=seen_store,
            recency_window=timedelta(days=self._discovery_settings.recency_window_days),
        )
        spider = Spider(
            session=self._session,
            robots_policy=self._robots_policy,
            rate_gate=self._rate_gate,
            host_rate_limit_per_window=self._crawl_settings.host_rate_limit_per_window,
            host_rate_window_ms=self._crawl_settings.host_rate_window_ms,
        )
        engine = LeadDiscoveryEngine(
            composer=QueryComposer(max_queries=self._discovery_settings.max_queries),
            aggregator=aggregator,
            spider=spider,
            crawl_options=CrawlOptions.from_settings(self._crawl_settings),
            seen_store=seen_store,
            bandit=self._bandit if recommend_channels else None,
            channels=self._bandit_settings.channels,
            bandit_options=BanditOptions(
                cooldown_ms=self._bandit_settings.cooldown_ms,
                min_trials=self._bandit_settings.min_trials,
                exploration_c=self._bandit_settings.exploration_c,
                blocked=self._bandit_settings.blocked_channels,
            ),
            crawl_concurrency=self._crawl_settings.concurrency,
            hosts_to_crawl=self._discovery_settings.hosts_to_crawl,
        )
        return engine.run(query, budget=budget or self._discovery_settings.budget)


@lru_cache(maxsize=1)
def get_lead_discovery_service() -> LeadDiscoveryService:
    """
    Build and cache the lead discovery service.
    """

    return LeadDiscoveryService()
