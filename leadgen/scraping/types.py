"""
Typed contracts for the per-host crawler.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from leadgen.config import DEFAULT_SEED_PATHS, CrawlSettings

STATE_FETCHED = "fetched"
STATE_FAILED = "failed"
STATE_SKIPPED = "skipped"

STOP_FRONTIER_EMPTY = "frontier_empty"
STOP_MAX_PAGES = "max_pages"
STOP_BYTE_BUDGET = "byte_budget"
STOP_TIME_BUDGET = "time_budget"
STOP_RATE_LIMITED = "rate_limited"


@dataclass(frozen=True)
class CrawlOptions:
    """
    Budgets and heuristics for one `Spider.crawl` run.
    """

    max_pages: int = 6
    site_byte_budget: int = 1_500_000
    page_byte_cap: int = 400_000
    timeout_seconds: float = 7.0
    politeness_delay_seconds: float = 0.5
    time_budget_seconds: float = 45.0
    min_link_score: float = 0.5
    respect_robots: bool = True
    user_agent: str = "LeadRadarBot/1.0 (+https://example.com/bot)"
    seed_paths: tuple[str, ...] = DEFAULT_SEED_PATHS
    keywords: tuple[str, ...] = ()

    @classmethod
    def from_settings(cls, settings: CrawlSettings, *, keywords: tuple[str, ...] = ()) -> CrawlOptions:
        return cls(
            max_pages=settings.max_pages,
            site_byte_budget=settings.site_byte_budget,
            page_byte_cap=settings.page_byte_cap,
            timeout_seconds=settings.timeout_seconds,
            politeness_delay_seconds=settings.politeness_delay_seconds,
            time_budget_seconds=settings.time_budget_seconds,
            min_link_score=settings.min_link_score,
            respect_robots=settings.respect_robots,
            user_agent=settings.user_agent,
            seed_paths=settings.seed_paths,
            keywords=keywords,
        )


@dataclass
class FrontierEntry:
    url: str
    score: float
    depth: int
    anchor: str = ""


@dataclass(frozen=True)
class CrawlPage:
    """
    One fetched HTML page.
    """

    url: str
    html: str
    text: str
    title: str = ""
    description: str = ""
    bytes: int = 0
    relevance_score: float = 0.0
    links: tuple[str, ...] = ()


@dataclass
class CrawlResult:
    """
    Outcome of crawling one host. Owned by a single run.
    """

    host: str
    pages: list[CrawlPage] = field(default_factory=list)
    pages_fetched: int = 0
    queued_remaining: int = 0
    total_bytes: int = 0
    duration_ms: int = 0
    stop_reason: str = STOP_FRONTIER_EMPTY
    visited: list[str] = field(default_factory=list)
    url_states: dict[str, str] = field(default_factory=dict)
    errors: list[dict[str, str]] = field(default_factory=list)

    @property
    def failed_pages(self) -> int:
        return sum(1 for state in self.url_states.values() if state == STATE_FAILED)

    @property
    def combined_text(self) -> str:
        return "\n".join(page.text for page in self.pages if page.text)

    @property
    def combined_html(self) -> str:
        return "\n".join(page.html for page in self.pages if page.html)

    @property
    def title(self) -> str:
        return next((page.title for page in self.pages if page.title), "")

    @property
    def description(self) -> str:
        return next((page.description for page in self.pages if page.description), "")
