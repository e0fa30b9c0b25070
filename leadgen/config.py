"""
leadgen/config.py

Environment-driven settings for discovery, crawling and outreach.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_csv_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """
    Read a comma-separated list, dropping blank entries.
    """

    raw_value = _get_optional_str_env(name)
    if raw_value is None:
        return default
    items = tuple(part.strip() for part in raw_value.split(",") if part.strip())
    return items or default


DEFAULT_SEED_PATHS: tuple[str, ...] = (
    "/products",
    "/product",
    "/catalog",
    "/shop",
    "/industries",
    "/markets",
    "/applications",
    "/solutions",
    "/about",
    "/services",
)


@dataclass(frozen=True)
class SearchSettings:
    """
    Search provider credentials and request behaviour.
    """

    serper_api_key: str | None = None
    brave_api_key: str | None = None
    google_api_key: str | None = None
    google_cse_id: str | None = None
    bing_api_key: str | None = None
    common_crawl_enabled: bool = True
    common_crawl_index: str = "CC-MAIN-2024-33"
    free_first: bool = True
    timeout_seconds: float = 10.0
    results_per_call: int = 10
    rate_limit_per_window: int = 30
    rate_window_ms: int = 60_000
    max_wait_seconds: float = 5.0


@dataclass(frozen=True)
class CrawlSettings:
    """
    Per-host crawl budgets and politeness behaviour.
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
    concurrency: int = 4
    host_rate_limit_per_window: int = 30
    host_rate_window_ms: int = 60_000
    seed_paths: tuple[str, ...] = field(default=DEFAULT_SEED_PATHS)


@dataclass(frozen=True)
class DiscoverySettings:
    """
    Pipeline-level knobs for one discovery run.
    """

    budget: int = 25
    max_queries: int = 80
    recency_window_days: int = 14
    hosts_to_crawl: int = 15


@dataclass(frozen=True)
class BanditSettings:
    """
    Outreach channel selection defaults.
    """

    channels: tuple[str, ...] = ("email", "linkedin", "phone")
    cooldown_ms: int = 20 * 60 * 1000
    min_trials: int = 2
    exploration_c: float = 1.4
    blocked_channels: tuple[str, ...] = ()


@lru_cache(maxsize=1)
def get_search_settings() -> SearchSettings:
    """
    Return cached search provider settings from environment variables.

    A provider whose credential is missing stays configured but returns no
    results, so partial credential sets are valid.
    """

    return SearchSettings(
        serper_api_key=_get_optional_str_env("SERPER_API_KEY"),
        brave_api_key=_get_optional_str_env("BRAVE_API_KEY"),
        google_api_key=_get_optional_str_env("GOOGLE_API_KEY"),
        google_cse_id=_get_optional_str_env("GOOGLE_CSE_ID"),
        bing_api_key=_get_optional_str_env("BING_API_KEY"),
        common_crawl_enabled=_get_bool_env("COMMON_CRAWL_ENABLED", True),
        common_crawl_index=_get_str_env("COMMON_CRAWL_INDEX", "CC-MAIN-2024-33"),
        free_first=_get_bool_env("SEARCH_FREE_FIRST", True),
        timeout_seconds=max(1.0, _get_float_env("SEARCH_TIMEOUT_SECONDS", 10.0)),
        results_per_call=min(50, max(1, _get_int_env("SEARCH_RESULTS_PER_CALL", 10))),
        rate_limit_per_window=max(1, _get_int_env("SEARCH_RATE_LIMIT_PER_WINDOW", 30)),
        rate_window_ms=max(1, _get_int_env("SEARCH_RATE_WINDOW_MS", 60_000)),
        max_wait_seconds=max(0.0, _get_float_env("SEARCH_RATE_MAX_WAIT_SECONDS", 5.0)),
    )


@lru_cache(maxsize=1)
def get_crawl_settings() -> CrawlSettings:
    """
    Return cached crawl settings from environment variables.
    """

    return CrawlSettings(
        max_pages=min(24, max(1, _get_int_env("CRAWL_MAX_PAGES", 6))),
        site_byte_budget=max(1, _get_int_env("CRAWL_SITE_BYTE_BUDGET", 1_500_000)),
        page_byte_cap=max(1, _get_int_env("CRAWL_PAGE_BYTE_CAP", 400_000)),
        timeout_seconds=max(1.0, _get_float_env("CRAWL_TIMEOUT_SECONDS", 7.0)),
        politeness_delay_seconds=max(0.0, _get_float_env("CRAWL_POLITENESS_DELAY_SECONDS", 0.5)),
        time_budget_seconds=max(1.0, _get_float_env("CRAWL_TIME_BUDGET_SECONDS", 45.0)),
        min_link_score=_get_float_env("CRAWL_MIN_LINK_SCORE", 0.5),
        respect_robots=_get_bool_env("CRAWL_RESPECT_ROBOTS", True),
        user_agent=_get_str_env("CRAWL_USER_AGENT", "LeadRadarBot/1.0 (+https://example.com/bot)"),
        concurrency=min(16, max(1, _get_int_env("CRAWL_CONCURRENCY", 4))),
        host_rate_limit_per_window=max(1, _get_int_env("CRAWL_HOST_RATE_LIMIT_PER_WINDOW", 30)),
        host_rate_window_ms=max(1, _get_int_env("CRAWL_HOST_RATE_WINDOW_MS", 60_000)),
        seed_paths=_get_csv_env("CRAWL_SEED_PATHS", DEFAULT_SEED_PATHS),
    )


@lru_cache(maxsize=1)
def get_discovery_settings() -> DiscoverySettings:
    """
    Return cached discovery pipeline settings.
    """

    return DiscoverySettings(
        budget=max(1, _get_int_env("DISCOVERY_BUDGET", 25)),
        max_queries=min(5000, max(1, _get_int_env("DISCOVERY_MAX_QUERIES", 80))),
        recency_window_days=max(0, _get_int_env("DISCOVERY_RECENCY_WINDOW_DAYS", 14)),
        hosts_to_crawl=max(1, _get_int_env("DISCOVERY_HOSTS_TO_CRAWL", 15)),
    )


@lru_cache(maxsize=1)
def get_bandit_settings() -> BanditSettings:
    """
    Return cached outreach channel bandit settings.
    """

    return BanditSettings(
        channels=_get_csv_env("OUTREACH_CHANNELS", ("email", "linkedin", "phone")),
        cooldown_ms=max(0, _get_int_env("OUTREACH_COOLDOWN_MS", 20 * 60 * 1000)),
        min_trials=max(0, _get_int_env("OUTREACH_MIN_TRIALS", 2)),
        exploration_c=max(0.0, _get_float_env("OUTREACH_EXPLORATION_C", 1.4)),
        blocked_channels=_get_csv_env("OUTREACH_BLOCKED_CHANNELS", ()),
    )
