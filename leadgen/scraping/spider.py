"""
leadgen/scraping/spider.py

Budgeted, priority-ordered crawler for a single host.

The frontier is re-sorted by link score before every pop, so the most
promising pages (products, industries, contact...) are fetched first and
a small page budget still lands on useful content.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from urllib.parse import urlsplit

import requests

from leadgen.discovery.rate_gate import RateGate, acquire_slot
from leadgen.logging_utils import log_event
from leadgen.scraping.html_parsers import HTMLPageParser
from leadgen.scraping.robots import RobotsPolicyManager
from leadgen.scraping.types import (
    STATE_FAILED,
    STATE_FETCHED,
    STATE_SKIPPED,
    STOP_BYTE_BUDGET,
    STOP_FRONTIER_EMPTY,
    STOP_MAX_PAGES,
    STOP_RATE_LIMITED,
    STOP_TIME_BUDGET,
    CrawlOptions,
    CrawlPage,
    CrawlResult,
    FrontierEntry,
)
from leadgen.urls import domain_of, normalize_url, origin_of, path_depth, same_site

logger = logging.getLogger(__name__)

SEED_PRIORITY = 3.0
BASE_LINK_SCORE = 1.0
DEPTH_PENALTY = 0.5
ANCHOR_WEIGHT = 0.5
SEED_PATH_BONUS = 1.0
KEYWORD_WEIGHT = 1.5
READ_CHUNK_BYTES = 16_384

LINK_VOCABULARY: dict[str, float] = {
    "product": 2.0,
    "catalog": 2.0,
    "wholesale": 2.0,
    "distribut": 2.0,
    "quote": 2.0,
    "rfq": 2.0,
    "bulk": 1.5,
    "industr": 1.5,
    "application": 1.5,
    "contact": 1.5,
    "shop": 1.5,
    "store": 1.0,
    "market": 1.0,
    "solution": 1.0,
    "service": 1.0,
    "about": 1.0,
    "location": 1.0,
    "partner": 1.0,
    "career": 1.0,
    "job": 0.5,
}

DENY_PATTERN = re.compile(
    r"(?:^|[/_.-])(privacy|terms|legal|cookie|gdpr|login|log-in|signin|sign-in|signup|register|"
    r"cart|checkout|account|wp-admin|wp-login|wp-json|feed|xmlrpc|unsubscribe)(?:$|[/_.-])",
    flags=re.IGNORECASE,
)
DENY_EXTENSIONS = (
    ".pdf", ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".ico", ".bmp",
    ".zip", ".gz", ".rar", ".7z", ".mp4", ".mov", ".avi", ".mp3", ".wav",
    ".css", ".js", ".json", ".xml", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
)
HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


def is_denied(url: str) -> bool:
    """
    Return whether `url` matches a low-value or asset pattern.
    """

    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        return True
    if path.endswith(DENY_EXTENSIONS):
        return True
    return bool(DENY_PATTERN.search(path))


def _vocabulary_hits(text: str, vocabulary: dict[str, float]) -> float:
    lowered = text.lower()
    return sum(weight for term, weight in vocabulary.items() if term in lowered)


class Spider:
    """
    Crawl one host within page, byte and time budgets. Never raises.
    """

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        robots_policy: RobotsPolicyManager | None = None,
        rate_gate: RateGate | None = None,
        host_rate_limit_per_window: int = 30,
        host_rate_window_ms: int = 60_000,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._session = session or requests.Session()
        self._robots_policy = robots_policy or RobotsPolicyManager(session=self._session)
        self._rate_gate = rate_gate
        self._host_rate_limit_per_window = host_rate_limit_per_window
        self._host_rate_window_ms = host_rate_window_ms
        self._sleep = sleep
        self._clock = clock

    def crawl(self, host: str, options: CrawlOptions | None = None) -> CrawlResult:
        options = options or CrawlOptions()
        started = self._clock()
        start_url = normalize_url(host if "://" in host else f"https://{host}")
        root = origin_of(start_url)
        result = CrawlResult(host=domain_of(root) if root else host)
        if not root:
            result.stop_reason = STOP_FRONTIER_EMPTY
            return result

        max_pages = max(1, options.max_pages)
        byte_budget = max(1, options.site_byte_budget)
        keyword_vocabulary = {
            keyword.lower(): KEYWORD_WEIGHT for keyword in options.keywords if keyword.strip()
        }

        frontier: list[FrontierEntry] = []
        queued: set[str] = set()
        self._seed(root, start_url, options.seed_paths, frontier, queued)

        stop_reason = STOP_FRONTIER_EMPTY
        fetch_attempts = 0
        while frontier:
            if result.pages_fetched >= max_pages:
                stop_reason = STOP_MAX_PAGES
                break
            if result.total_bytes >= byte_budget:
                stop_reason = STOP_BYTE_BUDGET
                break
            if self._clock() - started >= options.time_budget_seconds:
                stop_reason = STOP_TIME_BUDGET
                break

            frontier.sort(key=lambda entry: entry.score, reverse=True)
            entry = frontier.pop(0)
            queued.discard(entry.url)
            if entry.url in result.url_states:
                continue

            if is_denied(entry.url) or not same_site(entry.url, root):
                result.url_states[entry.url] = STATE_SKIPPED
                continue
            if options.respect_robots and not self._robots_allows(entry.url, options.user_agent):
                result.url_states[entry.url] = STATE_SKIPPED
                log_event(logger, logging.INFO, "crawl_blocked_by_robots", host=result.host, url=entry.url)
                continue
            if not self._admit(result.host):
                frontier.insert(0, entry)
                queued.add(entry.url)
                stop_reason = STOP_RATE_LIMITED
                break

            if fetch_attempts > 0 and options.politeness_delay_seconds > 0:
                self._sleep(options.politeness_delay_seconds)
            fetch_attempts += 1
            result.visited.append(entry.url)

            read_cap = min(max(1, options.page_byte_cap), byte_budget - result.total_bytes)
            fetched = self._fetch_page(entry, options, read_cap, keyword_vocabulary, result)
            if fetched is None:
                continue
            page, links = fetched

            result.pages.append(page)
            result.pages_fetched += 1
            result.total_bytes += page.bytes
            result.url_states[entry.url] = STATE_FETCHED
            result.url_states[page.url] = STATE_FETCHED
            self._enqueue_links(page, links, entry, options, keyword_vocabulary, frontier, queued, result)

        result.stop_reason = stop_reason
        result.queued_remaining = len(frontier)
        result.duration_ms = int((self._clock() - started) * 1000)
        log_event(
            logger,
            logging.INFO,
            "crawl_completed",
            host=result.host,
            pages_fetched=result.pages_fetched,
            queued_remaining=result.queued_remaining,
            total_bytes=result.total_bytes,
            failed_pages=result.failed_pages,
            stop_reason=result.stop_reason,
            duration_ms=result.duration_ms,
        )
        return result

    @staticmethod
    def _seed(
        root: str,
        start_url: str,
        seed_paths: tuple[str, ...],
        frontier: list[FrontierEntry],
        queued: set[str],
    ) -> None:
        seeds = [root, start_url]
        for path in seed_paths:
            cleaned = path.strip()
            if not cleaned:
                continue
            seeds.append(normalize_url(root.rstrip("/") + "/" + cleaned.lstrip("/")))
        for url in seeds:
            if url and url not in queued:
                queued.add(url)
                frontier.append(FrontierEntry(url=url, score=SEED_PRIORITY, depth=0))

    def _robots_allows(self, url: str, user_agent: str) -> bool:
        try:
            return self._robots_policy.can_fetch(url=url, user_agent=user_agent)
        except Exception as exc:
            log_event(logger, logging.WARNING, "robots_check_failed", url=url, error=str(exc))
            return True

    def _admit(self, host: str) -> bool:
        if self._rate_gate is None:
            return True
        return acquire_slot(
            self._rate_gate,
            f"crawl:{host}",
            max_per_window=self._host_rate_limit_per_window,
            window_ms=self._host_rate_window_ms,
            max_wait_seconds=0.0,
            sleep=self._sleep,
        )

    def _fetch_page(
        self,
        entry: FrontierEntry,
        options: CrawlOptions,
        read_cap: int,
        keyword_vocabulary: dict[str, float],
        result: CrawlResult,
    ) -> tuple[CrawlPage, list[tuple[str, str]]] | None:
        """
        Fetch and parse one URL, recording failed/skipped states on `result`.
        """

        try:
            response = self._session.get(
                entry.url,
                headers={"User-Agent": options.user_agent, "Accept": "text/html,application/xhtml+xml"},
                timeout=options.timeout_seconds,
                stream=True,
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            self._mark_failed(result, entry.url, f"request_error: {exc}")
            return None

        try:
            if not 200 <= response.status_code < 300:
                self._mark_failed(result, entry.url, f"http_status: {response.status_code}")
                return None

            final_url = normalize_url(response.url or "") or entry.url
            if not same_site(final_url, entry.url):
                result.url_states[entry.url] = STATE_SKIPPED
                log_event(logger, logging.INFO, "crawl_redirect_off_site", url=entry.url, final_url=final_url)
                return None
            if final_url != entry.url and final_url in result.url_states:
                result.url_states[entry.url] = STATE_SKIPPED
                return None

            content_type = str(response.headers.get("Content-Type") or "").lower()
            if content_type and not any(kind in content_type for kind in HTML_CONTENT_TYPES):
                result.url_states[entry.url] = STATE_SKIPPED
                log_event(logger, logging.DEBUG, "crawl_page_skipped", url=entry.url, content_type=content_type)
                return None

            body = self._read_capped(response, read_cap)
            html = body.decode(response.encoding or "utf-8", errors="replace")
            parsed = HTMLPageParser.parse(html=html, page_url=final_url)
        except Exception as exc:
            self._mark_failed(result, entry.url, f"{type(exc).__name__}: {exc}")
            return None
        finally:
            response.close()

        relevance = min(
            1.0,
            (
                _vocabulary_hits(parsed.text[:20_000], LINK_VOCABULARY)
                + _vocabulary_hits(parsed.text[:20_000], keyword_vocabulary)
            )
            / 10.0,
        )
        page = CrawlPage(
            url=final_url,
            html=html,
            text=" ".join(part for part in (parsed.description, parsed.keywords, parsed.text) if part),
            title=parsed.title,
            description=parsed.description,
            bytes=len(body),
            relevance_score=round(relevance, 4),
            links=tuple(url for url, _anchor in parsed.links),
        )
        return page, parsed.links

    @staticmethod
    def _read_capped(response: requests.Response, cap: int) -> bytes:
        chunks: list[bytes] = []
        size = 0
        for chunk in response.iter_content(chunk_size=READ_CHUNK_BYTES):
            if not chunk:
                continue
            remaining = cap - size
            if remaining <= 0:
                break
            piece = chunk[:remaining]
            chunks.append(piece)
            size += len(piece)
        return b"".join(chunks)

    def _enqueue_links(
        self,
        page: CrawlPage,
        links: list[tuple[str, str]],
        parent: FrontierEntry,
        options: CrawlOptions,
        keyword_vocabulary: dict[str, float],
        frontier: list[FrontierEntry],
        queued: set[str],
        result: CrawlResult,
    ) -> None:
        seed_prefixes = tuple(
            "/" + path.strip().strip("/").lower() for path in options.seed_paths if path.strip().strip("/")
        )
        for url, anchor in links:
            if url in queued or url in result.url_states:
                continue
            if not same_site(url, page.url) or is_denied(url):
                continue
            score = self.score_link(url, anchor, keyword_vocabulary, seed_prefixes)
            if score < options.min_link_score:
                continue
            queued.add(url)
            frontier.append(FrontierEntry(url=url, score=score, depth=parent.depth + 1, anchor=anchor))

    @staticmethod
    def score_link(
        url: str,
        anchor: str,
        keyword_vocabulary: dict[str, float] | None = None,
        seed_prefixes: tuple[str, ...] = (),
    ) -> float:
        """
        Score a discovered link from its URL, anchor text and path depth.
        """

        keyword_vocabulary = keyword_vocabulary or {}
        try:
            path = urlsplit(url).path.lower()
        except ValueError:
            return 0.0

        url_hits = _vocabulary_hits(path, LINK_VOCABULARY) + _vocabulary_hits(path, keyword_vocabulary)
        anchor_hits = _vocabulary_hits(anchor, LINK_VOCABULARY) + _vocabulary_hits(anchor, keyword_vocabulary)
        hint_bonus = SEED_PATH_BONUS if seed_prefixes and path.startswith(seed_prefixes) else 0.0
        return (
            BASE_LINK_SCORE
            + url_hits
            + ANCHOR_WEIGHT * anchor_hits
            + hint_bonus
            - DEPTH_PENALTY * path_depth(url)
        )

    @staticmethod
    def _mark_failed(result: CrawlResult, url: str, reason: str) -> None:
        result.url_states[url] = STATE_FAILED
        result.errors.append({"url": url, "error": reason})
        log_event(logger, logging.WARNING, "crawl_page_failed", url=url, error=reason)
