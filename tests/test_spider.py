"""
tests/test_spider.py

Spider tests over a fake HTTP session and a frozen clock.

Coverage
--------
- Page budget with queued_remaining accounting
- Link priority ordering
- Byte budget and per-page truncation
- Deny patterns and off-site links
- Non-HTML responses, HTTP failures and transport errors
- robots.txt enforcement
- Host rate limiting and time budget
- No revisits and deterministic visit order
- Redirects: off-site targets skipped, same-site targets parsed at their final URL
"""

from __future__ import annotations

import itertools
from dataclasses import replace

import pytest
import requests

from leadgen.discovery.rate_gate import RateGate
from leadgen.scraping.robots import RobotsPolicyManager
from leadgen.scraping.spider import Spider, is_denied
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
)

ROOT = "https://example.com/"

BASE_OPTIONS = CrawlOptions(
    max_pages=10,
    seed_paths=(),
    respect_robots=False,
    politeness_delay_seconds=0.0,
)


def _links(*paths: str) -> str:
    return "".join(f'<a href="{path}">{path.strip("/").replace("-", " ") or "home"}</a>' for path in paths)


def _options(**overrides) -> CrawlOptions:
    return replace(BASE_OPTIONS, **overrides)


class Recorder:
    def __init__(self) -> None:
        self.sleeps: list[float] = []

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)


@pytest.fixture()
def recorder() -> Recorder:
    return Recorder()


def _spider(session, recorder: Recorder, **kwargs) -> Spider:
    kwargs.setdefault("clock", lambda: 0.0)
    return Spider(session=session, sleep=recorder.sleep, **kwargs)


# ---------------------------------------------------------------------------
# Budgets
# ---------------------------------------------------------------------------


class TestBudgets:
    def test_page_budget_leaves_remaining_links_queued(self, make_session, make_html, recorder) -> None:
        pages = [f"/page{i}" for i in range(10)]
        routes = {ROOT: make_html(_links(*pages))}
        routes.update({f"https://example.com{path}": make_html("<p>plain page</p>") for path in pages})
        session = make_session(routes)

        result = _spider(session, recorder).crawl("example.com", _options(max_pages=3))

        assert result.pages_fetched == 3
        assert result.queued_remaining == 8
        assert result.stop_reason == STOP_MAX_PAGES
        assert result.visited == [ROOT, "https://example.com/page0", "https://example.com/page1"]

    def test_frontier_exhaustion(self, make_session, make_html, recorder) -> None:
        session = make_session({ROOT: make_html("<p>no links</p>")})
        result = _spider(session, recorder).crawl("example.com", BASE_OPTIONS)
        assert result.pages_fetched == 1
        assert result.stop_reason == STOP_FRONTIER_EMPTY
        assert result.queued_remaining == 0

    def test_byte_budget_truncates_and_stops(self, make_session, make_html, recorder) -> None:
        body = _links("/products") + "<p>" + ("packaging " * 500) + "</p>"
        session = make_session({ROOT: make_html(body)})

        result = _spider(session, recorder).crawl("example.com", _options(site_byte_budget=300))

        assert result.total_bytes == 300
        assert result.pages[0].bytes == 300
        assert result.stop_reason == STOP_BYTE_BUDGET

    def test_page_byte_cap_limits_single_page(self, make_session, make_html, recorder) -> None:
        session = make_session({ROOT: make_html("<p>" + "x" * 5000 + "</p>")})
        result = _spider(session, recorder).crawl("example.com", _options(page_byte_cap=1000))
        assert result.pages[0].bytes == 1000

    def test_time_budget(self, make_session, make_html, recorder) -> None:
        session = make_session(
            {ROOT: make_html(_links("/products")), "https://example.com/products": make_html("<p>p</p>")}
        )
        ticks = itertools.count(start=0, step=30)

        result = _spider(session, recorder, clock=lambda: float(next(ticks))).crawl(
            "example.com", _options(time_budget_seconds=45)
        )

        assert result.pages_fetched == 1
        assert result.stop_reason == STOP_TIME_BUDGET

    def test_host_rate_limit_stops_crawl(self, make_session, make_html, recorder) -> None:
        session = make_session(
            {ROOT: make_html(_links("/products")), "https://example.com/products": make_html("<p>p</p>")}
        )
        spider = _spider(
            session,
            recorder,
            rate_gate=RateGate(clock_ms=lambda: 0),
            host_rate_limit_per_window=1,
            host_rate_window_ms=60_000,
        )

        result = spider.crawl("example.com", BASE_OPTIONS)

        assert result.pages_fetched == 1
        assert result.stop_reason == STOP_RATE_LIMITED
        assert result.queued_remaining == 1

    def test_politeness_delay_between_fetches(self, make_session, make_html, recorder) -> None:
        routes = {ROOT: make_html(_links("/a", "/b"))}
        routes.update({f"https://example.com/{name}": make_html("<p>x</p>") for name in ("a", "b")})
        _spider(make_session(routes), recorder).crawl("example.com", _options(politeness_delay_seconds=0.5))
        assert recorder.sleeps == [0.5, 0.5]


# ---------------------------------------------------------------------------
# Frontier
# ---------------------------------------------------------------------------


class TestFrontier:
    def test_high_value_links_are_fetched_first(self, make_session, make_html, recorder) -> None:
        routes = {
            ROOT: make_html(_links("/news", "/team", "/products")),
            "https://example.com/products": make_html("<p>catalog</p>"),
            "https://example.com/news": make_html("<p>news</p>"),
        }
        result = _spider(make_session(routes), recorder).crawl("example.com", _options(max_pages=2))
        assert result.visited == [ROOT, "https://example.com/products"]

    def test_root_is_seeded_before_deep_start_url(self, make_session, make_html, recorder) -> None:
        routes = {ROOT: make_html(""), "https://example.com/shop/boxes": make_html("<p>boxes</p>")}
        result = _spider(make_session(routes), recorder).crawl("https://example.com/shop/boxes", BASE_OPTIONS)
        assert result.visited[:2] == [ROOT, "https://example.com/shop/boxes"]

    def test_seed_paths_are_queued(self, make_session, make_html, recorder) -> None:
        routes = {ROOT: make_html(""), "https://example.com/catalog": make_html("<p>catalog</p>")}
        result = _spider(make_session(routes), recorder).crawl("example.com", _options(seed_paths=("/catalog",)))
        assert result.url_states["https://example.com/catalog"] == STATE_FETCHED

    def test_pages_are_never_revisited(self, make_session, make_html, recorder) -> None:
        routes = {
            ROOT: make_html(_links("/", "/about", "/about/")),
            "https://example.com/about": make_html(_links("/", "/about")),
        }
        session = make_session(routes)
        result = _spider(session, recorder).crawl("example.com", BASE_OPTIONS)
        assert session.urls().count(ROOT) == 1
        assert session.urls().count("https://example.com/about") == 1
        assert result.pages_fetched == 2

    def test_off_site_and_denied_links_are_not_followed(self, make_session, make_html, recorder) -> None:
        routes = {
            ROOT: make_html(
                _links("/privacy-policy", "/cart", "/login", "/brochure.pdf", "https://other.com/products", "/cartons")
            ),
            "https://example.com/cartons": make_html("<p>cartons</p>"),
        }
        session = make_session(routes)
        result = _spider(session, recorder).crawl("example.com", BASE_OPTIONS)
        assert session.urls() == [ROOT, "https://example.com/cartons"]
        assert result.pages_fetched == 2

    def test_visit_order_is_deterministic(self, make_session, make_html, recorder) -> None:
        def routes():
            return {
                ROOT: make_html(_links("/contact", "/about", "/products", "/careers")),
                **{
                    f"https://example.com/{name}": make_html("<p>x</p>")
                    for name in ("contact", "about", "products", "careers")
                },
            }

        first = _spider(make_session(routes()), recorder).crawl("example.com", BASE_OPTIONS)
        second = _spider(make_session(routes()), recorder).crawl("example.com", BASE_OPTIONS)
        assert first.visited == second.visited


# ---------------------------------------------------------------------------
# Failures and skips
# ---------------------------------------------------------------------------


class TestFailures:
    def test_non_html_response_is_skipped(self, make_session, make_html, make_response, recorder) -> None:
        routes = {
            ROOT: make_html(_links("/catalog")),
            "https://example.com/catalog": make_response(
                body=b"%PDF-1.4", headers={"Content-Type": "application/octet-stream"}
            ),
        }
        result = _spider(make_session(routes), recorder).crawl("example.com", BASE_OPTIONS)
        assert result.url_states["https://example.com/catalog"] == STATE_SKIPPED
        assert result.pages_fetched == 1

    def test_http_and_transport_failures_are_recorded(self, make_session, make_html, make_response, recorder) -> None:
        routes = {
            ROOT: make_html(_links("/products", "/contact")),
            "https://example.com/products": make_response(status_code=500),
            "https://example.com/contact": requests.Timeout("slow"),
        }
        result = _spider(make_session(routes), recorder).crawl("example.com", BASE_OPTIONS)

        assert result.pages_fetched == 1
        assert result.failed_pages == 2
        assert result.url_states["https://example.com/products"] == STATE_FAILED
        assert {error["url"] for error in result.errors} == {
            "https://example.com/products",
            "https://example.com/contact",
        }

    def test_unreachable_host_returns_empty_result(self, make_session, recorder) -> None:
        session = make_session(default=requests.ConnectionError("dns"))
        result = _spider(session, recorder).crawl("example.com", BASE_OPTIONS)
        assert result.pages_fetched == 0
        assert result.failed_pages == 1
        assert result.stop_reason == STOP_FRONTIER_EMPTY

    def test_empty_host(self, make_session, recorder) -> None:
        result = _spider(make_session(), recorder).crawl("", BASE_OPTIONS)
        assert result.pages == []
        assert result.stop_reason == STOP_FRONTIER_EMPTY

    def test_robots_disallow_is_respected(self, make_session, make_html, make_response, recorder) -> None:
        routes = {
            "https://example.com/robots.txt": make_response(body="User-agent: *\nDisallow: /private\n"),
            ROOT: make_html(_links("/private", "/about")),
            "https://example.com/about": make_html("<p>about</p>"),
        }
        session = make_session(routes)
        spider = _spider(session, recorder, robots_policy=RobotsPolicyManager(session=session))

        result = spider.crawl("example.com", _options(respect_robots=True))

        assert result.url_states["https://example.com/private"] == STATE_SKIPPED
        assert "https://example.com/private" not in session.urls()
        assert result.url_states["https://example.com/about"] == STATE_FETCHED

    def test_cross_site_redirect_is_skipped(self, make_session, make_response, recorder) -> None:
        other = '<html><head><title>Other Co</title></head><body><a href="/products">products</a></body></html>'
        routes = {
            ROOT: make_response(body=other, headers={"Content-Type": "text/html"}, url="https://other-company.com/"),
        }
        session = make_session(routes)

        result = _spider(session, recorder).crawl("example.com", BASE_OPTIONS)

        assert result.pages == []
        assert result.pages_fetched == 0
        assert result.url_states[ROOT] == STATE_SKIPPED
        assert session.urls() == [ROOT]

    def test_same_site_redirect_uses_final_url(self, make_session, make_response, make_html, recorder) -> None:
        start = '<html><head><title>Start</title></head><body><a href="about">about us</a></body></html>'
        routes = {
            ROOT: make_response(body=start, headers={"Content-Type": "text/html"}, url="https://www.example.com/start"),
            "https://www.example.com/about": make_html("<p>about</p>"),
        }
        session = make_session(routes)

        result = _spider(session, recorder).crawl("example.com", BASE_OPTIONS)

        assert [page.url for page in result.pages] == ["https://www.example.com/start", "https://www.example.com/about"]
        assert result.url_states[ROOT] == STATE_FETCHED
        assert "https://example.com/about" not in session.urls()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestLinkScoring:
    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/privacy",
            "https://example.com/terms-of-service",
            "https://example.com/shop/cart",
            "https://example.com/wp-admin/index.php",
            "https://example.com/files/spec.pdf",
            "https://example.com/img/logo.PNG",
        ],
    )
    def test_denied_urls(self, url: str) -> None:
        assert is_denied(url)

    @pytest.mark.parametrize("url", ["https://example.com/cartons", "https://example.com/products/terminals"])
    def test_allowed_urls(self, url: str) -> None:
        assert not is_denied(url)

    def test_vocabulary_and_depth(self) -> None:
        products = Spider.score_link("https://example.com/products", "Products")
        generic = Spider.score_link("https://example.com/news", "News")
        deep = Spider.score_link("https://example.com/news/2024/item", "News")
        assert products > generic > deep
        assert generic == pytest.approx(0.5)

    def test_keywords_and_seed_prefix_raise_score(self) -> None:
        plain = Spider.score_link("https://example.com/mailers", "")
        keyword = Spider.score_link("https://example.com/mailers", "", {"mailers": 1.5})
        seeded = Spider.score_link("https://example.com/mailers", "", seed_prefixes=("/mailers",))
        assert keyword == pytest.approx(plain + 1.5)
        assert seeded == pytest.approx(plain + 1.0)
