"""
robots.txt policy helper for crawler compliance.
"""

from __future__ import annotations

import logging
import threading
from urllib.parse import urljoin, urlparse
from urllib.robotparser import RobotFileParser

import requests

from leadgen.logging_utils import log_event

logger = logging.getLogger(__name__)


class RobotsPolicyManager:
    """
    Caches robots.txt rules per origin. Safe to share across crawl threads.
    """

    def __init__(
        self,
        *,
        session: requests.Session,
        timeout_seconds: float = 5.0,
        allow_when_unreachable: bool = True,
    ) -> None:
        self._session = session
        self._timeout_seconds = timeout_seconds
        self._allow_when_unreachable = allow_when_unreachable
        self._cache: dict[str, RobotFileParser] = {}
        self._lock = threading.Lock()

    def can_fetch(self, *, url: str, user_agent: str) -> bool:
        """
        Return whether fetching `url` is allowed for `user_agent`.
        """

        parser = self._get_parser(url)
        return parser.can_fetch(user_agent, url)

    def _get_parser(self, url: str) -> RobotFileParser:
        origin = self._origin(url)
        with self._lock:
            cached = self._cache.get(origin)
        if cached is not None:
            return cached

        parser = self._load(origin)
        with self._lock:
            return self._cache.setdefault(origin, parser)

    def _load(self, origin: str) -> RobotFileParser:
        parser = RobotFileParser()
        robots_url = urljoin(origin, "/robots.txt")
        try:
            response = self._session.get(robots_url, timeout=self._timeout_seconds)
            if 200 <= response.status_code < 300 and response.text:
                parser.set_url(robots_url)
                parser.parse(response.text.splitlines())
                log_event(logger, logging.DEBUG, "robots_loaded", origin=origin)
            else:
                self._apply_fallback_policy(parser)
                log_event(
                    logger,
                    logging.INFO,
                    "robots_unavailable",
                    origin=origin,
                    status_code=response.status_code,
                    fallback_allow=self._allow_when_unreachable,
                )
        except requests.RequestException as exc:
            self._apply_fallback_policy(parser)
            log_event(
                logger,
                logging.WARNING,
                "robots_fetch_failed",
                origin=origin,
                fallback_allow=self._allow_when_unreachable,
                error=str(exc),
            )
        return parser

    def _apply_fallback_policy(self, parser: RobotFileParser) -> None:
        if self._allow_when_unreachable:
            parser.parse(["User-agent: *", "Allow: /"])
        else:
            parser.parse(["User-agent: *", "Disallow: /"])

    @staticmethod
    def _origin(url: str) -> str:
        parsed = urlparse(url)
        scheme = parsed.scheme or "https"
        return f"{scheme}://{parsed.netloc}"
