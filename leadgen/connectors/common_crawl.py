"""
Common Crawl CDX index adapter.

Free and keyless, but noisy: the index matches URL patterns rather than page
text, so results favour breadth over precision.
"""

from __future__ import annotations

import json
import logging
import re

from leadgen.connectors.base import SearchProvider
from leadgen.domain.search import SearchResult

logger = logging.getLogger(__name__)

COMMON_CRAWL_URL_TEMPLATE = "https://index.commoncrawl.org/{index}-index"
_SITE_TOKEN = re.compile(r"\bsite:([a-z0-9.-]+)", flags=re.IGNORECASE)
_NON_WORD = re.compile(r"[^a-z0-9]+")


class CommonCrawlProvider(SearchProvider):
    provider_id = "common_crawl"

    def is_configured(self) -> bool:
        return self._settings.common_crawl_enabled

    @staticmethod
    def url_pattern(query: str) -> str:
        """
        Translate a free-text query into a CDX URL pattern.
        """

        site_match = _SITE_TOKEN.search(query)
        if site_match:
            return f"*.{site_match.group(1).lower()}/*"
        tokens = [token for token in _NON_WORD.split(query.lower()) if token]
        return f"*{'*'.join(tokens)}*" if tokens else "*"

    def _search(self, query: str, limit: int) -> list[SearchResult]:
        text = self._request_text(
            method="GET",
            url=COMMON_CRAWL_URL_TEMPLATE.format(index=self._settings.common_crawl_index),
            params={"url": self.url_pattern(query), "output": "json", "limit": min(limit, 50)},
        )

        results: list[SearchResult] = []
        seen: set[str] = set()
        for line in text.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except ValueError:
                logger.debug("Common Crawl line skipped reason=invalid_json")
                continue
            if not isinstance(record, dict):
                continue

            raw_url = str(record.get("url") or "")
            if raw_url and not raw_url.startswith(("http://", "https://")):
                raw_url = f"http://{raw_url}"
            timestamp = record.get("timestamp")
            result = self._build_result(
                url=raw_url,
                title=record.get("url"),
                snippet=f"cc:{timestamp}" if timestamp else "",
                query=query,
            )
            if result is None or result.url in seen:
                continue
            seen.add(result.url)
            results.append(result)
            if len(results) >= limit:
                break
        return results
