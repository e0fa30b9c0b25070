"""
Bing Web Search v7 adapter.
"""

from __future__ import annotations

from leadgen.connectors.base import SearchProvider
from leadgen.domain.search import SearchResult

BING_URL = "https://api.bing.microsoft.com/v7.0/search"


class BingProvider(SearchProvider):
    provider_id = "bing"

    def is_configured(self) -> bool:
        return bool(self._settings.bing_api_key)

    def _search(self, query: str, limit: int) -> list[SearchResult]:
        payload = self._request_json(
            method="GET",
            url=BING_URL,
            params={"q": query, "count": min(limit, 20), "mkt": "en-US"},
            headers={"Ocp-Apim-Subscription-Key": self._settings.bing_api_key or ""},
        )
        web_pages = payload.get("webPages") if isinstance(payload, dict) else None
        items = web_pages.get("value") if isinstance(web_pages, dict) else None
        return self._collect(items, url_key="url", title_key="name", snippet_key="snippet", query=query)
