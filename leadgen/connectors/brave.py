"""
Brave Search web results adapter.
"""

from __future__ import annotations

from leadgen.connectors.base import SearchProvider
from leadgen.domain.search import SearchResult

BRAVE_URL = "https://api.search.brave.com/res/v1/web/search"


class BraveProvider(SearchProvider):
    provider_id = "brave"

    def is_configured(self) -> bool:
        return bool(self._settings.brave_api_key)

    def _search(self, query: str, limit: int) -> list[SearchResult]:
        payload = self._request_json(
            method="GET",
            url=BRAVE_URL,
            params={"q": query, "count": min(limit, 20), "country": "US"},
            headers={
                "X-Subscription-Token": self._settings.brave_api_key or "",
                "Accept": "application/json",
            },
        )
        web = payload.get("web") if isinstance(payload, dict) else None
        items = web.get("results") if isinstance(web, dict) else None
        return self._collect(items, url_key="url", title_key="title", snippet_key="description", query=query)
