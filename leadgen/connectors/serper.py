"""
Serper.dev Google results adapter.
"""

from __future__ import annotations

from leadgen.connectors.base import SearchProvider
from leadgen.domain.search import SearchResult

SERPER_URL = "https://google.serper.dev/search"


class SerperProvider(SearchProvider):
    provider_id = "serper"

    def is_configured(self) -> bool:
        return bool(self._settings.serper_api_key)

    def _search(self, query: str, limit: int) -> list[SearchResult]:
        payload = self._request_json(
            method="POST",
            url=SERPER_URL,
            headers={
                "X-API-KEY": self._settings.serper_api_key or "",
                "Content-Type": "application/json",
            },
            json_body={"q": query, "gl": "us", "hl": "en", "num": min(limit, 20)},
        )
        items = payload.get("organic") if isinstance(payload, dict) else None
        return self._collect(items, url_key="link", title_key="title", snippet_key="snippet", query=query)
