"""
Google Programmable Search (Custom Search JSON API) adapter.
"""

from __future__ import annotations

from leadgen.connectors.base import SearchProvider
from leadgen.domain.search import SearchResult

GOOGLE_CSE_URL = "https://www.googleapis.com/customsearch/v1"


class GoogleCSEProvider(SearchProvider):
    """
    Requires both an API key and a search engine id; either missing disables it.
    """

    provider_id = "google_cse"

    def is_configured(self) -> bool:
        return bool(self._settings.google_api_key and self._settings.google_cse_id)

    def _search(self, query: str, limit: int) -> list[SearchResult]:
        payload = self._request_json(
            method="GET",
            url=GOOGLE_CSE_URL,
            params={
                "key": self._settings.google_api_key,
                "cx": self._settings.google_cse_id,
                "q": query,
                "num": min(limit, 10),
            },
        )
        items = payload.get("items") if isinstance(payload, dict) else None
        return self._collect(items, url_key="link", title_key="title", snippet_key="snippet", query=query)
