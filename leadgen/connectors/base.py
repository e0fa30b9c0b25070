"""
leadgen/connectors/base.py

Search provider abstraction and shared HTTP mechanics.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import requests

from leadgen.config import SearchSettings
from leadgen.domain.search import SearchResult
from leadgen.urls import normalize_url

logger = logging.getLogger(__name__)


class ProviderRequestError(RuntimeError):
    """
    Raised when a provider call fails (transport, non-2xx, or malformed body).
    """


class SearchProvider(ABC):
    """
    Adapter interface mapping one search backend into `SearchResult` rows.

    Calls are single-attempt: the aggregator treats any failure as an empty
    result for that call and moves on to the next provider.
    """

    provider_id: str

    def __init__(
        self,
        *,
        settings: SearchSettings,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings
        self._session = session or requests.Session()
        self._timeout_seconds = settings.timeout_seconds

    @abstractmethod
    def is_configured(self) -> bool:
        """
        Return whether credentials needed by this provider are present.
        """

    @abstractmethod
    def _search(self, query: str, limit: int) -> list[SearchResult]:
        """
        Execute one backend call and map its native response.
        """

    def search(self, query: str, limit: int) -> list[SearchResult]:
        """
        Return up to `limit` results for `query`, or [] when not configured.

        Raises ProviderRequestError on transport or payload failures.
        """

        if not self.is_configured():
            logger.debug("Search provider skipped provider=%s reason=not_configured", self.provider_id)
            return []
        if limit <= 0 or not query.strip():
            return []
        return self._search(query.strip(), limit)[:limit]

    def _build_result(
        self,
        *,
        url: Any,
        title: Any = "",
        snippet: Any = "",
        query: str = "",
    ) -> SearchResult | None:
        normalized = normalize_url(str(url or ""))
        if not normalized:
            return None
        return SearchResult(
            url=normalized,
            title=" ".join(str(title or "").split()),
            snippet=" ".join(str(snippet or "").split()),
            source_provider_id=self.provider_id,
            query=query,
        )

    def _collect(self, items: Any, *, url_key: str, title_key: str, snippet_key: str, query: str) -> list[SearchResult]:
        if not isinstance(items, list):
            return []
        results: list[SearchResult] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            result = self._build_result(
                url=item.get(url_key),
                title=item.get(title_key),
                snippet=item.get(snippet_key),
                query=query,
            )
            if result is not None:
                results.append(result)
        return results

    def _request_json(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """
        Execute an HTTP request and return parsed JSON.
        """

        response = self._request(method=method, url=url, params=params, headers=headers, json_body=json_body)
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderRequestError(f"{self.provider_id}: response was not valid JSON.") from exc

    def _request_text(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        response = self._request(method=method, url=url, params=params, headers=headers)
        return response.text

    def _request(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> requests.Response:
        try:
            response = self._session.request(
                method=method,
                url=url,
                params=params,
                headers=headers,
                json=json_body,
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.warning(
                "Search provider request failed provider=%s url=%s error=%s",
                self.provider_id,
                url,
                exc,
            )
            raise ProviderRequestError(f"{self.provider_id}: request failed.") from exc

        if not 200 <= response.status_code < 300:
            logger.warning(
                "Search provider returned non-success provider=%s status=%s url=%s",
                self.provider_id,
                response.status_code,
                url,
            )
            raise ProviderRequestError(f"{self.provider_id}: HTTP {response.status_code}.")
        return response
