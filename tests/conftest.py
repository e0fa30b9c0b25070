"""
tests/conftest.py

Shared HTTP fakes. No test in this suite touches the network.
"""

from __future__ import annotations

import json as jsonlib
from collections.abc import Callable
from typing import Any

import pytest


class FakeResponse:
    def __init__(
        self,
        *,
        status_code: int = 200,
        body: bytes | str = b"",
        headers: dict[str, str] | None = None,
        json_data: Any = None,
        encoding: str | None = "utf-8",
        url: str = "",
    ) -> None:
        if json_data is not None and not body:
            body = jsonlib.dumps(json_data)
        self.status_code = status_code
        self.url = url
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        self.headers = dict(headers or {})
        self.encoding = encoding
        self._json_data = json_data
        self.closed = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    @property
    def text(self) -> str:
        return self._body.decode(self.encoding or "utf-8", errors="replace")

    def json(self) -> Any:
        if self._json_data is not None:
            return self._json_data
        return jsonlib.loads(self.text)

    def iter_content(self, chunk_size: int = 1024):
        for start in range(0, len(self._body), chunk_size):
            yield self._body[start : start + chunk_size]

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """
    Routes URLs to canned responses. A route may be a FakeResponse, an
    exception instance (raised), or a zero-argument callable.
    """

    def __init__(self, routes: dict[str, Any] | None = None, default: Any = None) -> None:
        self.routes = dict(routes or {})
        self.default = default
        self.calls: list[dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        outcome = self.routes.get(url, self.default)
        if outcome is None:
            return FakeResponse(status_code=404)
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return outcome()
        return outcome

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self.request("GET", url, **kwargs)

    def urls(self) -> list[str]:
        return [call["url"] for call in self.calls]


def html_page(body: str, *, title: str = "Page") -> FakeResponse:
    html = f"<html><head><title>{title}</title></head><body>{body}</body></html>"
    return FakeResponse(body=html, headers={"Content-Type": "text/html; charset=utf-8"})


@pytest.fixture()
def make_response() -> Callable[..., FakeResponse]:
    return FakeResponse


@pytest.fixture()
def make_html() -> Callable[..., FakeResponse]:
    return html_page


@pytest.fixture()
def make_session() -> Callable[..., FakeSession]:
    return FakeSession
