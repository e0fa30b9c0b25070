"""
URL normalization helpers shared by discovery and crawling.
"""

from __future__ import annotations

from urllib.parse import urljoin, urlsplit, urlunsplit

_ALLOWED_SCHEMES = {"http", "https"}
_DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_url(url: str, *, keep_query: bool = False) -> str:
    """
    Return the dedup key form of `url`: scheme, lowercased host and path.

    Query strings and fragments are dropped unless `keep_query` is set. An
    empty path becomes "/" and non-root paths lose their trailing slash.
    Returns an empty string for values that are not http(s) URLs.
    """

    raw = (url or "").strip()
    if not raw:
        return ""
    if "://" not in raw:
        raw = f"http://{raw.lstrip('/')}"

    try:
        parts = urlsplit(raw)
        port = parts.port
    except ValueError:
        return ""

    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower().rstrip(".")
    if scheme not in _ALLOWED_SCHEMES or not host:
        return ""

    netloc = host
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        netloc = f"{host}:{port}"

    path = parts.path or "/"
    if len(path) > 1:
        path = path.rstrip("/") or "/"

    query = parts.query if keep_query else ""
    return urlunsplit((scheme, netloc, path, query, ""))


def origin_of(url: str) -> str:
    """
    Return the homepage URL (`scheme://host/`) of a normalized `url`.
    """

    if not url:
        return ""
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return ""
    return urlunsplit((parts.scheme, parts.netloc, "/", "", ""))


def host_of(url: str) -> str:
    """
    Return the lowercased host of `url` without port.
    """

    try:
        return (urlsplit(url if "://" in url else f"http://{url}").hostname or "").lower()
    except ValueError:
        return ""


def domain_of(url: str) -> str:
    """
    Return the registrable-looking domain of `url` (host without `www.`).
    """

    host = host_of(url)
    return host[4:] if host.startswith("www.") else host


def same_site(url: str, host: str) -> bool:
    """
    Return whether `url` belongs to `host`, ignoring a leading `www.`.
    """

    return bool(host) and domain_of(url) == domain_of(host)


def resolve_link(base_url: str, href: str) -> str:
    """
    Resolve `href` against `base_url` and normalize the result.

    Non-navigational links (mailto, tel, javascript, fragments) resolve to
    an empty string.
    """

    candidate = (href or "").strip()
    if not candidate or candidate.startswith("#"):
        return ""
    lowered = candidate.lower()
    if lowered.startswith(("mailto:", "tel:", "javascript:", "data:", "sms:")):
        return ""
    return normalize_url(urljoin(base_url, candidate))


def path_depth(url: str) -> int:
    """
    Count non-empty path segments of `url`.
    """

    try:
        path = urlsplit(url).path
    except ValueError:
        return 0
    return len([segment for segment in path.split("/") if segment])
