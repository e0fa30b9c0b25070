"""
leadgen/discovery/query_composer.py

Expands a LeadQuery into an ordered, deduplicated list of search strings.

The composer is pure: the same query and cap always yield the same list in
the same order, which keeps provider call order reproducible across runs.
"""

from __future__ import annotations

from leadgen.domain.lead_query import LeadQuery

DEFAULT_KEYWORD = "packaging"
DEFAULT_INTENTS: tuple[str, ...] = ("wholesale", "distributor", "supplier", "rfq")

MAX_KEYWORDS = 3
MAX_GEOS = 3
MAX_INTENTS = 4

DEFAULT_MAX_QUERIES = 80
MAX_QUERIES_CEILING = 5000

USAGE_SIGNAL_OVERLAYS: dict[str, str] = {
    "ecom": "site:shopify.com OR site:bigcommerce.com OR site:woocommerce.com",
    "ads": 'adwords OR "advertises"',
    "foodbev": "food brand OR beverage co-packer",
    "beauty": "cosmetics brand packaging",
    "coldchain": "cold chain packaging",
    "industrial": "industrial supply OR MRO distributor",
}

PLATFORM_SITES: dict[str, str] = {
    "shopify": "myshopify.com",
    "bigcommerce": "mybigcommerce.com",
    "woocommerce": "woocommerce.com",
    "etsy": "etsy.com",
    "faire": "faire.com",
    "amazon": "amazon.com",
}


def _normalize(text: str) -> str:
    return " ".join(text.split())


def _capped(values: tuple[str, ...], limit: int) -> list[str]:
    cleaned = [_normalize(value) for value in values]
    return [value for value in cleaned if value][:limit]


class QueryComposer:
    """
    Deterministic query expansion with per-dimension caps and a hard total cap.
    """

    def __init__(self, *, max_queries: int = DEFAULT_MAX_QUERIES) -> None:
        self._max_queries = self.clamp_max_queries(max_queries)

    @staticmethod
    def clamp_max_queries(value: int) -> int:
        try:
            parsed = int(value)
        except (TypeError, ValueError):
            return DEFAULT_MAX_QUERIES
        return min(MAX_QUERIES_CEILING, max(1, parsed))

    def compose(self, query: LeadQuery, max_queries: int | None = None) -> list[str]:
        """
        Expand `query` into search strings.

        Keywords, geographies and intents are capped before combining. The
        keyword x intent x geography combinations come first, followed by
        directory, usage-signal and platform overlays. Entries are
        whitespace-normalized and deduplicated case-insensitively, keeping
        the first spelling seen.
        """

        cap = self._max_queries if max_queries is None else self.clamp_max_queries(max_queries)

        keywords = _capped(query.product_keywords, MAX_KEYWORDS) or [DEFAULT_KEYWORD]
        geos = _capped(query.geos, MAX_GEOS)
        intents = _capped(query.intent_hints, MAX_INTENTS) or list(DEFAULT_INTENTS)

        candidates: list[str] = []
        for keyword in keywords:
            for geo in geos or [""]:
                for intent in intents:
                    candidates.append(f"{keyword} {intent} {geo}")

        candidates.extend(f"{keyword} buyer list" for keyword in keywords)
        candidates.extend(f"{keyword} distributor directory" for keyword in keywords)

        for signal in query.usage_signals:
            overlay = USAGE_SIGNAL_OVERLAYS.get(signal.strip().lower())
            if overlay is None:
                continue
            candidates.extend(f"{keyword} {overlay}" for keyword in keywords)

        for platform in query.platforms:
            name = platform.strip().lower()
            if not name:
                continue
            site = PLATFORM_SITES.get(name)
            restriction = f"site:{site}" if site else name
            candidates.extend(f"{keyword} {restriction}" for keyword in keywords)

        return self._dedupe(candidates)[:cap]

    @staticmethod
    def _dedupe(candidates: list[str]) -> list[str]:
        seen: set[str] = set()
        ordered: list[str] = []
        for candidate in candidates:
            text = _normalize(candidate)
            key = text.lower()
            if not text or key in seen:
                continue
            seen.add(key)
            ordered.append(text)
        return ordered
