"""
scoring/constraints.py

Multiplicative penalties for candidates that break the query's constraints.
"""

from __future__ import annotations

import re

from leadgen.domain.lead_query import LeadQuery
from leadgen.domain.search import LeadCandidate

ENTERPRISE_PENALTY = 0.5
OVERSIZED_TEAM_PENALTY = 0.6
EXCLUDED_BRAND_PENALTY = 0.4
OUTSIDE_VERTICAL_PENALTY = 0.3

ENTERPRISE_WORDS = re.compile(
    r"\b(billion|fortune\s+500|nyse|nasdaq|publicly\s+traded|global\s+leader|multinational)\b",
    re.IGNORECASE,
)
MEGA_BRANDS: tuple[str, ...] = ("uline", "amazon", "walmart", "fedex", "ups", "alibaba", "grainger", "costco", "target")
EMPLOYEE_COUNT = re.compile(r"\b(\d{1,3}(?:,\d{3})+|\d{2,6})\+?\s+(?:employees|team\s+members|staff)\b", re.IGNORECASE)

VERTICAL_VOCABULARY: dict[str, re.Pattern[str]] = {
    "ecom": re.compile(r"\b(shop|store|cart|ecommerce|e-commerce|online\s+orders?)\b", re.I),
    "ads": re.compile(r"\b(advertis\w*|campaigns?|sponsored)\b", re.I),
    "foodbev": re.compile(r"\b(food|beverage|snacks?|drinks?|bakery|coffee|brewery)\b", re.I),
    "beauty": re.compile(r"\b(cosmetics?|beauty|skincare|skin\s+care|fragrance)\b", re.I),
    "coldchain": re.compile(r"\b(cold\s+chain|refrigerated|frozen|insulated|temperature[-\s]controlled)\b", re.I),
    "industrial": re.compile(r"\b(industrial|manufactur\w*|mro|machinery|oem)\b", re.I),
}


def _domain_label(domain: str) -> str:
    return domain.split(".")[0] if domain else ""


def looks_enterprise(text: str, domain: str = "") -> bool:
    """
    Return whether the page reads like a very large enterprise.

    Needs a mega-brand domain or at least two distinct enterprise markers.
    """

    if _domain_label(domain.lower()) in MEGA_BRANDS:
        return True
    markers = {match.group(1).lower() for match in ENTERPRISE_WORDS.finditer(text[:200_000])}
    return len(markers) >= 2


def largest_team_size(text: str) -> int | None:
    sizes: list[int] = []
    for match in EMPLOYEE_COUNT.finditer(text[:200_000]):
        try:
            sizes.append(int(match.group(1).replace(",", "")))
        except ValueError:
            continue
    return max(sizes) if sizes else None


def constraint_penalties(query: LeadQuery, candidate: LeadCandidate, text: str) -> dict[str, float]:
    """
    Return constraint name to penalty in [0, 1] for one candidate.
    """

    penalties: dict[str, float] = {}
    lowered = text.lower()

    if query.max_team_size is not None:
        team_size = largest_team_size(text)
        if team_size is not None and team_size > query.max_team_size:
            penalties["team_size"] = OVERSIZED_TEAM_PENALTY
        elif looks_enterprise(text, candidate.domain):
            penalties["enterprise"] = ENTERPRISE_PENALTY

    brands = [brand.lower() for brand in query.exclude_brands if brand.strip()]
    if brands and any(brand in lowered or brand in candidate.domain for brand in brands):
        penalties["excluded_brand"] = EXCLUDED_BRAND_PENALTY

    verticals = [VERTICAL_VOCABULARY[signal] for signal in query.usage_signals if signal in VERTICAL_VOCABULARY]
    if verticals and not any(pattern.search(text) for pattern in verticals):
        penalties["outside_vertical"] = OUTSIDE_VERTICAL_PENALTY

    return penalties
