"""
scoring/dimensions.py

Maps signal, crawl and search outputs onto the scoring dimensions.
"""

from __future__ import annotations

import re

from leadgen.domain.lead_query import LeadQuery
from leadgen.domain.search import LeadCandidate
from leadgen.scraping.types import CrawlResult
from scoring.normalizer import ScoreNormalizer
from signals.registry import RegistryRun

MAX_SEARCH_SCORE = 1.25

PARKED_MARKERS = re.compile(
    r"\b(this\s+domain\s+(?:is|may\s+be)\s+for\s+sale|buy\s+this\s+domain|domain\s+parking|parked\s+free|"
    r"coming\s+soon|under\s+construction|account\s+suspended)\b",
    re.IGNORECASE,
)
DIRECTORY_MARKERS = re.compile(
    r"\b(top\s+\d+\s+\w+|list\s+of\s+(?:suppliers|manufacturers|companies)|compare\s+suppliers|"
    r"supplier\s+directory|business\s+directory|yellow\s+pages|claim\s+this\s+listing)\b",
    re.IGNORECASE,
)


def _mentions(text: str, term: str) -> bool:
    return bool(term) and re.search(rf"\b{re.escape(term.lower())}\b", text) is not None


def keyword_coverage(terms: tuple[str, ...], lowered_text: str) -> float:
    """Share of ``terms`` mentioned in ``lowered_text``."""
    cleaned = [term.strip().lower() for term in terms if term.strip()]
    found = sum(1 for term in cleaned if _mentions(lowered_text, term))
    return ScoreNormalizer.coverage(found, len(cleaned))


def risk_value(text: str, crawl: CrawlResult | None) -> float:
    """Risk in [0, 1] from parked/directory markers and crawl health."""
    n = ScoreNormalizer
    parked = len(PARKED_MARKERS.findall(text[:200_000]))
    directory = len(DIRECTORY_MARKERS.findall(text[:200_000]))
    risk = 0.6 * (1 - 0.5**parked) + 0.3 * (1 - 0.5**directory)

    if crawl is None or crawl.pages_fetched == 0:
        risk += 0.5
    else:
        attempts = crawl.pages_fetched + crawl.failed_pages
        risk += 0.3 * n.coverage(crawl.failed_pages, attempts)
    return round(n.clamp(risk), 4)


def build_dimensions(
    query: LeadQuery,
    candidate: LeadCandidate,
    crawl: CrawlResult | None,
    signals: RegistryRun,
) -> dict[str, float]:
    """Return dimension name to value in [0, 1].

    A dimension backed by a failed extractor is left out, which lowers the
    candidate's completeness instead of scoring it as zero evidence.
    """
    n = ScoreNormalizer
    scores = signals.scores
    text_parts = [candidate.title, candidate.snippet]
    if crawl is not None:
        text_parts.append(crawl.combined_text)
    lowered = " ".join(part for part in text_parts if part).lower()

    dimensions: dict[str, float] = {}

    if "demand" in scores or "hiring" in scores:
        intent_hits = keyword_coverage(query.intent_hints, lowered)
        dimensions["intent"] = n.clamp(
            0.65 * scores.get("demand", 0.0) + 0.35 * scores.get("hiring", 0.0) + 0.15 * intent_hits
        )

    kw_cover = keyword_coverage(query.product_keywords, lowered) if query.product_keywords else 0.5
    relevance = 0.0
    if crawl is not None and crawl.pages:
        relevance = sum(page.relevance_score for page in crawl.pages) / len(crawl.pages)
    dimensions["fit"] = n.clamp(0.7 * kw_cover + 0.3 * relevance)

    if "contactability" in scores:
        dimensions["reach"] = scores["contactability"]

    if "geo" in scores:
        if query.geos:
            dimensions["presence"] = n.clamp(0.6 * scores["geo"] + 0.4 * keyword_coverage(query.geos, lowered))
        else:
            dimensions["presence"] = scores["geo"]

    if "partners" in scores:
        dimensions["network"] = scores["partners"]

    dimensions["discovery"] = n.normalize_positive(candidate.search_score, MAX_SEARCH_SCORE)
    dimensions["risk"] = risk_value(lowered, crawl)
    return {key: round(value, 4) for key, value in dimensions.items()}
