"""
signals/partners.py

Ecosystem signals: co-packers, distributors, 3PLs, retailers, associations
and "trusted by" brand lists.
"""

from __future__ import annotations

import re

from signals.base import SignalExtractor, SignalOutput
from signals.text import WeightedPattern, clamp01, score_patterns, visible_text

# Relative kind weights; normalized so every kind at saturation sums to 1.
KIND_WEIGHTS: dict[str, float] = {
    "copacker": 3.0,
    "distributor": 2.0,
    "logistics": 2.0,
    "retailer": 2.0,
    "association": 1.0,
    "brand": 1.0,
}
_TOTAL_WEIGHT = sum(KIND_WEIGHTS.values())

_KIND_PATTERNS: dict[str, tuple[str, str]] = {
    "copacker": (
        r"\b(co-?packers?|co-?packing|contract\s+(?:packaging|packer|manufactur\w*)|private\s+label|toll\s+manufactur\w*)\b",
        "co-packer",
    ),
    "distributor": (
        r"\b(distributors?|wholesalers?|dealer\s+network|authori[sz]ed\s+(?:dealer|reseller)s?)\b",
        "distributor",
    ),
    "logistics": (
        r"\b(3pl|third[-\s]party\s+logistics|fulfil{1,2}ment\s+(?:center|partner|services)|warehousing)\b",
        "3PL/logistics",
    ),
    "retailer": (
        r"\b(retailers?|stockists?|available\s+at|sold\s+(?:at|in)\s+(?:stores|retailers))\b",
        "retailer",
    ),
    "association": (
        r"\b(member\s+of|association|certified\s+by|accredited|iso\s+9001|brc|sqf)\b",
        "association/certification",
    ),
    "brand": (
        r"\b(trusted\s+by|our\s+clients|our\s+customers\s+include|brands\s+we\s+(?:work\s+with|serve)|partners?\s+include)\b",
        "brand references",
    ),
}

PATTERNS: tuple[WeightedPattern, ...] = tuple(
    WeightedPattern(kind, re.compile(source, re.IGNORECASE), KIND_WEIGHTS[kind] / _TOTAL_WEIGHT, label)
    for kind, (source, label) in _KIND_PATTERNS.items()
)


class PartnersExtractor(SignalExtractor):
    key = "partners"

    def extract(self, text: str) -> SignalOutput:
        raw = text or ""
        total, reasons, hits = score_patterns(raw, visible_text(raw), PATTERNS)
        kinds = [kind for kind, count in hits.items() if count > 0]
        return SignalOutput(score=clamp01(total), reasons=tuple(reasons), details={"kinds": kinds, "hits": hits})
