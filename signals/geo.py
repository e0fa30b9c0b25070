"""
signals/geo.py

Physical presence: US addresses, state mentions, store locators, hours
and JSON-LD PostalAddress items.
"""

from __future__ import annotations

import re

from signals.base import SignalExtractor, SignalOutput
from signals.text import WeightedPattern, clamp01, has_type, jsonld_items, saturate, score_patterns, visible_text

US_STATES: dict[str, str] = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas", "CA": "California",
    "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware", "FL": "Florida", "GA": "Georgia",
    "HI": "Hawaii", "ID": "Idaho", "IL": "Illinois", "IN": "Indiana", "IA": "Iowa",
    "KS": "Kansas", "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi", "MO": "Missouri",
    "MT": "Montana", "NE": "Nebraska", "NV": "Nevada", "NH": "New Hampshire", "NJ": "New Jersey",
    "NM": "New Mexico", "NY": "New York", "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio",
    "OK": "Oklahoma", "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah", "VT": "Vermont",
    "VA": "Virginia", "WA": "Washington", "WV": "West Virginia", "WI": "Wisconsin", "WY": "Wyoming",
    "DC": "District of Columbia",
}
_STATE_CODES = "|".join(US_STATES)
_STATE_NAMES = "|".join(re.escape(name) for name in US_STATES.values())

CITY_STATE_ZIP = re.compile(rf"\b[A-Z][A-Za-z .'-]{{1,30}},\s*({_STATE_CODES})\.?\s+(\d{{5}})(?:-\d{{4}})?\b")
STATE_NAME = re.compile(rf"\b({_STATE_NAMES})\b")

PATTERNS: tuple[WeightedPattern, ...] = (
    WeightedPattern("city_state_zip", CITY_STATE_ZIP, 0.35, "US street address"),
    WeightedPattern("state_names", STATE_NAME, 0.15, "US state mentioned"),
    WeightedPattern(
        "store_locator",
        re.compile(r"\b(store\s+locator|find\s+a\s+(?:store|dealer|retailer|location)|where\s+to\s+buy|our\s+locations)\b", re.I),
        0.2,
        "store locator",
    ),
    WeightedPattern(
        "visit",
        re.compile(r"\b(get\s+directions|visit\s+us|visit\s+our\s+(?:showroom|warehouse|store)|showroom|hours\s+of\s+operation|opening\s+hours)\b", re.I),
        0.15,
        "visit/directions info",
    ),
    WeightedPattern(
        "locator_url",
        re.compile(r"href=[\"'][^\"']*/(?:locations?|store-locator|stores|find-a-dealer|dealers)(?:[/?#\"']|$)", re.I),
        0.1,
        "locations page link",
        on_raw=True,
    ),
    WeightedPattern("phone_area", re.compile(r"\(\d{3}\)\s*\d{3}[-.\s]\d{4}"), 0.05, "local phone format"),
)

POSTAL_ADDRESS_WEIGHT = 0.3


def detect_states(text: str) -> list[str]:
    """
    Return state codes mentioned in addresses or by full name, sorted.
    """

    found = {match.group(1) for match in CITY_STATE_ZIP.finditer(text)}
    name_to_code = {name.lower(): code for code, name in US_STATES.items()}
    found.update(name_to_code[match.group(1).lower()] for match in STATE_NAME.finditer(text))
    return sorted(found)


class GeoExtractor(SignalExtractor):
    key = "geo"

    def extract(self, text: str) -> SignalOutput:
        raw = text or ""
        visible = visible_text(raw)
        total, reasons, hits = score_patterns(raw, visible, PATTERNS)

        addresses = sum(
            1
            for item in jsonld_items(raw)
            if has_type(item, "PostalAddress") or isinstance(item.get("address"), dict)
        )
        if addresses:
            total += saturate(addresses, POSTAL_ADDRESS_WEIGHT)
            reasons.insert(0, "structured postal address")

        states = detect_states(visible)
        if states:
            reasons.append(f"states: {', '.join(states[:6])}")

        return SignalOutput(
            score=clamp01(total),
            reasons=tuple(reasons),
            details={"states": states, "hits": hits},
        )
