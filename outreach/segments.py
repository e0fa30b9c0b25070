"""
outreach/segments.py

Segment keys used to partition channel statistics.
"""

from __future__ import annotations

DEFAULT_COUNTRY = "US"
DEFAULT_STATE = "NA"
DEFAULT_PRODUCT_TAG = "general"
DEFAULT_COMPANY_SIZE = "smb"

COMPANY_SIZE_BANDS: tuple[tuple[int, str], ...] = (
    (10, "micro"),
    (200, "smb"),
    (1000, "mid"),
)


def _part(value: str | None, default: str) -> str:
    cleaned = " ".join(str(value or "").replace(":", " ").split())
    return cleaned or default


def build_segment_key(
    country: str | None = None,
    state: str | None = None,
    product_tag: str | None = None,
    company_size: str | None = None,
) -> str:
    """
    Return `COUNTRY:STATE:product:size`, e.g. ``US:NJ:stretch wrap:smb``.

    Country and state are upper-cased, the rest lower-cased. Colons inside a
    part are replaced so the key always has exactly four parts.
    """

    return ":".join(
        (
            _part(country, DEFAULT_COUNTRY).upper(),
            _part(state, DEFAULT_STATE).upper(),
            _part(product_tag, DEFAULT_PRODUCT_TAG).lower(),
            _part(company_size, DEFAULT_COMPANY_SIZE).lower(),
        )
    )


def company_size_band(team_size: int | None) -> str:
    """
    Map a head count to a size band; unknown sizes fall back to "smb".
    """

    if team_size is None or team_size < 0:
        return DEFAULT_COMPANY_SIZE
    for upper_bound, label in COMPANY_SIZE_BANDS:
        if team_size <= upper_bound:
            return label
    return "enterprise"
