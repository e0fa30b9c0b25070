"""
Lead query contract describing the buyer/supplier profile to search for.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _clean_list(values: Any) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        values = [values]
    cleaned: list[str] = []
    for value in values:
        text = " ".join(str(value).split())
        if text:
            cleaned.append(text)
    return tuple(cleaned)


@dataclass(frozen=True)
class LeadQuery:
    """
    Immutable description of the organizations a caller wants to find.

    Lists are stored as tuples so one query can be shared safely between
    threads and reused across runs.
    """

    product_keywords: tuple[str, ...] = ()
    geos: tuple[str, ...] = ()
    intent_hints: tuple[str, ...] = ()
    usage_signals: tuple[str, ...] = ()
    exclude_brands: tuple[str, ...] = ()
    platforms: tuple[str, ...] = ()
    max_team_size: int | None = None
    language: str = "en"
    extras: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_mapping(cls, payload: dict[str, Any]) -> LeadQuery:
        """
        Build a query from loosely-typed input (CLI arguments, JSON bodies).
        """

        max_team_size = payload.get("max_team_size")
        try:
            parsed_team_size = int(max_team_size) if max_team_size is not None else None
        except (TypeError, ValueError):
            parsed_team_size = None

        return cls(
            product_keywords=_clean_list(payload.get("product_keywords")),
            geos=_clean_list(payload.get("geos")),
            intent_hints=_clean_list(payload.get("intent_hints")),
            usage_signals=tuple(item.lower() for item in _clean_list(payload.get("usage_signals"))),
            exclude_brands=_clean_list(payload.get("exclude_brands")),
            platforms=tuple(item.lower() for item in _clean_list(payload.get("platforms"))),
            max_team_size=parsed_team_size,
            language=str(payload.get("language") or "en").strip() or "en",
        )
