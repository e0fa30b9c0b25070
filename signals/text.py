"""
signals/text.py

Shared helpers for pattern-counting extractors.

Every pattern contributes `weight * (1 - decay ** hits)`: the first hit
earns half the weight (at the default decay) and repeats add less and less,
so a page that repeats one phrase fifty times cannot max out a signal.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from bs4 import BeautifulSoup

DEFAULT_DECAY = 0.5
MAX_COUNTED_HITS = 200

_TAG_HINT = re.compile(r"<[a-zA-Z!/][^>]*>")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class WeightedPattern:
    """
    One named pattern with its weight and the reason label it produces.
    """

    name: str
    pattern: re.Pattern[str]
    weight: float
    label: str
    on_raw: bool = False


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def saturate(hits: int, weight: float, decay: float = DEFAULT_DECAY) -> float:
    """
    Saturating contribution of `hits` occurrences of a `weight` pattern.
    """

    if hits <= 0 or weight <= 0:
        return 0.0
    return weight * (1.0 - decay**hits)


def count_matches(pattern: re.Pattern[str], text: str, cap: int = MAX_COUNTED_HITS) -> int:
    count = 0
    for _match in pattern.finditer(text):
        count += 1
        if count >= cap:
            break
    return count


def looks_like_html(text: str) -> bool:
    return bool(_TAG_HINT.search(text[:5000]))


def visible_text(raw: str) -> str:
    """
    Return whitespace-collapsed visible text, stripping markup when present.
    """

    if not raw:
        return ""
    if not looks_like_html(raw):
        return _WHITESPACE.sub(" ", raw).strip()
    soup = BeautifulSoup(raw, "html.parser")
    for node in soup(("script", "style", "noscript", "template")):
        node.decompose()
    return _WHITESPACE.sub(" ", soup.get_text(" ", strip=True)).strip()


def _flatten_graph(value: Any) -> Iterator[dict[str, Any]]:
    if isinstance(value, list):
        for item in value:
            yield from _flatten_graph(item)
    elif isinstance(value, dict):
        graph = value.get("@graph")
        if graph is not None:
            yield from _flatten_graph(graph)
        else:
            yield value


def jsonld_items(raw: str) -> list[dict[str, Any]]:
    """
    Parse every JSON-LD block in `raw` and return flattened item dicts.

    Invalid blocks are ignored.
    """

    if "ld+json" not in raw:
        return []
    soup = BeautifulSoup(raw, "html.parser")
    items: list[dict[str, Any]] = []
    for script in soup.find_all("script", attrs={"type": re.compile(r"ld\+json", re.IGNORECASE)}):
        body = (script.string or script.get_text() or "").strip()
        if not body:
            continue
        try:
            parsed = json.loads(body)
        except ValueError:
            continue
        items.extend(_flatten_graph(parsed))
    return items


def has_type(item: dict[str, Any], type_name: str) -> bool:
    declared = item.get("@type")
    wanted = type_name.lower()
    if isinstance(declared, str):
        return declared.lower() == wanted
    if isinstance(declared, list):
        return any(isinstance(value, str) and value.lower() == wanted for value in declared)
    return False


def score_patterns(
    raw: str,
    text: str,
    patterns: Sequence[WeightedPattern],
    decay: float = DEFAULT_DECAY,
) -> tuple[float, list[str], dict[str, int]]:
    """
    Apply `patterns` and return (summed contribution, reasons, hit counts).

    Reasons are ordered by contribution, largest first.
    """

    total = 0.0
    contributions: list[tuple[float, str]] = []
    hits_by_name: dict[str, int] = {}
    for item in patterns:
        haystack = raw if item.on_raw else text
        hits = count_matches(item.pattern, haystack)
        hits_by_name[item.name] = hits
        if hits == 0:
            continue
        contribution = saturate(hits, item.weight, decay)
        total += contribution
        contributions.append((contribution, f"{item.label} x{hits}" if hits > 1 else item.label))

    contributions.sort(key=lambda pair: pair[0], reverse=True)
    return total, [label for _value, label in contributions], hits_by_name
