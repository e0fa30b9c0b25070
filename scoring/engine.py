"""
scoring/engine.py

Weighted, explainable lead scoring on a 0-100 scale.

Positive dimensions add to the score, negative-weight dimensions (risk)
subtract from it, and constraint penalties scale the result down.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from scoring.normalizer import ScoreNormalizer

DEFAULT_WEIGHTS: dict[str, float] = {
    "intent": 0.30,
    "fit": 0.30,
    "reach": 0.15,
    "presence": 0.10,
    "network": 0.10,
    "discovery": 0.05,
    "risk": -1.0,
}

MAX_REASONS = 16


# ---------------------------------------------------------------------------
# Grade classification - thresholds are inclusive lower bounds
# ---------------------------------------------------------------------------

_GRADE_THRESHOLDS: tuple[tuple[float, str], ...] = (
    (90.0, "A"),
    (80.0, "B"),
    (70.0, "C"),
    (60.0, "D"),
)


def grade_for(score: float) -> str:
    """Map a score in [0, 100] to a letter grade.

    Args:
        score: Overall score.

    Returns:
        One of "A", "B", "C", "D" or "F".
    """
    for threshold, label in _GRADE_THRESHOLDS:
        if score >= threshold:
            return label
    return "F"


# ---------------------------------------------------------------------------
# Result contract
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScoredCandidate:
    """Scoring outcome for one candidate. Recomputed on every request."""

    candidate: Any
    overall_score: float
    breakdown: dict[str, float]
    grade: str
    reasons: tuple[str, ...] = ()
    penalties: dict[str, float] = field(default_factory=dict)
    completeness: float = 1.0
    recommended_channel: str | None = None

    def with_channel(self, channel: str | None) -> ScoredCandidate:
        return replace(self, recommended_channel=channel)


def normalize_weights(weights: Mapping[str, float]) -> tuple[dict[str, float], dict[str, float]]:
    """Split weights into positive and risk groups, each summing to 1.

    Zero and non-finite weights are dropped.

    Returns:
        ``(positive, risk)`` where risk weights are stored as magnitudes.
    """
    positive = {k: float(w) for k, w in weights.items() if isinstance(w, (int, float)) and math.isfinite(w) and w > 0}
    risk = {k: -float(w) for k, w in weights.items() if isinstance(w, (int, float)) and math.isfinite(w) and w < 0}
    positive_total = sum(positive.values())
    risk_total = sum(risk.values())
    return (
        {k: w / positive_total for k, w in positive.items()} if positive_total > 0 else {},
        {k: w / risk_total for k, w in risk.items()} if risk_total > 0 else {},
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class ScoringEngine:
    """Combines dimension values in [0, 1] into a ScoredCandidate.

    Missing dimensions contribute 0 and lower ``completeness``, the share
    of positive weight that was actually measured.
    """

    def __init__(self, weights: Mapping[str, float] | None = None) -> None:
        self._weights = dict(weights) if weights is not None else dict(DEFAULT_WEIGHTS)

    @property
    def weights(self) -> dict[str, float]:
        return dict(self._weights)

    def score(
        self,
        signals: Mapping[str, float],
        weights: Mapping[str, float] | None = None,
        penalties: Mapping[str, float] | None = None,
        candidate: Any = None,
        extra_reasons: Sequence[str] = (),
    ) -> ScoredCandidate:
        """Score one candidate.

        Args:
            signals: Dimension name to value in [0, 1]. Out-of-range
                values are clamped, non-numeric values count as missing.
            weights: Optional override of the engine's weights.
            penalties: Constraint name to penalty in [0, 1]; the score is
                multiplied by ``(1 - penalty)`` for each.
            candidate: Opaque candidate carried into the result.
            extra_reasons: Reasons appended after the scoring reasons.

        Returns:
            A ScoredCandidate with ``overall_score`` in [0, 100].
        """
        n = ScoreNormalizer
        positive_weights, risk_weights = normalize_weights(weights if weights is not None else self._weights)

        values: dict[str, float] = {}
        for key, value in signals.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                continue
            values[key] = n.clamp(value)

        positive_part = sum(w * values.get(k, 0.0) for k, w in positive_weights.items())
        risk_part = sum(w * values.get(k, 0.0) for k, w in risk_weights.items())
        base_score = n.clamp(100.0 * (positive_part - risk_part), 0.0, 100.0)

        applied: dict[str, float] = {}
        multiplier = 1.0
        for name, penalty in (penalties or {}).items():
            p = n.clamp(penalty)
            if p <= 0:
                continue
            applied[name] = round(p, 4)
            multiplier *= 1.0 - p

        overall = round(n.clamp(base_score * multiplier, 0.0, 100.0), 2)
        completeness = sum(w for k, w in positive_weights.items() if k in values)
        breakdown = {
            key: round(values.get(key, 0.0) * 100.0, 1)
            for key in list(positive_weights) + list(risk_weights)
        }

        return ScoredCandidate(
            candidate=candidate,
            overall_score=overall,
            breakdown=breakdown,
            grade=grade_for(overall),
            reasons=self._reasons(values, positive_weights, risk_weights, applied, extra_reasons),
            penalties=applied,
            completeness=round(completeness, 4),
        )

    @staticmethod
    def _reasons(
        values: Mapping[str, float],
        positive_weights: Mapping[str, float],
        risk_weights: Mapping[str, float],
        penalties: Mapping[str, float],
        extra_reasons: Iterable[str],
    ) -> tuple[str, ...]:
        contributions = sorted(
            ((w * values[k], k) for k, w in positive_weights.items() if values.get(k, 0.0) > 0),
            key=lambda pair: (-pair[0], pair[1]),
        )
        reasons = [f"{key} +{value * 100:.0f}" for value, key in contributions]
        reasons.extend(
            f"{key} -{w * values[key] * 100:.0f}"
            for key, w in sorted(risk_weights.items())
            if values.get(key, 0.0) > 0
        )
        reasons.extend(f"penalty {name} x{1 - p:.2f}" for name, p in sorted(penalties.items()))
        reasons.extend(reason for reason in extra_reasons if reason)
        return tuple(reasons[:MAX_REASONS])


def rank(candidates: Iterable[ScoredCandidate]) -> list[ScoredCandidate]:
    """Order by score desc, then discovery score desc, then domain asc."""

    def sort_key(item: ScoredCandidate) -> tuple[float, float, str]:
        search_score = getattr(item.candidate, "search_score", 0.0) or 0.0
        domain = getattr(item.candidate, "domain", "") or ""
        return (-item.overall_score, -float(search_score), str(domain))

    return sorted(candidates, key=sort_key)
