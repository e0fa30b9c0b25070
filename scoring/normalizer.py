"""
scoring/normalizer.py

Pure normalization utilities for scoring inputs.
"""

import math


class ScoreNormalizer:
    """Stateless helpers that map raw measurements into [0, 1].

    All methods are pure and deterministic. Non-finite inputs map to 0.0
    so a bad measurement can never push a score out of range.
    """

    @staticmethod
    def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
        """Clamp a value to the inclusive range [lower, upper].

        Args:
            value: The value to clamp.
            lower: Inclusive lower bound. Defaults to 0.0.
            upper: Inclusive upper bound. Defaults to 1.0.

        Returns:
            The clamped value, or ``lower`` when ``value`` is not finite.
        """
        if not isinstance(value, (int, float)) or not math.isfinite(value):
            return lower
        return max(lower, min(upper, float(value)))

    @staticmethod
    def normalize_positive(value: float, max_value: float) -> float:
        """Normalize a non-negative value to [0, 1] given a known upper bound.

        Args:
            value: Raw value, expected >= 0. Negative values clamp to 0.0.
            max_value: Upper bound that maps to 1.0. Must be > 0.

        Returns:
            ``value / max_value`` clamped to [0.0, 1.0].

        Raises:
            ValueError: If ``max_value`` is not strictly positive.
        """
        if max_value <= 0:
            raise ValueError(f"max_value must be > 0, got {max_value}")
        return ScoreNormalizer.clamp(value / max_value)

    @staticmethod
    def coverage(found: int, total: int) -> float:
        """Share of ``total`` items that were found, 0.0 when ``total`` is 0."""
        if total <= 0:
            return 0.0
        return ScoreNormalizer.clamp(found / total)
