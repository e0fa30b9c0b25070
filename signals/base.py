"""
signals/base.py

Extractor contract shared by every signal and by the registry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

MAX_REASONS_PER_SIGNAL = 12


@dataclass(frozen=True)
class SignalOutput:
    """
    Score in [0, 1] plus short human-readable reasons (at most 12).
    """

    score: float
    reasons: tuple[str, ...] = ()
    details: dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "score", max(0.0, min(1.0, float(self.score))))
        object.__setattr__(self, "reasons", tuple(self.reasons)[:MAX_REASONS_PER_SIGNAL])


@dataclass(frozen=True)
class SignalError:
    """
    Recorded in place of an output when an extractor raises.
    """

    error: str


class SignalExtractor(ABC):
    """
    Pure function over raw page text or HTML, identified by a stable key.
    """

    key: str

    @abstractmethod
    def extract(self, text: str) -> SignalOutput:
        """
        Score `text` for this signal.
        """
