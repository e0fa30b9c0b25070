"""
signals/registry.py

Static registry of signal extractors.

Extractors run independently: one raising only turns its own entry into a
SignalError, the rest of the run is unaffected.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from leadgen.logging_utils import log_event
from signals.base import SignalError, SignalExtractor, SignalOutput
from signals.contactability import ContactabilityExtractor
from signals.demand import DemandExtractor
from signals.geo import GeoExtractor
from signals.hiring import HiringExtractor
from signals.partners import PartnersExtractor

logger = logging.getLogger(__name__)

MAX_RUN_REASONS = 16


@dataclass(frozen=True)
class RegistryRun:
    """
    Per-key results of one `SignalRegistry.run_all` call.
    """

    results: dict[str, SignalOutput | SignalError] = field(default_factory=dict)
    reasons: tuple[str, ...] = ()

    @property
    def scores(self) -> dict[str, float]:
        return {key: value.score for key, value in self.results.items() if isinstance(value, SignalOutput)}

    @property
    def errors(self) -> dict[str, str]:
        return {key: value.error for key, value in self.results.items() if isinstance(value, SignalError)}


def default_extractors() -> list[SignalExtractor]:
    return [
        HiringExtractor(),
        GeoExtractor(),
        ContactabilityExtractor(),
        PartnersExtractor(),
        DemandExtractor(),
    ]


class SignalRegistry:
    """
    Maps stable keys to extractors, populated once at construction.
    """

    def __init__(self, extractors: Iterable[SignalExtractor] | None = None) -> None:
        self._extractors: dict[str, SignalExtractor] = {}
        for extractor in extractors if extractors is not None else default_extractors():
            if extractor.key in self._extractors:
                raise ValueError(f"Duplicate signal extractor key: {extractor.key}")
            self._extractors[extractor.key] = extractor

    def keys(self) -> list[str]:
        return list(self._extractors)

    def get(self, key: str) -> SignalExtractor | None:
        return self._extractors.get(key)

    def run_all(self, text: str, only_keys: Sequence[str] | None = None) -> RegistryRun:
        """
        Run selected extractors (all by default) over `text`.

        Unknown keys in `only_keys` are ignored.
        """

        selected = self.keys() if only_keys is None else [key for key in only_keys if key in self._extractors]
        results: dict[str, SignalOutput | SignalError] = {}
        reasons: list[str] = []

        for key in selected:
            if key in results:
                continue
            try:
                output = self._extractors[key].extract(text or "")
            except Exception as exc:
                results[key] = SignalError(error=f"{type(exc).__name__}: {exc}")
                reasons.append(f"{key}:error")
                log_event(logger, logging.WARNING, "signal_extractor_failed", signal=key, error=str(exc))
                continue

            results[key] = output
            percent = round(output.score * 100)
            headline = f"{key}:{percent}%"
            reasons.append(f"{headline} - {output.reasons[0]}" if output.reasons else headline)

        return RegistryRun(results=results, reasons=tuple(reasons[:MAX_RUN_REASONS]))
