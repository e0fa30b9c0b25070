"""
Storage interface for recently-discovered domains.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime, timedelta


class SeenDomainStore(ABC):
    """
    Remembers when a domain was last surfaced so repeat runs can skip it.
    """

    @abstractmethod
    def was_seen_within(self, domain: str, window: timedelta, now: datetime | None = None) -> bool:
        """
        Return whether `domain` was marked seen within `window` before `now`.
        """

    @abstractmethod
    def mark_seen(self, domains: Iterable[str], now: datetime | None = None) -> int:
        """
        Record `domains` as seen at `now` and return how many were written.
        """
