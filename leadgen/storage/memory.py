"""
Process-local seen-domain store for tests and single-run CLI usage.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from leadgen.storage.base import SeenDomainStore


class InMemorySeenDomainStore(SeenDomainStore):
    def __init__(self) -> None:
        self._last_seen: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def was_seen_within(self, domain: str, window: timedelta, now: datetime | None = None) -> bool:
        key = domain.strip().lower()
        if not key or window <= timedelta(0):
            return False
        current = now or datetime.now(timezone.utc)
        with self._lock:
            last_seen = self._last_seen.get(key)
        return last_seen is not None and current - last_seen <= window

    def mark_seen(self, domains: Iterable[str], now: datetime | None = None) -> int:
        current = now or datetime.now(timezone.utc)
        written = 0
        with self._lock:
            for domain in domains:
                key = domain.strip().lower()
                if not key:
                    continue
                self._last_seen[key] = current
                written += 1
        return written
