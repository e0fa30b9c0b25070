"""
outreach/store.py

Per-(segment, channel) trial statistics for the channel bandit.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass
class BanditArmStats:
    """
    Counters for one channel in one segment. Mutated only by `record`.
    """

    trials: int = 0
    successes: int = 0
    last_at: int | None = None

    @property
    def success_rate(self) -> float:
        return self.successes / self.trials if self.trials > 0 else 0.0

    @property
    def posterior_mean(self) -> float:
        # Beta(1, 1) prior.
        return (self.successes + 1) / (self.trials + 2)


class ArmStatsStore:
    """
    In-memory arm statistics with one lock per segment.

    Stats are created lazily on first report and never deleted.
    """

    def __init__(self) -> None:
        self._segments: dict[str, dict[str, BanditArmStats]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def lock_for(self, segment: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(segment)
            if lock is None:
                lock = threading.Lock()
                self._locks[segment] = lock
            return lock

    def snapshot(self, segment: str) -> dict[str, BanditArmStats]:
        """
        Return a copy of the segment's stats keyed by channel.
        """

        with self.lock_for(segment):
            arms = self._segments.get(segment, {})
            return {
                channel: BanditArmStats(trials=stats.trials, successes=stats.successes, last_at=stats.last_at)
                for channel, stats in arms.items()
            }

    def record(self, segment: str, channel: str, success: bool, at_ms: int) -> BanditArmStats:
        with self.lock_for(segment):
            arms = self._segments.setdefault(segment, {})
            stats = arms.setdefault(channel, BanditArmStats())
            stats.trials += 1
            if success:
                stats.successes += 1
            stats.last_at = at_ms
            return BanditArmStats(trials=stats.trials, successes=stats.successes, last_at=stats.last_at)
