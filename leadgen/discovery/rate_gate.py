"""
Fixed-window request admission keyed by provider or host.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from leadgen.logging_utils import log_event

logger = logging.getLogger(__name__)

DEFAULT_LOCK_STRIPES = 64


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class RateDecision:
    """
    Admission outcome for one `RateGate.allow` call.
    """

    ok: bool
    remaining: int
    reset_in_ms: int


@dataclass
class _WindowCounter:
    window_start_ms: int
    window_ms: int
    count: int = 0

    def expired(self, now_ms: int) -> bool:
        return now_ms >= self.window_start_ms + self.window_ms


class RateCounterStore:
    """
    Explicit storage for per-key window counters.

    Keys hash onto a fixed pool of lock stripes and each stripe owns the
    counters of its keys. When a key opens a new window, expired counters in
    its stripe are dropped, so memory tracks only keys active in their
    current window. Callers must hold `lock_for(key)` around `get`/`put`.
    """

    def __init__(self, *, stripes: int = DEFAULT_LOCK_STRIPES) -> None:
        size = max(1, int(stripes))
        self._locks = [threading.Lock() for _ in range(size)]
        self._counters: list[dict[str, _WindowCounter]] = [{} for _ in range(size)]

    def __len__(self) -> int:
        return sum(len(counters) for counters in self._counters)

    def _stripe(self, key: str) -> int:
        return hash(key) % len(self._locks)

    def lock_for(self, key: str) -> threading.Lock:
        return self._locks[self._stripe(key)]

    def get(self, key: str) -> _WindowCounter | None:
        return self._counters[self._stripe(key)].get(key)

    def put(self, key: str, counter: _WindowCounter, now_ms: int) -> None:
        counters = self._counters[self._stripe(key)]
        for name in [name for name, existing in counters.items() if existing.expired(now_ms)]:
            del counters[name]
        counters[key] = counter


class RateGate:
    """
    Admit or reject a unit of work under a per-key fixed-window budget.

    The gate never blocks and never raises. Rejected calls do not consume
    budget. Degenerate limits are floored to 1.
    """

    def __init__(
        self,
        *,
        store: RateCounterStore | None = None,
        clock_ms: Callable[[], int] = _now_ms,
    ) -> None:
        self._store = store if store is not None else RateCounterStore()
        self._clock_ms = clock_ms

    def allow(
        self,
        key: str,
        max_per_window: int,
        window_ms: int,
        now: int | None = None,
    ) -> RateDecision:
        limit = max(1, int(max_per_window))
        window = max(1, int(window_ms))
        now_ms = self._clock_ms() if now is None else int(now)
        window_start = (now_ms // window) * window
        reset_in_ms = window_start + window - now_ms

        with self._store.lock_for(key):
            counter = self._store.get(key)
            if counter is None or counter.window_start_ms != window_start:
                counter = _WindowCounter(window_start_ms=window_start, window_ms=window)
                self._store.put(key, counter, now_ms)

            if counter.count < limit:
                counter.count += 1
                return RateDecision(ok=True, remaining=limit - counter.count, reset_in_ms=reset_in_ms)
            return RateDecision(ok=False, remaining=0, reset_in_ms=reset_in_ms)


def acquire_slot(
    gate: RateGate,
    key: str,
    *,
    max_per_window: int,
    window_ms: int,
    max_wait_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """
    Wait for an admission slot on `key`, sleeping until each window resets.

    Returns False once `max_wait_seconds` would be exceeded, so callers can
    degrade instead of busy-looping.
    """

    started = clock()
    while True:
        decision = gate.allow(key, max_per_window, window_ms)
        if decision.ok:
            return True

        elapsed = clock() - started
        wait_seconds = max(0.001, decision.reset_in_ms / 1000.0)
        if elapsed + wait_seconds > max_wait_seconds:
            log_event(
                logger,
                logging.WARNING,
                "rate_gate_wait_exhausted",
                key=key,
                reset_in_ms=decision.reset_in_ms,
                max_wait_seconds=max_wait_seconds,
            )
            return False
        sleep(wait_seconds)
