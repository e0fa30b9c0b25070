"""
outreach/bandit.py

UCB1 channel selection per segment with minimum exploration and cooldowns.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from leadgen.logging_utils import log_event
from outreach.store import ArmStatsStore, BanditArmStats

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_MS = 20 * 60 * 1000
DEFAULT_MIN_TRIALS = 2
DEFAULT_EXPLORATION_C = 1.4

POSITIVE_OUTCOMES = frozenset({"success", "reply", "replied", "booked", "meeting", "won"})


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class BanditOptions:
    cooldown_ms: int = DEFAULT_COOLDOWN_MS
    min_trials: int = DEFAULT_MIN_TRIALS
    exploration_c: float = DEFAULT_EXPLORATION_C
    blocked: tuple[str, ...] = ()


@dataclass(frozen=True)
class RankedChannel:
    channel: str
    score: float
    trials: int
    success_rate: float


@dataclass(frozen=True)
class BanditChoice:
    """
    `chosen` is None when every channel is blocked or cooling down.
    """

    chosen: str | None
    ranked: list[RankedChannel] = field(default_factory=list)
    reason: str = ""


def ucb1(stats: BanditArmStats, total_trials: int, exploration_c: float) -> float:
    if stats.trials <= 0:
        return math.inf
    return stats.success_rate + exploration_c * math.sqrt(math.log(max(1, total_trials)) / stats.trials)


class ChannelBandit:
    """
    Chooses an outreach channel for a segment and learns from reported outcomes.
    """

    def __init__(
        self,
        *,
        store: ArmStatsStore | None = None,
        clock_ms: Callable[[], int] = _now_ms,
    ) -> None:
        self._store = store or ArmStatsStore()
        self._clock_ms = clock_ms

    def choose(
        self,
        segment: str,
        channels: Sequence[str],
        options: BanditOptions | None = None,
        now: int | None = None,
    ) -> BanditChoice:
        options = options or BanditOptions()
        now_ms = self._clock_ms() if now is None else int(now)
        blocked = {channel.strip().lower() for channel in options.blocked}
        stats = self._store.snapshot(segment)

        eligible: list[str] = []
        for channel in dict.fromkeys(channel.strip() for channel in channels if channel.strip()):
            if channel.lower() in blocked:
                continue
            arm = stats.get(channel)
            if arm is not None and arm.last_at is not None and now_ms - arm.last_at < options.cooldown_ms:
                continue
            eligible.append(channel)

        if not eligible:
            log_event(logger, logging.INFO, "bandit_no_eligible_channel", segment=segment, channels=list(channels))
            return BanditChoice(chosen=None, ranked=[], reason="all_channels_excluded")

        arms = {channel: stats.get(channel, BanditArmStats()) for channel in eligible}
        under_tried = sorted(
            (channel for channel in eligible if arms[channel].trials < options.min_trials),
            key=lambda channel: (arms[channel].trials, channel),
        )

        total_trials = max(1, sum(arm.trials for arm in arms.values()))
        ranked = sorted(
            (
                RankedChannel(
                    channel=channel,
                    score=ucb1(arms[channel], total_trials, options.exploration_c),
                    trials=arms[channel].trials,
                    success_rate=round(arms[channel].success_rate, 4),
                )
                for channel in eligible
            ),
            key=lambda item: (-item.score, item.channel),
        )

        if under_tried:
            chosen = under_tried[0]
            reason = "explore_min_trials"
            ranked = [item for item in ranked if item.channel == chosen] + [
                item for item in ranked if item.channel != chosen
            ]
        else:
            chosen = ranked[0].channel
            reason = "ucb1"

        log_event(logger, logging.DEBUG, "bandit_choice", segment=segment, chosen=chosen, reason=reason)
        return BanditChoice(chosen=chosen, ranked=ranked, reason=reason)

    def report(self, segment: str, channel: str, outcome: str | bool, now: int | None = None) -> BanditArmStats:
        """
        Record one outcome. Strings in POSITIVE_OUTCOMES (or True) are successes.
        """

        if isinstance(outcome, bool):
            success = outcome
        else:
            success = str(outcome).strip().lower() in POSITIVE_OUTCOMES
        at_ms = self._clock_ms() if now is None else int(now)
        stats = self._store.record(segment, channel.strip(), success, at_ms)
        log_event(
            logger,
            logging.INFO,
            "bandit_outcome_reported",
            segment=segment,
            channel=channel,
            success=success,
            trials=stats.trials,
        )
        return stats

    def current_rates(self, segment: str) -> dict[str, dict[str, float]]:
        """
        Return trials, raw success rate and Beta(1,1) posterior mean per channel.
        """

        return {
            channel: {
                "trials": float(stats.trials),
                "success_rate": round(stats.success_rate, 4),
                "posterior_mean": round(stats.posterior_mean, 4),
            }
            for channel, stats in sorted(self._store.snapshot(segment).items())
        }
