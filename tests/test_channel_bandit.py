"""
tests/test_channel_bandit.py

Unit tests for ChannelBandit and segment keys.

Coverage
--------
- Minimum-trial exploration order
- Cooldown after a report
- Blocked channels and the all-excluded case
- UCB1 exploitation once every channel is tried
- choose() never mutates stats
- Segment isolation and current_rates
- Segment key formatting and size bands
"""

from __future__ import annotations

import math

import pytest

from outreach.bandit import BanditOptions, ChannelBandit, ucb1
from outreach.segments import build_segment_key, company_size_band
from outreach.store import BanditArmStats

CHANNELS = ("email", "linkedin", "phone")
SEGMENT = "US:NJ:stretch wrap:smb"


class Clock:
    def __init__(self, now_ms: int = 1_000_000) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms


@pytest.fixture()
def clock() -> Clock:
    return Clock()


@pytest.fixture()
def bandit(clock: Clock) -> ChannelBandit:
    return ChannelBandit(clock_ms=clock)


# ---------------------------------------------------------------------------
# Exploration and cooldown
# ---------------------------------------------------------------------------


class TestExploration:
    def test_under_tried_channels_are_picked_in_order(self, bandit: ChannelBandit) -> None:
        options = BanditOptions(cooldown_ms=0, min_trials=1)
        picks = []
        for _ in CHANNELS:
            choice = bandit.choose(SEGMENT, CHANNELS, options)
            picks.append(choice.chosen)
            assert choice.reason == "explore_min_trials"
            bandit.report(SEGMENT, choice.chosen, "no_reply")
        assert picks == ["email", "linkedin", "phone"]

    def test_choose_does_not_change_stats(self, bandit: ChannelBandit) -> None:
        for _ in range(3):
            assert bandit.choose(SEGMENT, CHANNELS).chosen == "email"
        assert bandit.current_rates(SEGMENT) == {}

    def test_cooldown_excludes_recent_channel(self, bandit: ChannelBandit, clock: Clock) -> None:
        options = BanditOptions(cooldown_ms=60_000, min_trials=0)
        bandit.report(SEGMENT, "email", "reply")

        clock.now_ms += 30_000
        assert bandit.choose(SEGMENT, ["email"], options).chosen is None

        clock.now_ms += 30_000
        assert bandit.choose(SEGMENT, ["email"], options).chosen == "email"

    def test_blocked_channels(self, bandit: ChannelBandit) -> None:
        options = BanditOptions(blocked=("EMAIL",))
        assert bandit.choose(SEGMENT, CHANNELS, options).chosen == "linkedin"

    def test_all_channels_excluded(self, bandit: ChannelBandit) -> None:
        choice = bandit.choose(SEGMENT, CHANNELS, BanditOptions(blocked=CHANNELS))
        assert choice.chosen is None
        assert choice.ranked == []
        assert choice.reason == "all_channels_excluded"

    def test_empty_channel_list(self, bandit: ChannelBandit) -> None:
        assert bandit.choose(SEGMENT, []).chosen is None


# ---------------------------------------------------------------------------
# UCB1
# ---------------------------------------------------------------------------


class TestUCB1:
    def test_untried_arm_is_infinite(self) -> None:
        assert ucb1(BanditArmStats(), 10, 1.4) == math.inf

    def test_formula(self) -> None:
        stats = BanditArmStats(trials=4, successes=2)
        expected = 0.5 + 1.4 * math.sqrt(math.log(10) / 4)
        assert ucb1(stats, 10, 1.4) == pytest.approx(expected)

    def test_exploits_best_channel(self, bandit: ChannelBandit) -> None:
        options = BanditOptions(cooldown_ms=0, min_trials=2, exploration_c=0.1)
        for _ in range(10):
            bandit.report(SEGMENT, "email", "success")
            bandit.report(SEGMENT, "linkedin", "no_reply")
            bandit.report(SEGMENT, "phone", False)

        choice = bandit.choose(SEGMENT, CHANNELS, options)

        assert choice.chosen == "email"
        assert choice.reason == "ucb1"
        assert [item.channel for item in choice.ranked][0] == "email"
        assert choice.ranked[0].success_rate == 1.0


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


class TestStats:
    def test_segments_are_isolated(self, bandit: ChannelBandit) -> None:
        bandit.report("US:TX:boxes:smb", "email", True)
        assert bandit.current_rates(SEGMENT) == {}
        assert bandit.current_rates("US:TX:boxes:smb")["email"]["trials"] == 1.0

    def test_current_rates(self, bandit: ChannelBandit) -> None:
        bandit.report(SEGMENT, "phone", "booked")
        bandit.report(SEGMENT, "phone", "bounced")
        rates = bandit.current_rates(SEGMENT)
        assert rates == {"phone": {"trials": 2.0, "success_rate": 0.5, "posterior_mean": 0.5}}

    def test_report_returns_updated_stats(self, bandit: ChannelBandit, clock: Clock) -> None:
        stats = bandit.report(SEGMENT, "email", "Reply")
        assert (stats.trials, stats.successes, stats.last_at) == (1, 1, clock.now_ms)


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------


class TestSegments:
    def test_key_format(self) -> None:
        assert build_segment_key("us", "nj", "Stretch Wrap", "SMB") == "US:NJ:stretch wrap:smb"

    def test_defaults_and_colons(self) -> None:
        assert build_segment_key() == "US:NA:general:smb"
        assert build_segment_key(product_tag="a:b").split(":") == ["US", "NA", "a b", "smb"]

    @pytest.mark.parametrize(
        "size,band",
        [(None, "smb"), (-1, "smb"), (5, "micro"), (10, "micro"), (150, "smb"), (900, "mid"), (5000, "enterprise")],
    )
    def test_company_size_band(self, size: int | None, band: str) -> None:
        assert company_size_band(size) == band
