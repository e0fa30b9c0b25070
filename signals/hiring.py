"""
signals/hiring.py

Hiring and expansion intent: careers surfaces, ATS platforms, JSON-LD
JobPosting items, salary and remote hints.
"""

from __future__ import annotations

import re

from signals.base import SignalExtractor, SignalOutput
from signals.text import WeightedPattern, clamp01, has_type, jsonld_items, saturate, score_patterns, visible_text

ATS_PLATFORMS: dict[str, str] = {
    "greenhouse": r"greenhouse\.io",
    "lever": r"lever\.co",
    "workable": r"workable\.com",
    "ashby": r"ashbyhq\.com",
    "bamboohr": r"bamboohr\.com",
    "icims": r"icims\.com",
    "taleo": r"taleo\.net",
    "workday": r"myworkdayjobs\.com|workday\.com",
    "smartrecruiters": r"smartrecruiters\.com",
    "jazzhr": r"jazzhr\.com|applytojob\.com",
    "recruitee": r"recruitee\.com",
    "jobvite": r"jobvite\.com",
    "linkedin": r"linkedin\.com/jobs",
}
_ATS_PATTERNS = {name: re.compile(source, re.IGNORECASE) for name, source in ATS_PLATFORMS.items()}

PATTERNS: tuple[WeightedPattern, ...] = (
    WeightedPattern(
        "careers_words",
        re.compile(r"\b(careers?|open positions?|job openings?|we'?re\s+hiring|now\s+hiring|join\s+our\s+team)\b", re.I),
        0.25,
        "careers wording",
    ),
    WeightedPattern(
        "apply_words",
        re.compile(r"\b(apply\s+now|apply\s+today|submit\s+(?:an?\s+)?application)\b", re.I),
        0.15,
        "apply call-to-action",
    ),
    WeightedPattern(
        "careers_url",
        re.compile(r"href=[\"'][^\"']*/(?:careers|jobs|join-our-team|joinus)(?:[/?#\"']|$)", re.I),
        0.2,
        "careers page link",
        on_raw=True,
    ),
    WeightedPattern(
        "posted_recently",
        re.compile(r"\bposted\s+(?:\d{1,3}\s+days?\s+ago|today|yesterday)\b", re.I),
        0.15,
        "recent job post",
    ),
    WeightedPattern(
        "salary",
        re.compile(r"(\bsalary\b|\bpay\s*range\b|\bcompensation\b|\$\d{2,3},\d{3})", re.I),
        0.1,
        "salary details",
    ),
    WeightedPattern("remote", re.compile(r"\b(remote|hybrid)\b", re.I), 0.05, "remote/hybrid roles"),
)

ATS_WEIGHT = 0.3
JOB_POSTING_WEIGHT = 0.35


def detect_platforms(raw: str) -> list[str]:
    return [name for name, pattern in _ATS_PATTERNS.items() if pattern.search(raw)]


class HiringExtractor(SignalExtractor):
    key = "hiring"

    def extract(self, text: str) -> SignalOutput:
        raw = text or ""
        visible = visible_text(raw)
        total, reasons, hits = score_patterns(raw, visible, PATTERNS)

        platforms = detect_platforms(raw)
        if platforms:
            total += saturate(len(platforms), ATS_WEIGHT)
            reasons.insert(0, f"ATS: {', '.join(platforms)}")

        job_postings = sum(1 for item in jsonld_items(raw) if has_type(item, "JobPosting"))
        if job_postings:
            total += saturate(job_postings, JOB_POSTING_WEIGHT)
            reasons.insert(0, f"{job_postings} JobPosting item(s)")

        return SignalOutput(
            score=clamp01(total),
            reasons=tuple(reasons),
            details={"platforms": platforms, "open_roles_hint": job_postings, "hits": hits},
        )
