"""
leadgen/domain/discovery_run.py

Domain models for lead discovery orchestration.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from scoring.engine import ScoredCandidate


@dataclass(frozen=True)
class LeadDiscoveryRun:
    """
    Summary and ranked output of one discovery run.
    """

    queries: list[str]
    results_found: int
    hosts_crawled: int
    crawl_failures: int
    status: str
    candidates: list[ScoredCandidate] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
