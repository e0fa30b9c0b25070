"""
Search result contract shared by provider adapters and the aggregator.
"""

from __future__ import annotations

from dataclasses import dataclass

from leadgen.urls import domain_of


@dataclass(frozen=True)
class SearchResult:
    """
    One normalized hit from a search backend.

    Adapters create results with `rank=0` and `score=0.0`; the aggregator
    assigns both exactly once while merging.
    """

    url: str
    title: str = ""
    snippet: str = ""
    source_provider_id: str = ""
    rank: int = 0
    score: float = 0.0
    query: str = ""

    @property
    def domain(self) -> str:
        return domain_of(self.url)


@dataclass(frozen=True)
class LeadCandidate:
    """
    A discovered organization, keyed by domain, ready for crawling and scoring.
    """

    domain: str
    url: str
    title: str = ""
    snippet: str = ""
    source_provider_id: str = ""
    search_score: float = 0.0
    search_rank: int = 0

    @classmethod
    def from_result(cls, result: SearchResult) -> LeadCandidate:
        return cls(
            domain=result.domain,
            url=result.url,
            title=result.title,
            snippet=result.snippet,
            source_provider_id=result.source_provider_id,
            search_score=result.score,
            search_rank=result.rank,
        )
