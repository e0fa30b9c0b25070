"""
leadgen/domain package marker.
"""

from leadgen.domain.lead_query import LeadQuery
from leadgen.domain.search import LeadCandidate, SearchResult

__all__ = [
    "LeadCandidate",
    "LeadQuery",
    "SearchResult",
]
