"""
Discovery layer exports.
"""

from leadgen.discovery.aggregator import FREE_FIRST_PLAN, SearchAggregator
from leadgen.discovery.query_composer import QueryComposer
from leadgen.discovery.rate_gate import RateCounterStore, RateDecision, RateGate, acquire_slot

__all__ = [
    "FREE_FIRST_PLAN",
    "QueryComposer",
    "RateCounterStore",
    "RateDecision",
    "RateGate",
    "SearchAggregator",
    "acquire_slot",
]
