"""
Search Application Services

Scoring, multi-page aggregation and the cached popularity service.
"""

from .aggregation import DEFAULT_MAX_PAGES_TO_FETCH, AggregationPipeline
from .popularity_scorer import PopularityScorer, calculate_score, freshness_multiplier
from .service import PopularityService

__all__ = [
    "DEFAULT_MAX_PAGES_TO_FETCH",
    "AggregationPipeline",
    "PopularityScorer",
    "PopularityService",
    "calculate_score",
    "freshness_multiplier",
]
