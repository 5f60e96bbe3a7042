"""
Popularity Service - cached entry point for ranked repository searches.

Repeated queries for the same (date, language) are served from the result
cache for its TTL, which keeps GitHub API usage (and rate limit exposure) down.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from repo_popularity.application.search.aggregation import AggregationPipeline
    from repo_popularity.domain.entities import RankedRepository
    from repo_popularity.infrastructure.cache import ResultCache

logger = logging.getLogger(__name__)


class PopularityService:
    """Cache → pipeline facade used by the HTTP layer."""

    def __init__(self, pipeline: AggregationPipeline, cache: ResultCache) -> None:
        self._pipeline = pipeline
        self._cache = cache

    @property
    def cache(self) -> ResultCache:
        return self._cache

    async def get_popular_repositories(self, created_after: str, language: str) -> tuple[RankedRepository, ...]:
        """
        Ranked repositories created after ``created_after`` (YYYY-MM-DD) in ``language``.

        Both values are used verbatim as the cache key.
        """
        logger.info(f"Popular repositories requested: language={language!r}, since={created_after}")
        return await self._cache.get_or_compute(
            created_after,
            language,
            lambda: self._pipeline.aggregate(created_after, language),
        )
