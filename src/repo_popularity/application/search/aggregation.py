"""
Aggregation Pipeline - Multi-Page Search, Scoring and Ranking.

Pipeline:
    1. Fetch page 1 (on the caller's task) to learn the total match count
    2. pages_to_fetch = min(ceil(total_count / page_size), max_pages_to_fetch)
    3. Fetch pages 2..pages_to_fetch concurrently, one task per page
    4. Merge pages in page order, score every repository
    5. Stable sort by score, descending

Per-page upstream failures are absorbed by the gateway and show up as fewer
items, never as a pipeline error. ``total_count`` is taken from page 1 only;
later pages do not refresh it.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from repo_popularity.domain.entities import MAX_PAGE_SIZE, SearchPage
from repo_popularity.shared.async_utils import gather_with_errors
from repo_popularity.shared.exceptions import ConfigurationError

if TYPE_CHECKING:
    from repo_popularity.application.search.popularity_scorer import PopularityScorer
    from repo_popularity.domain.entities import RankedRepository
    from repo_popularity.infrastructure.github.gateway import ResilientSearchGateway

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES_TO_FETCH = 5


class AggregationPipeline:
    """
    Orchestrates page fetches and ranks the merged results.

    Example:
        pipeline = AggregationPipeline(gateway, PopularityScorer(config))
        ranked = await pipeline.aggregate("2024-01-01", "python")
    """

    def __init__(
        self,
        gateway: ResilientSearchGateway,
        scorer: PopularityScorer,
        max_pages_to_fetch: int = DEFAULT_MAX_PAGES_TO_FETCH,
        page_size: int = MAX_PAGE_SIZE,
    ) -> None:
        if max_pages_to_fetch < 1:
            raise ConfigurationError(f"max_pages_to_fetch must be >= 1, got {max_pages_to_fetch}")
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ConfigurationError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")

        self._gateway = gateway
        self._scorer = scorer
        self._max_pages_to_fetch = max_pages_to_fetch
        self._page_size = page_size

    @property
    def max_pages_to_fetch(self) -> int:
        return self._max_pages_to_fetch

    @property
    def page_size(self) -> int:
        return self._page_size

    def pages_to_fetch(self, total_count: int) -> int:
        """Number of pages to request for a query with ``total_count`` matches."""
        total_pages = math.ceil(total_count / self._page_size)
        return min(total_pages, self._max_pages_to_fetch)

    async def aggregate(self, date: str, language: str) -> list[RankedRepository]:
        """
        Fetch, score and rank repositories created after ``date`` in ``language``.

        Returns:
            Ranked repositories, highest score first; equal scores keep their
            fetch order. Empty when nothing matched or upstream was unavailable.
        """
        logger.info(f"Starting search for: {language} from {date}")

        first_page = await self._gateway.fetch_page(date, language, 1, self._page_size)
        if first_page.is_empty:
            logger.info(f"No repositories found for {language} from {date}")
            return []

        pages_to_fetch = self.pages_to_fetch(first_page.total_count)
        logger.debug(
            f"total_count={first_page.total_count}, page_size={self._page_size}, "
            f"pages_to_fetch={pages_to_fetch}"
        )

        pages = [first_page]
        if pages_to_fetch > 1:
            pages.extend(await self._fetch_remaining_pages(date, language, pages_to_fetch))

        ranked = [self._scorer.rank(metrics) for page in pages for metrics in page.items]
        # list.sort is stable, also with reverse=True
        ranked.sort(key=lambda repo: repo.popularity_score, reverse=True)

        logger.info(f"Ranked {len(ranked)} repositories for {language} from {date} ({len(pages)} pages)")
        return ranked

    async def _fetch_remaining_pages(self, date: str, language: str, last_page: int) -> list[SearchPage]:
        """Fetch pages 2..last_page concurrently, returned in page order."""
        page_numbers = range(2, last_page + 1)
        results = await gather_with_errors(
            *(self._gateway.fetch_page(date, language, page, self._page_size) for page in page_numbers),
            return_exceptions=True,
        )

        pages: list[SearchPage] = []
        for page_number, result in zip(page_numbers, results, strict=True):
            if isinstance(result, Exception):
                logger.error(f"Error fetching page {page_number}: {result}")
                pages.append(SearchPage.empty())
            else:
                pages.append(result)
        return pages
