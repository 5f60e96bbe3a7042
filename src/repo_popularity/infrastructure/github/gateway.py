"""
Resilient Search Gateway

Wraps a RepositorySearchPort with the shared circuit breaker. A page that
cannot be fetched, because the circuit is open or the upstream call failed,
degrades to an empty page so one bad page never aborts an aggregation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from repo_popularity.domain.entities import MAX_PAGE_SIZE, SearchPage
from repo_popularity.shared.exceptions import (
    APIError,
    CircuitOpenError,
    DataError,
)

if TYPE_CHECKING:
    from repo_popularity.domain.ports import RepositorySearchPort
    from repo_popularity.shared.async_utils import CircuitBreaker

logger = logging.getLogger(__name__)


class ResilientSearchGateway:
    """
    Circuit-breaker protected page fetches.

    Every delegated call outcome is recorded by the breaker, which is shared
    by all callers of the same upstream endpoint.

    Example:
        gateway = ResilientSearchGateway(client, CircuitBreaker(name="github-search"))
        page = await gateway.fetch_page("2024-01-01", "python", 1, 100)
    """

    def __init__(self, port: RepositorySearchPort, circuit_breaker: CircuitBreaker) -> None:
        self._port = port
        self._circuit_breaker = circuit_breaker

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    async def fetch_page(
        self,
        date: str,
        language: str,
        page_number: int,
        page_size: int,
    ) -> SearchPage:
        """
        Fetch one page, degrading to ``SearchPage.empty()`` on any upstream failure.

        Raises:
            ValueError: If page_number < 1 or page_size outside 1..100
        """
        if page_number < 1:
            raise ValueError(f"page_number must be >= 1, got {page_number}")
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")

        try:
            async with self._circuit_breaker:
                return await self._port.search_repositories(date, language, page_number, page_size)
        except CircuitOpenError as e:
            logger.warning(
                f"Circuit open, skipping search page {page_number} "
                f"[date={date}, lang={language}] (retry in {e.context.retry_after:.1f}s)"
            )
        except (APIError, DataError) as e:
            logger.error(
                f"Search fallback for page {page_number} "
                f"[date={date}, lang={language}, page_size={page_size}]: {e.to_dict()}"
            )
        except Exception as e:
            logger.exception(
                f"Unexpected error fetching page {page_number} [date={date}, lang={language}]: {e}"
            )
        return SearchPage.empty()
