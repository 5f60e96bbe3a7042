"""
GitHub Repository Search Client

Implements RepositorySearchPort on the GitHub REST search API.

API Documentation: https://docs.github.com/en/rest/search/search#search-repositories

Query pattern: ``created:>YYYY-MM-DD language:LANG``, sorted by stars
descending, paginated with ``per_page`` (max 100) and ``page``.
"""

from __future__ import annotations

import logging

import httpx

from repo_popularity.domain.entities import MAX_PAGE_SIZE, SearchPage
from repo_popularity.domain.ports import RepositorySearchPort
from repo_popularity.infrastructure.github.base_client import BaseAPIClient

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
SEARCH_REPOSITORIES_PATH = "/search/repositories"


def build_search_query(created_after: str, language: str) -> str:
    """GitHub search qualifier string for repositories created after a date."""
    return f"created:>{created_after} language:{language}"


class GitHubSearchClient(BaseAPIClient, RepositorySearchPort):
    """
    GitHub REST search client.

    Usage:
        async with GitHubSearchClient(token="ghp_...") as client:
            page = await client.search_repositories("2024-01-01", "python", 1, 100)
    """

    _service_name = "GitHub"

    def __init__(
        self,
        base_url: str = GITHUB_API_BASE,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize client.

        Args:
            base_url: GitHub REST base URL (GitHub Enterprise hosts differ)
            token: Optional bearer token; blank tokens are ignored
            timeout: Request timeout in seconds
            transport: Optional httpx transport override
        """
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        if token and token.strip():
            headers["Authorization"] = f"Bearer {token.strip()}"

        super().__init__(
            base_url=base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )
        self._authenticated = "Authorization" in headers

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    async def search_repositories(
        self,
        created_after: str,
        language: str,
        page: int,
        per_page: int,
    ) -> SearchPage:
        """
        Fetch one page of repositories created after a date.

        Args:
            created_after: Cutoff date formatted YYYY-MM-DD
            language: Language qualifier, passed through verbatim
            page: 1-based page number
            per_page: Page size, capped at 100

        Returns:
            SearchPage with the upstream total count and this page's items
        """
        params = {
            "q": build_search_query(created_after, language),
            "sort": "stars",
            "order": "desc",
            "per_page": min(per_page, MAX_PAGE_SIZE),
            "page": page,
        }
        payload = await self._make_request(SEARCH_REPOSITORIES_PATH, params=params)
        result = SearchPage.from_api(payload)

        logger.debug(
            f"GitHub search page {page} for {params['q']!r}: "
            f"{len(result.items)} items, total_count={result.total_count}"
        )
        return result
