"""
Upstream search port.

The application layer depends on this abstraction; the GitHub transport in
``infrastructure.github`` implements it, and tests substitute fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from repo_popularity.domain.entities import SearchPage


class RepositorySearchPort(ABC):
    """Fetches one page of repository search results."""

    @abstractmethod
    async def search_repositories(
        self,
        created_after: str,
        language: str,
        page: int,
        per_page: int,
    ) -> SearchPage:
        """
        Fetch one page of repositories created after ``created_after``.

        Args:
            created_after: Cutoff date formatted YYYY-MM-DD
            language: Language label, passed through verbatim
            page: 1-based page number
            per_page: Page size (at most 100)

        Returns:
            The page and the upstream total match count

        Raises:
            APIError: For transport failures and non-2xx responses
            DataError: For missing resources or undeserializable payloads
        """
        ...

    async def close(self) -> None:
        """Release transport resources."""
