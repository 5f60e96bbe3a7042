"""
Domain Entities

Core business objects for repository search and ranking.
"""

from .repository import (
    MAX_PAGE_SIZE,
    RankedRepository,
    RepositoryMetrics,
    SearchPage,
)

__all__ = [
    "MAX_PAGE_SIZE",
    "RepositoryMetrics",
    "SearchPage",
    "RankedRepository",
]
