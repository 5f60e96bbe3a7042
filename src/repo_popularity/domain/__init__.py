"""
Domain Layer - Core Business Logic

Contains:
- entities: Core domain entities (RepositoryMetrics, SearchPage, RankedRepository)
- ports: Abstract upstream search capability
"""

from .entities import (
    MAX_PAGE_SIZE,
    RankedRepository,
    RepositoryMetrics,
    SearchPage,
)
from .ports import RepositorySearchPort

__all__ = [
    "MAX_PAGE_SIZE",
    "RepositoryMetrics",
    "SearchPage",
    "RankedRepository",
    "RepositorySearchPort",
]
