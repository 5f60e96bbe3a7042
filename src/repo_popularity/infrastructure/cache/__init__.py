"""
Cache Infrastructure

Provides the in-memory result cache for ranked searches.
"""

from __future__ import annotations

from repo_popularity.infrastructure.cache.result_cache import (
    CacheStats,
    ResultCache,
)

__all__ = [
    "CacheStats",
    "ResultCache",
]
