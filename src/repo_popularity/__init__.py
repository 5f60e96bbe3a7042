"""
Repo Popularity - Ranked GitHub Repository Search

Finds GitHub repositories created after a date in a given language, fetches
several result pages concurrently and ranks them by a freshness-weighted
popularity score.

Usage:
    from repo_popularity import ApplicationContainer, load_config

    container = ApplicationContainer()
    container.config.from_dict(load_config())

    service = container.popularity_service()
    ranked = await service.get_popular_repositories("2024-01-01", "python")

    for repo in ranked:
        print(f"{repo.full_name}: {repo.popularity_score:.2f}")

Features:
    - Concurrent multi-page aggregation with a configurable page cap
    - Circuit breaker around the GitHub search API with empty-page fallback
    - Single-flight TTL cache per (date, language)
    - FastAPI HTTP endpoint with problem-detail errors
"""

from .config import ScoringConfiguration, load_config
from .container import ApplicationContainer
from .domain import RankedRepository, RepositoryMetrics, SearchPage

__version__ = "1.0.0"

__all__ = [
    "ApplicationContainer",
    "ScoringConfiguration",
    "load_config",
    "RankedRepository",
    "RepositoryMetrics",
    "SearchPage",
]
