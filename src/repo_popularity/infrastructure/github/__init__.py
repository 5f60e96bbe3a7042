"""
GitHub Infrastructure

Search transport and the circuit-breaker protected gateway.
"""

from __future__ import annotations

from repo_popularity.infrastructure.github.client import GitHubSearchClient, build_search_query
from repo_popularity.infrastructure.github.gateway import ResilientSearchGateway

__all__ = [
    "GitHubSearchClient",
    "ResilientSearchGateway",
    "build_search_query",
]
