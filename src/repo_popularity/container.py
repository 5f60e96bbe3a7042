"""
Application DI Container (dependency-injector).

Centralizes service creation and lifecycle management. The circuit breaker,
GitHub client, gateway and result cache are Singletons, so one breaker and
one cache are shared by every request in the process.

Usage::

    from repo_popularity.config import load_config
    from repo_popularity.container import ApplicationContainer

    container = ApplicationContainer()
    container.config.from_dict(load_config())

    service = container.popularity_service()

    # In tests, override any provider:
    container.github_client.override(providers.Object(fake_client))
"""

from __future__ import annotations

import logging

from dependency_injector import containers, providers

from repo_popularity.application.search import AggregationPipeline, PopularityScorer, PopularityService
from repo_popularity.config import ScoringConfiguration
from repo_popularity.infrastructure.cache import ResultCache
from repo_popularity.infrastructure.github import GitHubSearchClient, ResilientSearchGateway
from repo_popularity.shared.async_utils import CircuitBreaker

logger = logging.getLogger(__name__)


def _create_github_client(api_url: str, token: str | None, timeout: float) -> GitHubSearchClient:
    """Factory for GitHubSearchClient (blank token means unauthenticated)."""
    client = GitHubSearchClient(base_url=api_url, token=token or None, timeout=timeout)
    logger.info(f"GitHub client for {api_url} ({'authenticated' if client.authenticated else 'anonymous'})")
    return client


class ApplicationContainer(containers.DeclarativeContainer):
    """Central DI container for the Repo Popularity application.

    Manages creation and lifecycle of all core services:
    - ``scoring_config``: validated ScoringConfiguration
    - ``circuit_breaker``: process-wide breaker for the GitHub search endpoint
    - ``github_client`` / ``search_gateway``: transport and its resilient wrapper
    - ``pipeline``: multi-page aggregation and ranking
    - ``result_cache`` / ``popularity_service``: cached entry point
    """

    config = providers.Configuration()

    scoring_config = providers.Singleton(
        ScoringConfiguration.from_dict,
        config.scoring,
    )

    circuit_breaker = providers.Singleton(
        CircuitBreaker,
        name=config.circuit_breaker.name,
        failure_rate_threshold=config.circuit_breaker.failure_rate_threshold,
        minimum_number_of_calls=config.circuit_breaker.minimum_number_of_calls,
        sliding_window_size=config.circuit_breaker.sliding_window_size,
        wait_duration_in_open_state=config.circuit_breaker.wait_duration_in_open_state,
        permitted_calls_in_half_open_state=config.circuit_breaker.permitted_calls_in_half_open_state,
    )

    github_client = providers.Singleton(
        _create_github_client,
        api_url=config.github.api_url,
        token=config.github.token,
        timeout=config.github.timeout,
    )

    search_gateway = providers.Singleton(
        ResilientSearchGateway,
        port=github_client,
        circuit_breaker=circuit_breaker,
    )

    scorer = providers.Singleton(
        PopularityScorer,
        config=scoring_config,
    )

    pipeline = providers.Singleton(
        AggregationPipeline,
        gateway=search_gateway,
        scorer=scorer,
        max_pages_to_fetch=config.github.max_pages_to_fetch,
        page_size=config.github.page_size,
    )

    result_cache = providers.Singleton(
        ResultCache,
        max_size=config.cache.max_size,
        ttl=config.cache.ttl,
    )

    popularity_service = providers.Singleton(
        PopularityService,
        pipeline=pipeline,
        cache=result_cache,
    )


__all__ = ["ApplicationContainer"]
