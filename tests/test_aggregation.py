"""Tests for AggregationPipeline: page planning, concurrency, merging and ranking."""

import asyncio

import pytest
from conftest import FIXED_NOW, FakeSearchPort, days_ago, make_metrics

from repo_popularity.application.search import AggregationPipeline, PopularityScorer
from repo_popularity.domain.entities import SearchPage
from repo_popularity.infrastructure.github import ResilientSearchGateway
from repo_popularity.shared.async_utils import CircuitBreaker
from repo_popularity.shared.exceptions import ConfigurationError, ServiceUnavailableError


def _page(total_count, *metrics):
    return SearchPage(total_count=total_count, items=tuple(metrics))


def _pipeline(port, scoring_config, max_pages_to_fetch=5, page_size=100, breaker=None):
    gateway = ResilientSearchGateway(port, breaker or CircuitBreaker(minimum_number_of_calls=50, sliding_window_size=50))
    scorer = PopularityScorer(scoring_config, clock=lambda: FIXED_NOW)
    return AggregationPipeline(gateway, scorer, max_pages_to_fetch=max_pages_to_fetch, page_size=page_size)


class TestPagesToFetch:
    @pytest.mark.parametrize(
        "total_count,page_size,max_pages,expected",
        [
            (0, 100, 5, 0),
            (1, 100, 5, 1),
            (100, 100, 5, 1),
            (101, 100, 5, 2),
            (250, 100, 5, 3),
            (10_000, 100, 5, 5),
            (45, 10, 3, 3),
        ],
    )
    def test_capped_ceiling(self, scoring_config, total_count, page_size, max_pages, expected):
        pipeline = _pipeline(FakeSearchPort(), scoring_config, max_pages, page_size)
        assert pipeline.pages_to_fetch(total_count) == expected

    @pytest.mark.parametrize("kwargs", [{"max_pages_to_fetch": 0}, {"page_size": 0}, {"page_size": 101}])
    def test_invalid_settings(self, scoring_config, kwargs):
        with pytest.raises(ConfigurationError):
            _pipeline(FakeSearchPort(), scoring_config, **kwargs)


class TestAggregate:
    async def test_empty_first_page_stops(self, scoring_config):
        port = FakeSearchPort({1: _page(0)})
        pipeline = _pipeline(port, scoring_config)

        assert await pipeline.aggregate("2024-01-01", "python") == []
        assert port.pages_requested == [1]

    async def test_first_page_failure_returns_empty(self, scoring_config):
        port = FakeSearchPort({1: ServiceUnavailableError("down", status_code=503)})
        pipeline = _pipeline(port, scoring_config)

        assert await pipeline.aggregate("2024-01-01", "python") == []
        assert port.pages_requested == [1]

    async def test_single_page(self, scoring_config):
        port = FakeSearchPort({1: _page(2, make_metrics("a/low", stars=1), make_metrics("a/high", stars=500))})
        pipeline = _pipeline(port, scoring_config)

        ranked = await pipeline.aggregate("2024-01-01", "python")

        assert [repo.full_name for repo in ranked] == ["a/high", "a/low"]
        assert port.calls == [("2024-01-01", "python", 1, 100)]

    async def test_fetches_remaining_pages(self, scoring_config):
        port = FakeSearchPort(
            {
                1: _page(250, make_metrics("p/one", stars=10)),
                2: _page(250, make_metrics("p/two", stars=1000)),
                3: _page(250, make_metrics("p/three", stars=100)),
            }
        )
        pipeline = _pipeline(port, scoring_config)

        ranked = await pipeline.aggregate("2024-01-01", "python")

        assert port.pages_requested == [1, 2, 3]
        assert [repo.full_name for repo in ranked] == ["p/two", "p/three", "p/one"]

    async def test_page_cap(self, scoring_config):
        port = FakeSearchPort({page: _page(100_000, make_metrics(f"p/{page}")) for page in range(1, 20)})
        pipeline = _pipeline(port, scoring_config, max_pages_to_fetch=3)

        ranked = await pipeline.aggregate("2024-01-01", "python")

        assert port.pages_requested == [1, 2, 3]
        assert len(ranked) == 3

    async def test_total_count_from_first_page_only(self, scoring_config):
        port = FakeSearchPort(
            {
                1: _page(150, make_metrics("p/one")),
                2: _page(1_000, make_metrics("p/two")),
                3: _page(1_000, make_metrics("p/three")),
            }
        )
        pipeline = _pipeline(port, scoring_config)

        await pipeline.aggregate("2024-01-01", "python")
        assert port.pages_requested == [1, 2]

    async def test_remaining_pages_fetched_concurrently(self, scoring_config):
        in_flight = 0
        peak = 0

        class SlowPort(FakeSearchPort):
            async def search_repositories(self, created_after, language, page, per_page):
                nonlocal in_flight, peak
                if page > 1:
                    in_flight += 1
                    peak = max(peak, in_flight)
                    await asyncio.sleep(0.01)
                    in_flight -= 1
                return await super().search_repositories(created_after, language, page, per_page)

        port = SlowPort({page: _page(500, make_metrics(f"p/{page}")) for page in range(1, 6)})
        pipeline = _pipeline(port, scoring_config)

        ranked = await pipeline.aggregate("2024-01-01", "python")

        assert len(ranked) == 5
        assert peak == 4

    async def test_failed_page_is_skipped(self, scoring_config):
        port = FakeSearchPort(
            {
                1: _page(300, make_metrics("p/one")),
                2: ServiceUnavailableError("down", status_code=502),
                3: _page(300, make_metrics("p/three")),
            }
        )
        pipeline = _pipeline(port, scoring_config)

        ranked = await pipeline.aggregate("2024-01-01", "python")

        assert sorted(repo.full_name for repo in ranked) == ["p/one", "p/three"]

    async def test_unexpected_page_error_is_skipped(self, scoring_config):
        port = FakeSearchPort(
            {
                1: _page(200, make_metrics("p/one")),
                2: RuntimeError("boom"),
            }
        )
        pipeline = _pipeline(port, scoring_config)

        ranked = await pipeline.aggregate("2024-01-01", "python")
        assert [repo.full_name for repo in ranked] == ["p/one"]

    async def test_equal_scores_keep_page_order(self, scoring_config):
        same = {"stars": 42, "forks": 4, "updated_at": days_ago(100)}
        port = FakeSearchPort(
            {
                1: _page(300, make_metrics("p/1a", **same), make_metrics("p/1b", **same)),
                2: _page(300, make_metrics("p/2a", **same)),
                3: _page(300, make_metrics("p/3a", **same), make_metrics("p/top", stars=10_000)),
            }
        )
        pipeline = _pipeline(port, scoring_config)

        ranked = await pipeline.aggregate("2024-01-01", "python")

        assert [repo.full_name for repo in ranked] == ["p/top", "p/1a", "p/1b", "p/2a", "p/3a"]

    async def test_scores_sorted_descending(self, scoring_config):
        port = FakeSearchPort(
            {
                1: _page(
                    4,
                    make_metrics("a/old", stars=1000, forks=100, updated_at=days_ago(800)),
                    make_metrics("a/fresh", stars=1000, forks=100, updated_at=days_ago(1)),
                    make_metrics("a/mid", stars=1000, forks=100, updated_at=days_ago(10)),
                    make_metrics("a/none", stars=1000, forks=100, updated_at=None),
                )
            }
        )
        pipeline = _pipeline(port, scoring_config)

        ranked = await pipeline.aggregate("2024-01-01", "python")

        assert [repo.full_name for repo in ranked] == ["a/fresh", "a/mid", "a/none", "a/old"]
        scores = [repo.popularity_score for repo in ranked]
        assert scores == sorted(scores, reverse=True)

    async def test_uses_configured_page_size(self, scoring_config):
        port = FakeSearchPort({1: _page(25, make_metrics("p/one")), 2: _page(25, make_metrics("p/two"))})
        pipeline = _pipeline(port, scoring_config, page_size=20)

        await pipeline.aggregate("2024-01-01", "rust")

        assert port.calls[0] == ("2024-01-01", "rust", 1, 20)
        assert port.pages_requested == [1, 2]

    async def test_open_circuit_short_circuits_pages(self, scoring_config):
        breaker = CircuitBreaker(minimum_number_of_calls=1, sliding_window_size=1)
        port = FakeSearchPort({1: ServiceUnavailableError("down", status_code=503)})
        pipeline = _pipeline(port, scoring_config, breaker=breaker)

        assert await pipeline.aggregate("2024-01-01", "python") == []
        assert await pipeline.aggregate("2024-01-01", "python") == []

        # Second aggregation never reached the port
        assert port.pages_requested == [1]
