"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from repo_popularity.config import FreshnessConfiguration, ScoringConfiguration, load_config
from repo_popularity.domain.entities import RepositoryMetrics, SearchPage
from repo_popularity.domain.ports import RepositorySearchPort

# ============================================================
# Time Fixtures
# ============================================================

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def fixed_now():
    """Reference 'now' for deterministic freshness scoring."""
    return FIXED_NOW


# ============================================================
# Configuration Fixtures
# ============================================================


@pytest.fixture
def scoring_config():
    """Scoring configuration with the documented default bands."""
    return ScoringConfiguration(
        stars_weight=1.0,
        forks_weight=1.5,
        freshness=FreshnessConfiguration(
            very_recent_days=3,
            recent_days=14,
            old_days=365,
            boost_very_recent=1.5,
            boost_recent=1.2,
            penalty_old=0.5,
            default_multiplier=1.0,
        ),
    )


@pytest.fixture
def app_config():
    """Full application configuration, isolated from the real environment."""
    config = load_config(environ={})
    config["github"]["api_url"] = "https://github.test"
    return config


# ============================================================
# Mock GitHub API Responses
# ============================================================


def make_item(
    full_name: str = "octo/repo",
    stars: int = 10,
    forks: int = 2,
    updated_at: str | None = "2024-05-01T00:00:00Z",
    language: str | None = "python",
) -> dict[str, Any]:
    """One item of a GitHub /search/repositories response."""
    return {
        "name": full_name.split("/")[-1],
        "full_name": full_name,
        "stargazers_count": stars,
        "forks_count": forks,
        "updated_at": updated_at,
        "language": language,
        "html_url": f"https://github.com/{full_name}",
    }


def make_metrics(
    full_name: str = "octo/repo",
    stars: int = 10,
    forks: int = 2,
    updated_at: datetime | None = None,
    language: str | None = "python",
) -> RepositoryMetrics:
    return RepositoryMetrics(
        name=full_name.split("/")[-1],
        full_name=full_name,
        stars=stars,
        forks=forks,
        updated_at=updated_at,
        language=language,
        url=f"https://github.com/{full_name}",
    )


def days_ago(days: int, now: datetime = FIXED_NOW) -> datetime:
    return now - timedelta(days=days)


@pytest.fixture
def mock_search_response():
    """Mock response body from GitHub repository search."""
    return {
        "total_count": 2,
        "incomplete_results": False,
        "items": [
            make_item("octo/alpha", stars=120, forks=30),
            make_item("octo/beta", stars=5, forks=0, updated_at=None, language=None),
        ],
    }


# ============================================================
# Fake Search Port
# ============================================================


class FakeSearchPort(RepositorySearchPort):
    """
    In-memory RepositorySearchPort.

    ``pages`` maps page number to a SearchPage or an exception to raise.
    Unknown pages return an empty page. Every call is recorded.
    """

    def __init__(self, pages: dict[int, SearchPage | Exception] | None = None) -> None:
        self.pages = pages or {}
        self.calls: list[tuple[str, str, int, int]] = []

    async def search_repositories(self, created_after, language, page, per_page):
        self.calls.append((created_after, language, page, per_page))
        result = self.pages.get(page, SearchPage.empty())
        if isinstance(result, Exception):
            raise result
        return result

    @property
    def pages_requested(self) -> list[int]:
        return sorted(call[2] for call in self.calls)


@pytest.fixture
def fake_port():
    return FakeSearchPort()
