"""
Popularity Scoring for GitHub Repositories.

Score formula:
    base  = log10(stars + 1) × stars_weight + log10(forks + 1) × forks_weight
    score = base × freshness_multiplier

The log10 of count+1 dampens very large star/fork counts compared with a
linear weighting; the +1 keeps log10 defined for zero counts.

Freshness multiplier, from days since the repository was last updated (UTC),
first matching band wins:

    updated_at missing          → default_multiplier
    days_old ≤ very_recent_days → boost_very_recent
    days_old ≤ recent_days      → boost_recent
    days_old > old_days         → penalty_old
    otherwise                   → default_multiplier

Architecture:
    ``calculate_score`` is a stateless function; ``PopularityScorer`` binds a
    ScoringConfiguration and a clock for use by the aggregation pipeline.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from repo_popularity.domain.entities import RankedRepository

if TYPE_CHECKING:
    from collections.abc import Callable

    from repo_popularity.config import FreshnessConfiguration, ScoringConfiguration
    from repo_popularity.domain.entities import RepositoryMetrics


def _utcnow() -> datetime:
    return datetime.now(UTC)


def freshness_multiplier(
    updated_at: datetime | None,
    freshness: FreshnessConfiguration,
    now: datetime,
) -> float:
    """Multiplier for the recency band ``updated_at`` falls in."""
    if updated_at is None:
        return freshness.default_multiplier

    if updated_at.tzinfo is None:
        updated_at = updated_at.replace(tzinfo=UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    days_old = (now - updated_at).days

    if days_old <= freshness.very_recent_days:
        return freshness.boost_very_recent
    if days_old <= freshness.recent_days:
        return freshness.boost_recent
    if days_old > freshness.old_days:
        return freshness.penalty_old
    return freshness.default_multiplier


def calculate_score(
    metrics: RepositoryMetrics | None,
    config: ScoringConfiguration,
    now: datetime | None = None,
) -> float:
    """
    Calculate the popularity score of one repository.

    Args:
        metrics: Repository metrics (None scores 0.0)
        config: Scoring weights and freshness bands
        now: Reference time (defaults to the current UTC time)

    Returns:
        Score ≥ 0. Higher = more popular.
    """
    if metrics is None:
        return 0.0

    stars = max(metrics.stars, 0)
    forks = max(metrics.forks, 0)
    base = math.log10(stars + 1) * config.stars_weight
    base += math.log10(forks + 1) * config.forks_weight

    multiplier = freshness_multiplier(metrics.updated_at, config.freshness, now or _utcnow())
    return base * multiplier


class PopularityScorer:
    """
    Scores repositories with a fixed configuration.

    Example:
        scorer = PopularityScorer(ScoringConfiguration())
        ranked = scorer.rank(metrics)
    """

    def __init__(
        self,
        config: ScoringConfiguration,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._clock = clock

    @property
    def config(self) -> ScoringConfiguration:
        return self._config

    def score(self, metrics: RepositoryMetrics | None, now: datetime | None = None) -> float:
        return calculate_score(metrics, self._config, now or self._clock())

    def rank(self, metrics: RepositoryMetrics, now: datetime | None = None) -> RankedRepository:
        """Score ``metrics`` and project it onto the public result shape."""
        return RankedRepository(
            full_name=metrics.full_name,
            stars=metrics.stars,
            forks=metrics.forks,
            language=metrics.language,
            popularity_score=self.score(metrics, now),
            url=metrics.url,
        )
