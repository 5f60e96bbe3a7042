"""
Configuration for Repo Popularity.

Values come from ``DEFAULT_CONFIG`` overlaid with environment variables
(``load_config``) and are fed to the DI container's ``providers.Configuration``.
Scoring settings are validated once, when ``ScoringConfiguration`` is built
at startup.

Environment Variables:
    GITHUB_API_URL: GitHub REST base URL (default: https://api.github.com)
    GITHUB_TOKEN: Optional bearer token for higher rate limits
    GITHUB_TIMEOUT: Transport timeout in seconds (default: 10)
    GITHUB_MAX_PAGES_TO_FETCH: Page cap per query (default: 5)
    CACHE_TTL_SECONDS: Result cache time-to-live (default: 600)
    CACHE_MAX_SIZE: Result cache entry limit (default: 1000)
    CIRCUIT_FAILURE_RATE_THRESHOLD: Failure rate (percent) that opens the circuit
    CIRCUIT_MINIMUM_CALLS: Calls recorded before the failure rate is evaluated
    CIRCUIT_WAIT_SECONDS: Open-state cool-down before trial calls
    SCORING_STARS_WEIGHT / SCORING_FORKS_WEIGHT: Popularity weights
"""

from __future__ import annotations

import copy
import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from repo_popularity.shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "github": {
        "api_url": "https://api.github.com",
        "token": None,
        "timeout": 10.0,
        "max_pages_to_fetch": 5,
        "page_size": 100,
    },
    "scoring": {
        "stars_weight": 1.0,
        "forks_weight": 1.5,
        "freshness": {
            "very_recent_days": 3,
            "recent_days": 14,
            "old_days": 365,
            "boost_very_recent": 1.5,
            "boost_recent": 1.2,
            "penalty_old": 0.5,
            "default_multiplier": 1.0,
        },
    },
    "cache": {
        "ttl": 600.0,
        "max_size": 1000,
    },
    "circuit_breaker": {
        "name": "github-search",
        "failure_rate_threshold": 50.0,
        "minimum_number_of_calls": 5,
        "sliding_window_size": 10,
        "wait_duration_in_open_state": 30.0,
        "permitted_calls_in_half_open_state": 3,
    },
}

# env var -> (config path, converter)
_ENV_OVERRIDES: dict[str, tuple[tuple[str, ...], Callable[[str], Any]]] = {
    "GITHUB_API_URL": (("github", "api_url"), str),
    "GITHUB_TOKEN": (("github", "token"), str),
    "GITHUB_TIMEOUT": (("github", "timeout"), float),
    "GITHUB_MAX_PAGES_TO_FETCH": (("github", "max_pages_to_fetch"), int),
    "CACHE_TTL_SECONDS": (("cache", "ttl"), float),
    "CACHE_MAX_SIZE": (("cache", "max_size"), int),
    "CIRCUIT_FAILURE_RATE_THRESHOLD": (("circuit_breaker", "failure_rate_threshold"), float),
    "CIRCUIT_MINIMUM_CALLS": (("circuit_breaker", "minimum_number_of_calls"), int),
    "CIRCUIT_WAIT_SECONDS": (("circuit_breaker", "wait_duration_in_open_state"), float),
    "SCORING_STARS_WEIGHT": (("scoring", "stars_weight"), float),
    "SCORING_FORKS_WEIGHT": (("scoring", "forks_weight"), float),
}


def load_config(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """
    Build the application configuration.

    Args:
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        Nested configuration dict suitable for ``config.from_dict``

    Raises:
        ConfigurationError: If an environment value cannot be converted
    """
    env = os.environ if environ is None else environ
    config = copy.deepcopy(DEFAULT_CONFIG)

    for var, (path, convert) in _ENV_OVERRIDES.items():
        raw = env.get(var)
        if raw is None or raw.strip() == "":
            continue
        try:
            value = convert(raw.strip())
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for {var}: {raw!r}") from e

        section = config
        for key in path[:-1]:
            section = section[key]
        section[path[-1]] = value

    logger.debug(f"Configuration loaded (token {'set' if config['github']['token'] else 'not set'})")
    return config


@dataclass(frozen=True, slots=True)
class FreshnessConfiguration:
    """Recency thresholds (days) and the multipliers applied for each band."""

    very_recent_days: int = 3
    recent_days: int = 14
    old_days: int = 365
    boost_very_recent: float = 1.5
    boost_recent: float = 1.2
    penalty_old: float = 0.5
    default_multiplier: float = 1.0

    def __post_init__(self) -> None:
        if self.very_recent_days < 0:
            raise ConfigurationError("very_recent_days must be non-negative")
        if not self.very_recent_days < self.recent_days < self.old_days:
            raise ConfigurationError(
                "Freshness thresholds must be strictly increasing: "
                f"very_recent_days={self.very_recent_days}, recent_days={self.recent_days}, "
                f"old_days={self.old_days}"
            )
        if min(self.boost_very_recent, self.boost_recent, self.penalty_old, self.default_multiplier) < 0:
            raise ConfigurationError("Freshness multipliers must be non-negative")
        if not self.boost_very_recent > self.boost_recent >= self.default_multiplier:
            raise ConfigurationError(
                "Freshness boosts must satisfy boost_very_recent > boost_recent >= default_multiplier"
            )
        if not self.penalty_old < self.default_multiplier:
            raise ConfigurationError("penalty_old must be lower than default_multiplier")


@dataclass(frozen=True, slots=True)
class ScoringConfiguration:
    """Weights for the popularity score."""

    stars_weight: float = 1.0
    forks_weight: float = 1.5
    freshness: FreshnessConfiguration = FreshnessConfiguration()

    def __post_init__(self) -> None:
        if self.stars_weight <= 0:
            raise ConfigurationError(f"stars_weight must be > 0, got {self.stars_weight}")
        if self.forks_weight <= 0:
            raise ConfigurationError(f"forks_weight must be > 0, got {self.forks_weight}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> ScoringConfiguration:
        """
        Build from the ``scoring`` section of the configuration.

        Raises:
            ConfigurationError: On unknown keys or invalid values
        """
        data = dict(data or {})
        freshness_data = dict(data.pop("freshness", None) or {})
        try:
            freshness = FreshnessConfiguration(**freshness_data)
            return cls(freshness=freshness, **data)
        except TypeError as e:
            raise ConfigurationError(f"Invalid scoring configuration: {e}") from e
