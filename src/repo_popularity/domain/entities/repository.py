"""
Repository Entities - GitHub Search Domain Model

Key Entities:
    - RepositoryMetrics: One repository as reported by the search API
    - SearchPage: One page of search results plus the upstream total count
    - RankedRepository: A repository with its computed popularity score

Architecture:
    Frozen dataclasses. RepositoryMetrics and SearchPage are built once from
    the upstream payload and never mutated; RankedRepository is produced once
    per request and its ordering is the externally visible contract.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from repo_popularity.shared.exceptions import ParseError

# GitHub documents 100 as the per-page maximum for search endpoints
MAX_PAGE_SIZE = 100


def _parse_timestamp(value: Any) -> datetime | None:
    """Parse an upstream ISO-8601 timestamp; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise ParseError(f"invalid timestamp {value!r}", source="GitHub") from e
    else:
        raise ParseError(f"invalid timestamp {value!r}", source="GitHub")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _parse_count(item: dict[str, Any], key: str) -> int:
    value = item.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParseError(f"field '{key}' must be an integer, got {value!r}", source="GitHub")
    if value < 0:
        raise ParseError(f"field '{key}' must be non-negative, got {value}", source="GitHub")
    return value


@dataclass(frozen=True, slots=True)
class RepositoryMetrics:
    """Metrics of one repository from a search result item."""

    name: str
    full_name: str
    stars: int
    forks: int
    updated_at: datetime | None = None
    language: str | None = None
    url: str = ""

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> RepositoryMetrics:
        """
        Build from one item of the GitHub ``/search/repositories`` response.

        Raises:
            ParseError: If required fields are missing or malformed
        """
        if not isinstance(item, dict):
            raise ParseError(f"search item must be an object, got {type(item).__name__}", source="GitHub")

        full_name = item.get("full_name")
        if not isinstance(full_name, str) or not full_name:
            raise ParseError("search item has no 'full_name'", source="GitHub")

        return cls(
            name=item.get("name") or full_name.rsplit("/", 1)[-1],
            full_name=full_name,
            stars=_parse_count(item, "stargazers_count"),
            forks=_parse_count(item, "forks_count"),
            updated_at=_parse_timestamp(item.get("updated_at")),
            language=item.get("language"),
            url=item.get("html_url") or "",
        )


@dataclass(frozen=True, slots=True)
class SearchPage:
    """
    One page of search results.

    ``total_count`` is the number of matches upstream reports for the whole
    query, which usually exceeds ``len(items)``.
    """

    total_count: int
    items: tuple[RepositoryMetrics, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> SearchPage:
        """Fallback page used when a fetch fails or is short-circuited."""
        return cls(total_count=0, items=())

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> SearchPage:
        """
        Build from a GitHub ``/search/repositories`` response body.

        Raises:
            ParseError: If the payload does not have the expected shape
        """
        if not isinstance(payload, dict):
            raise ParseError("search response must be an object", source="GitHub")

        total_count = payload.get("total_count")
        if isinstance(total_count, bool) or not isinstance(total_count, int) or total_count < 0:
            raise ParseError(f"invalid 'total_count': {total_count!r}", source="GitHub")

        raw_items = payload.get("items")
        if not isinstance(raw_items, list):
            raise ParseError("search response has no 'items' list", source="GitHub")

        return cls(
            total_count=total_count,
            items=tuple(RepositoryMetrics.from_api(item) for item in raw_items),
        )

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True, slots=True)
class RankedRepository:
    """A repository with its popularity score, as returned to callers."""

    full_name: str
    stars: int
    forks: int
    language: str | None
    popularity_score: float
    url: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "full_name": self.full_name,
            "stars": self.stars,
            "forks": self.forks,
            "language": self.language,
            "popularity_score": self.popularity_score,
            "url": self.url,
        }
