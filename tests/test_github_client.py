"""Tests for the GitHub search client, using httpx.MockTransport."""

import httpx
import pytest

from repo_popularity.infrastructure.github import GitHubSearchClient
from repo_popularity.infrastructure.github.client import build_search_query
from repo_popularity.shared.exceptions import (
    APIError,
    NetworkError,
    NotFoundError,
    ParseError,
    RateLimitError,
    ServiceUnavailableError,
)


def _client(handler, token=None) -> GitHubSearchClient:
    return GitHubSearchClient(
        base_url="https://github.test",
        token=token,
        transport=httpx.MockTransport(handler),
    )


class TestBuildSearchQuery:
    def test_query_format(self):
        assert build_search_query("2024-01-01", "python") == "created:>2024-01-01 language:python"

    def test_language_verbatim(self):
        assert build_search_query("2024-01-01", "C++") == "created:>2024-01-01 language:C++"


class TestSearchRepositories:
    async def test_request_shape(self, mock_search_response):
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json=mock_search_response)

        async with _client(handler) as client:
            await client.search_repositories("2024-01-01", "python", 2, 100)

        request = captured[0]
        assert request.method == "GET"
        assert request.url.path == "/search/repositories"
        assert request.url.params["q"] == "created:>2024-01-01 language:python"
        assert request.url.params["sort"] == "stars"
        assert request.url.params["order"] == "desc"
        assert request.url.params["per_page"] == "100"
        assert request.url.params["page"] == "2"
        assert request.headers["Accept"] == "application/vnd.github+json"
        assert request.headers["X-GitHub-Api-Version"] == "2022-11-28"
        assert "Authorization" not in request.headers

    async def test_per_page_capped(self, mock_search_response):
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(200, json=mock_search_response)

        async with _client(handler) as client:
            await client.search_repositories("2024-01-01", "python", 1, 500)

        assert captured[0].url.params["per_page"] == "100"

    async def test_token_sent_as_bearer(self, mock_search_response):
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(200, json=mock_search_response)

        async with _client(handler, token="ghp_secret") as client:
            assert client.authenticated
            await client.search_repositories("2024-01-01", "python", 1, 100)

        assert captured[0].headers["Authorization"] == "Bearer ghp_secret"

    async def test_blank_token_ignored(self):
        async with _client(lambda r: httpx.Response(200), token="   ") as client:
            assert not client.authenticated

    async def test_parses_page(self, mock_search_response):
        async with _client(lambda r: httpx.Response(200, json=mock_search_response)) as client:
            page = await client.search_repositories("2024-01-01", "python", 1, 100)

        assert page.total_count == 2
        assert [item.full_name for item in page.items] == ["octo/alpha", "octo/beta"]
        alpha = page.items[0]
        assert alpha.stars == 120
        assert alpha.forks == 30
        assert alpha.updated_at.year == 2024
        assert alpha.url == "https://github.com/octo/alpha"
        assert page.items[1].updated_at is None


class TestErrorMapping:
    @pytest.mark.parametrize("status", [500, 502, 503])
    async def test_server_errors(self, status):
        async with _client(lambda r: httpx.Response(status)) as client:
            with pytest.raises(ServiceUnavailableError) as exc_info:
                await client.search_repositories("2024-01-01", "python", 1, 100)
        assert exc_info.value.status_code == status

    async def test_too_many_requests(self):
        handler = lambda r: httpx.Response(429, headers={"Retry-After": "17"})  # noqa: E731
        async with _client(handler) as client:
            with pytest.raises(RateLimitError) as exc_info:
                await client.search_repositories("2024-01-01", "python", 1, 100)
        assert exc_info.value.context.retry_after == 17.0
        assert exc_info.value.status_code == 429

    async def test_exhausted_rate_limit_forbidden(self):
        handler = lambda r: httpx.Response(403, headers={"X-RateLimit-Remaining": "0"})  # noqa: E731
        async with _client(handler) as client:
            with pytest.raises(RateLimitError) as exc_info:
                await client.search_repositories("2024-01-01", "python", 1, 100)
        assert exc_info.value.status_code == 403

    async def test_plain_forbidden(self):
        async with _client(lambda r: httpx.Response(403)) as client:
            with pytest.raises(APIError) as exc_info:
                await client.search_repositories("2024-01-01", "python", 1, 100)
        assert not isinstance(exc_info.value, RateLimitError)
        assert exc_info.value.status_code == 403
        assert exc_info.value.retryable is False

    async def test_unprocessable_query(self):
        async with _client(lambda r: httpx.Response(422, json={"message": "Validation Failed"})) as client:
            with pytest.raises(APIError) as exc_info:
                await client.search_repositories("2024-01-01", "python", 1, 100)
        assert exc_info.value.status_code == 422

    async def test_not_found(self):
        async with _client(lambda r: httpx.Response(404)) as client:
            with pytest.raises(NotFoundError):
                await client.search_repositories("2024-01-01", "python", 1, 100)

    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with _client(handler) as client:
            with pytest.raises(NetworkError, match="timed out"):
                await client.search_repositories("2024-01-01", "python", 1, 100)

    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(NetworkError):
                await client.search_repositories("2024-01-01", "python", 1, 100)

    async def test_invalid_json(self):
        async with _client(lambda r: httpx.Response(200, content=b"<html>")) as client:
            with pytest.raises(ParseError):
                await client.search_repositories("2024-01-01", "python", 1, 100)

    async def test_unexpected_shape(self):
        async with _client(lambda r: httpx.Response(200, json={"message": "nope"})) as client:
            with pytest.raises(ParseError):
                await client.search_repositories("2024-01-01", "python", 1, 100)
