"""
Base API Client - Common HTTP request pattern for upstream REST APIs.

Provides a reusable base class with:
- httpx.AsyncClient management (connection pooling, timeout)
- Status code to exception mapping, so callers can tell rate limiting,
  missing resources, server errors and network failures apart
- JSON parsing with ParseError on undeserializable bodies

No retries happen here: failure isolation is the job of the search gateway
and its circuit breaker.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
from typing_extensions import Self

from repo_popularity.shared.exceptions import (
    APIError,
    ErrorContext,
    NetworkError,
    NotFoundError,
    ParseError,
    RateLimitError,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)


class BaseAPIClient:
    """
    Base class for external API clients.

    Subclasses should set `_service_name` and can override:
    - `_handle_error_status()`: Service-specific status codes
    - `_parse_response()`: Custom response processing

    Example:
        class MyClient(BaseAPIClient):
            _service_name = "MyAPI"

            def __init__(self):
                super().__init__(base_url="https://api.example.com")

            async def get_item(self, item_id: str) -> dict:
                return await self._make_request(f"/items/{item_id}")
    """

    _service_name: str = "API"

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize base client.

        Args:
            base_url: Base URL for the API (optional, can pass full URLs)
            timeout: Request timeout in seconds; bounds every upstream call
            headers: Default headers for all requests
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            headers=headers or {},
            limits=httpx.Limits(
                max_connections=20,
                max_keepalive_connections=10,
                keepalive_expiry=30.0,
            ),
            transport=transport,
        )

    def _build_url(self, url: str) -> str:
        """Build full URL from path or full URL."""
        if url.startswith(("http://", "https://")):
            return url
        return f"{self._base_url}{url}"

    async def _make_request(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Make a GET request and return the parsed JSON body.

        Raises:
            NetworkError: Connection failures and timeouts
            RateLimitError: 429, or 403 with an exhausted rate limit
            NotFoundError: 404
            ServiceUnavailableError: 5xx
            APIError: Any other non-2xx status
            ParseError: Body is not valid JSON
        """
        full_url = self._build_url(url)
        logger.debug(f"{self._service_name} GET {full_url} params={params}")
        try:
            response = await self._client.get(full_url, params=params, headers=headers or {})
        except httpx.TimeoutException as e:
            raise NetworkError(
                f"{self._service_name} request timed out after {self._timeout}s",
                context=ErrorContext(operation=full_url),
            ) from e
        except httpx.RequestError as e:
            raise NetworkError(
                f"{self._service_name} request failed: {e}",
                context=ErrorContext(operation=full_url),
            ) from e

        if response.is_error:
            self._handle_error_status(response)

        return self._parse_response(response)

    def _handle_error_status(self, response: httpx.Response) -> None:
        """Raise the exception matching a non-2xx response."""
        status = response.status_code
        url = str(response.request.url)

        if status == 429 or (status == 403 and response.headers.get("X-RateLimit-Remaining") == "0"):
            raise RateLimitError(
                f"{self._service_name}: rate limit exceeded ({status})",
                retry_after=self._get_retry_after(response),
                status_code=status,
                context=ErrorContext(operation=url),
            )
        if status == 404:
            raise NotFoundError(f"{self._service_name} resource", url)
        if status >= 500:
            raise ServiceUnavailableError(
                f"HTTP {status} {response.reason_phrase}",
                service=self._service_name,
                status_code=status,
                context=ErrorContext(operation=url),
            )
        raise APIError(
            f"{self._service_name} HTTP error {status}: {response.reason_phrase}",
            status_code=status,
            context=ErrorContext(operation=url),
            retryable=False,
        )

    def _parse_response(self, response: httpx.Response) -> Any:
        """Parse response body. Override for custom extraction logic."""
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"response is not valid JSON: {e}", source=self._service_name) from e

    @staticmethod
    def _get_retry_after(response: httpx.Response) -> float:
        """Seconds until the rate limit resets, from Retry-After or X-RateLimit-Reset."""
        retry_after = response.headers.get("Retry-After")
        if retry_after is not None:
            try:
                return max(float(retry_after), 0.0)
            except ValueError:
                pass
        reset_at = response.headers.get("X-RateLimit-Reset")
        if reset_at is not None:
            try:
                return max(float(reset_at) - time.time(), 0.0)
            except ValueError:
                pass
        return 60.0

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
