"""
HTTP API Server for popular GitHub repositories.

Endpoints:
    GET /v1/repositories/popular?since=YYYY-MM-DD&language=python
        200 with {"count", "items"}; 204 when nothing matched
    GET /health
        Circuit breaker and cache status

Errors are returned as problem details (``type``, ``title``, ``status``,
``detail``, ``timestamp``). Unexpected failures never leak internals.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from repo_popularity.config import load_config
from repo_popularity.container import ApplicationContainer
from repo_popularity.shared.exceptions import (
    InvalidParameterError,
    MissingParameterError,
    ValidationError,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/v1/repositories"
_DATE_FORMATS = ("%Y-%m-%d", "%d-%m-%Y")


# Pydantic models for API responses
class RepositoryScoreResponse(BaseModel):
    """One ranked repository."""

    full_name: str
    stars: int
    forks: int
    language: str | None = None
    popularity_score: float
    url: str


class PopularRepositoriesResponse(BaseModel):
    """Ranked repositories, highest score first."""

    count: int
    items: list[RepositoryScoreResponse]


class ProblemDetail(BaseModel):
    """Error response model."""

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    timestamp: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    circuit_breaker: dict[str, Any]
    cache: dict[str, Any]


def parse_since(raw: str | None) -> str:
    """
    Validate the ``since`` parameter and normalize it to YYYY-MM-DD.

    Raises:
        MissingParameterError: If absent or blank
        InvalidParameterError: If not a calendar date
    """
    if raw is None or not raw.strip():
        raise MissingParameterError("since")
    value = raw.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date().isoformat()
        except ValueError:
            continue
    raise InvalidParameterError("since", raw, "date")


def validate_language(raw: str | None) -> str:
    """Require a non-blank language; the value itself is passed through verbatim."""
    if raw is None or not raw.strip():
        raise MissingParameterError("language")
    return raw


def _problem(status: int, title: str, detail: str) -> JSONResponse:
    body = ProblemDetail(
        title=title,
        status=status,
        detail=detail,
        timestamp=datetime.now(UTC).isoformat(),
    )
    return JSONResponse(
        status_code=status,
        content=body.model_dump(),
        media_type="application/problem+json",
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        logger.warning(f"Validation error: {exc.to_dict()}")
        return _problem(400, "Invalid Request Data", str(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        messages = []
        for error in exc.errors():
            field_name = error.get("loc", ["", ""])[-1]
            if error.get("type") == "missing":
                messages.append(f"Missing required parameter: '{field_name}'.")
            else:
                messages.append(f"{field_name}: {error.get('msg')}")
        detail = ", ".join(messages) or "The request contains invalid input data."
        logger.warning(f"Validation error: {detail}")
        return _problem(400, "Invalid Request Data", detail)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            logger.warning(f"Resource not found: {request.url.path}")
            return _problem(404, "Resource Not Found", "The requested route does not exist.")
        return _problem(exc.status_code, "HTTP Error", str(exc.detail))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unexpected internal error on {request.url.path}: {exc}")
        return _problem(
            500,
            "Internal Server Error",
            "An unexpected error occurred. Please contact support.",
        )


def create_api_server(container: ApplicationContainer | None = None) -> FastAPI:
    """
    Create the FastAPI server.

    Scoring configuration and the service graph are resolved here, so an
    invalid configuration fails at startup rather than on the first request.

    Args:
        container: Pre-configured container (a default one reading the
            environment is built when omitted)

    Returns:
        Configured FastAPI instance.
    """
    if container is None:
        container = ApplicationContainer()
        container.config.from_dict(load_config())

    container.scoring_config()
    container.popularity_service()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("HTTP API server initialized")
        yield
        logger.info("HTTP API server shutting down")
        await container.github_client().close()

    app = FastAPI(
        title="Repo Popularity API",
        description="Searches GitHub repositories created after a date in a given language "
        "and ranks them by a freshness-weighted popularity score.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.container = container
    _register_exception_handlers(app)

    @app.get(
        f"{API_PREFIX}/popular",
        response_model=PopularRepositoriesResponse,
        responses={
            204: {"description": "No repositories matched"},
            400: {"model": ProblemDetail, "description": "Invalid or missing parameters"},
        },
    )
    async def get_popular_repositories(
        since: str = Query(..., description="Earliest creation date (YYYY-MM-DD)", examples=["2024-01-01"]),
        language: str = Query(..., description="Programming language", examples=["python"]),
    ) -> Any:
        """Search and score popular GitHub repositories."""
        created_after = parse_since(since)
        language = validate_language(language)

        service = container.popularity_service()
        results = await service.get_popular_repositories(created_after, language)

        if not results:
            return Response(status_code=204)

        return PopularRepositoriesResponse(
            count=len(results),
            items=[RepositoryScoreResponse(**repo.to_dict()) for repo in results],
        )

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        breaker = container.circuit_breaker().to_dict()
        return HealthResponse(
            status="degraded" if breaker["state"] == "open" else "healthy",
            circuit_breaker=breaker,
            cache=container.result_cache().to_dict(),
        )

    return app
