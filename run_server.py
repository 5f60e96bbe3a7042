#!/usr/bin/env python3
"""
Repo Popularity Server - HTTP Mode

Runs the ranked GitHub repository search API with uvicorn.

Usage:
    # Run with defaults (0.0.0.0:8080)
    python run_server.py

    # Run with a GitHub token and a custom port
    python run_server.py --token ghp_xxx --port 9000

    # Fetch at most 3 pages per query
    python run_server.py --max-pages 3

Environment Variables:
    GITHUB_TOKEN: Optional GitHub token for higher rate limits
    GITHUB_API_URL: GitHub REST base URL
    SERVER_HOST: Server host (default: 0.0.0.0)
    SERVER_PORT: Server port (default: 8080)
    LOG_LEVEL: Logging level (default: INFO)
    (see repo_popularity.config for cache, circuit breaker and scoring settings)
"""

import argparse
import logging
import os
import sys

# Add src to path for development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))

from repo_popularity.config import load_config
from repo_popularity.container import ApplicationContainer
from repo_popularity.shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Run the Repo Popularity HTTP API"
    )
    parser.add_argument(
        "--token",
        default=None,
        help="GitHub token (overrides GITHUB_TOKEN)"
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help="Maximum result pages fetched per query (overrides GITHUB_MAX_PAGES_TO_FETCH)"
    )
    parser.add_argument(
        "--host",
        default=os.environ.get("SERVER_HOST", "0.0.0.0"),
        help="Server host (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("SERVER_PORT", "8080")),
        help="Server port (default: 8080)"
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)"
    )

    args = parser.parse_args()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        config = load_config()
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    if args.token:
        config["github"]["token"] = args.token
    if args.max_pages is not None:
        config["github"]["max_pages_to_fetch"] = args.max_pages

    container = ApplicationContainer()
    container.config.from_dict(config)

    logger.info("Creating Repo Popularity server...")
    logger.info(f"  GitHub API: {config['github']['api_url']}")
    logger.info(f"  Token: {'Set' if config['github']['token'] else 'Not set'}")
    logger.info(f"  Max pages per query: {config['github']['max_pages_to_fetch']}")
    logger.info(f"  Cache TTL: {config['cache']['ttl']}s")

    from repo_popularity.api.server import create_api_server

    try:
        app = create_api_server(container)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    # Run the server using uvicorn directly for proper host/port control
    import uvicorn

    logger.info(f"Starting server at http://{args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
