"""HTTP API for ranked GitHub repository searches."""

from .server import create_api_server

__all__ = ["create_api_server"]
