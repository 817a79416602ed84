"""API v1: search, analytics and health endpoints."""

from kinfeed.api.v1.router import api_router

__all__ = ["api_router"]
