"""Persistence repositories: per-source search fetchers and the analytics sink."""

from kinfeed.infrastructure.persistence.repositories.search_analytics_repo import (
    SearchAnalyticsRepository,
)
from kinfeed.infrastructure.persistence.repositories.search_repo import SearchRepository

__all__ = ["SearchAnalyticsRepository", "SearchRepository"]
