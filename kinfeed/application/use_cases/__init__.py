"""Application use cases: federated search and search analytics."""

from kinfeed.application.use_cases.search import SearchService
from kinfeed.application.use_cases.search_analytics import SearchAnalyticsService

__all__ = ["SearchAnalyticsService", "SearchService"]
