"""Application layer: interfaces, services, use cases.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (search and analytics repositories, cache).
"""

from kinfeed.application.interfaces import (
    ISearchAnalyticsRepository,
    ISearchCache,
    ISearchRepository,
)
from kinfeed.application.use_cases import SearchAnalyticsService, SearchService

__all__ = [
    "ISearchAnalyticsRepository",
    "ISearchCache",
    "ISearchRepository",
    "SearchAnalyticsService",
    "SearchService",
]
