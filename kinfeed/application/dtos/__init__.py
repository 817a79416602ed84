"""Application DTOs (no ORM dependency)."""

from kinfeed.application.dtos.search import (
    Highlights,
    NormalizedQuery,
    PaginationCursor,
    PaginationDirective,
    SearchPage,
    SearchRequest,
    SearchResult,
)
from kinfeed.application.dtos.search_analytics import (
    SearchAnalyticsEventCreate,
    SearchStatistics,
)

__all__ = [
    "Highlights",
    "NormalizedQuery",
    "PaginationCursor",
    "PaginationDirective",
    "SearchAnalyticsEventCreate",
    "SearchPage",
    "SearchRequest",
    "SearchResult",
    "SearchStatistics",
]
