"""Search analytics use cases: record client-reported events, read usage stats.

The sink is fire-and-forget from the client's point of view: a failed write
is logged and reported as not recorded, never raised to the caller.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kinfeed.application.dtos.search_analytics import (
    SearchAnalyticsEventCreate,
    SearchStatistics,
)
from kinfeed.domain.enums import SearchResultType
from kinfeed.domain.exceptions import AnalyticsWriteException, ValidationException

if TYPE_CHECKING:
    from kinfeed.application.interfaces.repositories import ISearchAnalyticsRepository

logger = logging.getLogger(__name__)

MAX_STATISTICS_DAYS = 365


class SearchAnalyticsService:
    """Record search/click events and aggregate per-user search statistics."""

    def __init__(self, analytics_repo: "ISearchAnalyticsRepository") -> None:
        self.analytics_repo = analytics_repo

    async def record_event(self, event: SearchAnalyticsEventCreate) -> bool:
        """Persist one event. Returns False (after logging) when the write fails."""
        known = {t.value for t in SearchResultType}
        event_types = [t for t in event.search_types if t in known]
        if event_types != list(event.search_types):
            logger.debug(
                "Dropping unknown search types from analytics event: %s",
                sorted(set(event.search_types) - known),
            )
            event = SearchAnalyticsEventCreate(
                user_id=event.user_id,
                query=event.query,
                results_count=event.results_count,
                execution_time_ms=event.execution_time_ms,
                search_types=event_types,
                clicked_result_id=event.clicked_result_id,
                clicked_result_type=event.clicked_result_type,
            )
        try:
            await self.analytics_repo.record(event)
        except AnalyticsWriteException as e:
            logger.warning("Search analytics not recorded: %s", e.message)
            return False
        return True

    async def get_statistics(self, user_id: str, days: int = 30) -> SearchStatistics:
        """Usage statistics for the trailing `days` days (1..365)."""
        if not 1 <= days <= MAX_STATISTICS_DAYS:
            raise ValidationException(
                f"days must be between 1 and {MAX_STATISTICS_DAYS}", field="days"
            )
        return await self.analytics_repo.get_statistics(user_id, days)
