"""Search analytics repository: append events, aggregate per-user statistics."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kinfeed.application.dtos.search_analytics import (
    SearchAnalyticsEventCreate,
    SearchStatistics,
)
from kinfeed.domain.exceptions import AnalyticsWriteException
from kinfeed.infrastructure.persistence.models import SearchAnalytics
from kinfeed.shared.telemetry.logging import get_logger
from kinfeed.shared.telemetry.tracing import traced

logger = get_logger(__name__)

TOP_QUERIES_LIMIT = 10


def _round(value: object) -> float | None:
    return round(float(value), 2) if value is not None else None


class SearchAnalyticsRepository:
    """Writes go through their own short transaction, independent of any search."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    @traced("search.analytics.record")
    async def record(self, event: SearchAnalyticsEventCreate) -> str:
        """Insert one analytics row and return its id.

        Raises:
            AnalyticsWriteException: When the insert or commit fails.
        """
        row = SearchAnalytics(
            user_id=event.user_id,
            query=event.query,
            results_count=event.results_count,
            execution_time_ms=event.execution_time_ms,
            search_types=list(event.search_types),
            clicked_result_id=event.clicked_result_id,
            clicked_result_type=event.clicked_result_type,
        )
        try:
            async with self.session_factory() as session, session.begin():
                session.add(row)
                await session.flush()
                row_id = row.id
        except SQLAlchemyError as e:
            logger.error("Failed to record search analytics: %s", e)
            raise AnalyticsWriteException(str(e)) from e
        return row_id

    @traced("search.analytics.statistics")
    async def get_statistics(self, user_id: str, days: int) -> SearchStatistics:
        """Totals, distinct queries, averages and the most frequent queries since now - days."""
        since = datetime.now(UTC) - timedelta(days=days)
        scope = (SearchAnalytics.user_id == user_id, SearchAnalytics.created_at >= since)
        totals_stmt = select(
            func.count(SearchAnalytics.id),
            func.count(func.distinct(SearchAnalytics.query)),
            func.avg(SearchAnalytics.results_count),
            func.avg(SearchAnalytics.execution_time_ms),
        ).where(*scope)
        uses = func.count(SearchAnalytics.id).label("uses")
        top_stmt = (
            select(SearchAnalytics.query, uses)
            .where(*scope)
            .group_by(SearchAnalytics.query)
            .order_by(desc(uses), SearchAnalytics.query)
            .limit(TOP_QUERIES_LIMIT)
        )
        async with self.session_factory() as session:
            total, unique, avg_results, avg_time = (
                await session.execute(totals_stmt)
            ).one()
            top = (await session.execute(top_stmt)).scalars().all()
        return SearchStatistics(
            days=days,
            total_searches=int(total or 0),
            unique_queries=int(unique or 0),
            avg_results_count=_round(avg_results),
            avg_execution_time_ms=_round(avg_time),
            top_queries=list(top),
        )
