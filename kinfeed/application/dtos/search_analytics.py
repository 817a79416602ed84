"""DTOs for search analytics events and usage statistics (no dependency on ORM)."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SearchAnalyticsEventCreate:
    """One client-reported search or result click."""

    user_id: str
    query: str
    results_count: int
    execution_time_ms: int | None = None
    search_types: list[str] = field(default_factory=list)
    clicked_result_id: str | None = None
    clicked_result_type: str | None = None


@dataclass
class SearchStatistics:
    """Search usage for one user over a trailing window of days."""

    days: int
    total_searches: int = 0
    unique_queries: int = 0
    avg_results_count: float | None = None
    avg_execution_time_ms: float | None = None
    top_queries: list[str] = field(default_factory=list)
