"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from kinfeed.application.dtos.search import (
        ChildRow,
        CommentRow,
        GroupRow,
        MemoryRow,
        NormalizedQuery,
        PaginationDirective,
        RecipientRow,
    )
    from kinfeed.application.dtos.search_analytics import (
        SearchAnalyticsEventCreate,
        SearchStatistics,
    )


class ISearchRepository(Protocol):
    """Per-source fetchers. Every method is scoped to user_id and safe to run concurrently.

    Implementations raise SourceFetchException when the underlying query fails;
    the search use case contains the failure to that source.
    """

    async def search_memories(
        self, query: NormalizedQuery, user_id: str, pagination: PaginationDirective
    ) -> list[MemoryRow]:
        """Ranked memories via the memory ranking oracle."""

    async def search_comments(
        self, query: NormalizedQuery, user_id: str, pagination: PaginationDirective
    ) -> list[CommentRow]:
        """Ranked comments via the comment ranking oracle."""

    async def search_children(
        self, query: NormalizedQuery, user_id: str, pagination: PaginationDirective
    ) -> list[ChildRow]:
        """Children whose name contains the query."""

    async def search_recipients(
        self, query: NormalizedQuery, user_id: str, pagination: PaginationDirective
    ) -> list[RecipientRow]:
        """Active recipients whose name or email contains the query."""

    async def search_groups(
        self, query: NormalizedQuery, user_id: str, pagination: PaginationDirective
    ) -> list[GroupRow]:
        """Recipient groups whose name contains the query."""


class ISearchAnalyticsRepository(Protocol):
    """Protocol for the search analytics sink (DIP)."""

    async def record(self, event: SearchAnalyticsEventCreate) -> str:
        """Persist one analytics row; return its id."""

    async def get_statistics(self, user_id: str, days: int) -> SearchStatistics:
        """Aggregate the user's searches over the last `days` days."""
