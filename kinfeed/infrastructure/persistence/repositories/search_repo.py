"""Per-source search fetchers over PostgreSQL.

Memories and comments go through the stored ranking functions
(search_memories / search_comments and their _cursor variants), which apply
to_tsquery to the oracle expression and return ts_rank scores. Children,
recipients and groups are plain ILIKE matches.

Each fetcher opens its own session so the five can run concurrently, and
every query is filtered to rows owned by user_id.
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import or_, select, text, tuple_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kinfeed.application.dtos.search import (
    ChildRow,
    CommentRow,
    GroupRow,
    MemoryRow,
    NormalizedQuery,
    PaginationDirective,
    RecipientRow,
)
from kinfeed.domain.enums import PaginationMode, SearchResultType
from kinfeed.domain.exceptions import SourceFetchException
from kinfeed.infrastructure.persistence.models import Child, Recipient, RecipientGroup
from kinfeed.shared.telemetry.logging import get_logger
from kinfeed.shared.telemetry.tracing import add_span_attributes, traced

logger = get_logger(__name__)

_LIKE_ESCAPE = "\\"

_MEMORIES_OFFSET_SQL = text("""
    SELECT id, subject, content, child_id, distribution_status, created_at, search_rank
    FROM search_memories(:search_query, :user_id, :result_limit, :result_offset)
""")
_MEMORIES_CURSOR_SQL = text("""
    SELECT id, subject, content, child_id, distribution_status, created_at, search_rank
    FROM search_memories_cursor(
        :search_query, :user_id, :result_limit, :cursor_created_at, :cursor_id
    )
""")
_COMMENTS_OFFSET_SQL = text("""
    SELECT id, content, update_id, update_subject, created_at, search_rank
    FROM search_comments(:search_query, :user_id, :result_limit, :result_offset)
""")
_COMMENTS_CURSOR_SQL = text("""
    SELECT id, content, update_id, update_subject, created_at, search_rank
    FROM search_comments_cursor(
        :search_query, :user_id, :result_limit, :cursor_created_at, :cursor_id
    )
""")


def _str_or_none(value: object) -> str | None:
    return str(value) if value is not None else None


def _date_str(value: date | str | None) -> str | None:
    if value is None:
        return None
    return value.isoformat() if isinstance(value, date) else str(value)


class SearchRepository:
    """Five user-scoped fetchers returning per-source rows."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    # ---- Ranking-oracle sources ----

    @traced("search.fetch.memory")
    async def search_memories(
        self, query: NormalizedQuery, user_id: str, pagination: PaginationDirective
    ) -> list[MemoryRow]:
        """Memories ranked by the memory oracle (ts_rank_cd over subject + content)."""
        if not query.oracle_expression:
            return []
        stmt, params = self._oracle_call(
            _MEMORIES_OFFSET_SQL, _MEMORIES_CURSOR_SQL, query, user_id, pagination
        )
        rows = await self._execute(SearchResultType.MEMORY, stmt, params)
        return [
            MemoryRow(
                id=str(row["id"]),
                subject=row["subject"],
                content=row["content"],
                child_id=_str_or_none(row["child_id"]),
                distribution_status=row["distribution_status"],
                created_at=row["created_at"],
                search_rank=float(row["search_rank"] or 0.0),
            )
            for row in rows
        ]

    @traced("search.fetch.comment")
    async def search_comments(
        self, query: NormalizedQuery, user_id: str, pagination: PaginationDirective
    ) -> list[CommentRow]:
        """Comments ranked by the comment oracle, joined with their memory's subject."""
        if not query.oracle_expression:
            return []
        stmt, params = self._oracle_call(
            _COMMENTS_OFFSET_SQL, _COMMENTS_CURSOR_SQL, query, user_id, pagination
        )
        rows = await self._execute(SearchResultType.COMMENT, stmt, params)
        return [
            CommentRow(
                id=str(row["id"]),
                content=row["content"],
                update_id=str(row["update_id"]),
                update_subject=row["update_subject"],
                created_at=row["created_at"],
                search_rank=float(row["search_rank"] or 0.0),
            )
            for row in rows
        ]

    @staticmethod
    def _oracle_call(
        offset_sql, cursor_sql, query: NormalizedQuery, user_id: str, pagination: PaginationDirective
    ):
        """Pick the oracle variant and bind parameters for the pagination mode."""
        params: dict[str, object] = {
            "search_query": query.oracle_expression,
            "user_id": user_id,
            "result_limit": pagination.fetch_limit,
        }
        if pagination.mode is PaginationMode.OFFSET:
            params["result_offset"] = pagination.effective_offset
            return offset_sql, params
        cursor = pagination.cursor
        params["cursor_created_at"] = cursor.created_at_datetime() if cursor else None
        params["cursor_id"] = cursor.id if cursor else None
        return cursor_sql, params

    # ---- Structured (ILIKE) sources ----

    @traced("search.fetch.child")
    async def search_children(
        self, query: NormalizedQuery, user_id: str, pagination: PaginationDirective
    ) -> list[ChildRow]:
        """Children whose name contains the query."""
        stmt = select(Child.id, Child.name, Child.birth_date, Child.created_at).where(
            Child.parent_id == user_id,
            Child.name.ilike(query.substring_pattern, escape=_LIKE_ESCAPE),
        )
        stmt = self._window(stmt, Child, pagination)
        rows = await self._execute(SearchResultType.CHILD, stmt)
        return [
            ChildRow(
                id=str(row["id"]),
                name=row["name"],
                birth_date=_date_str(row["birth_date"]),
                created_at=row["created_at"],
            )
            for row in rows
        ]

    @traced("search.fetch.recipient")
    async def search_recipients(
        self, query: NormalizedQuery, user_id: str, pagination: PaginationDirective
    ) -> list[RecipientRow]:
        """Active recipients whose name or email contains the query."""
        pattern = query.substring_pattern
        stmt = select(
            Recipient.id,
            Recipient.name,
            Recipient.email,
            Recipient.relationship,
            Recipient.created_at,
        ).where(
            Recipient.parent_id == user_id,
            Recipient.is_active.is_(True),
            or_(
                Recipient.name.ilike(pattern, escape=_LIKE_ESCAPE),
                Recipient.email.ilike(pattern, escape=_LIKE_ESCAPE),
            ),
        )
        stmt = self._window(stmt, Recipient, pagination)
        rows = await self._execute(SearchResultType.RECIPIENT, stmt)
        return [
            RecipientRow(
                id=str(row["id"]),
                name=row["name"],
                email=row["email"],
                relationship=row["relationship"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    @traced("search.fetch.group")
    async def search_groups(
        self, query: NormalizedQuery, user_id: str, pagination: PaginationDirective
    ) -> list[GroupRow]:
        """Recipient groups whose name contains the query."""
        stmt = select(
            RecipientGroup.id,
            RecipientGroup.name,
            RecipientGroup.default_frequency,
            RecipientGroup.created_at,
        ).where(
            RecipientGroup.parent_id == user_id,
            RecipientGroup.name.ilike(query.substring_pattern, escape=_LIKE_ESCAPE),
        )
        stmt = self._window(stmt, RecipientGroup, pagination)
        rows = await self._execute(SearchResultType.GROUP, stmt)
        return [
            GroupRow(
                id=str(row["id"]),
                name=row["name"],
                default_frequency=row["default_frequency"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    @staticmethod
    def _window(stmt, model, pagination: PaginationDirective):
        """Offset mode: by name with LIMIT/OFFSET. Keyset mode: (created_at, id) desc before cursor."""
        if pagination.mode is PaginationMode.OFFSET:
            return (
                stmt.order_by(model.name, model.id)
                .limit(pagination.fetch_limit)
                .offset(pagination.effective_offset)
            )
        cursor = pagination.cursor
        if cursor is not None:
            # Plain tuple: each bind takes its column's type (timestamptz, uuid).
            stmt = stmt.where(
                tuple_(model.created_at, model.id)
                < (cursor.created_at_datetime(), cursor.id)
            )
        return stmt.order_by(model.created_at.desc(), model.id.desc()).limit(
            pagination.fetch_limit
        )

    # ---- Execution ----

    async def _execute(
        self,
        source: SearchResultType,
        stmt,
        params: dict[str, object] | None = None,
    ) -> list[dict]:
        """Run one source query on its own session; wrap DB errors as SourceFetchException."""
        started = datetime.now()
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt, params or {})
                rows = [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            logger.error("Error searching %s: %s", source.value, e)
            raise SourceFetchException(source.value, str(e)) from e
        add_span_attributes(
            **{"search.source": source.value, "search.result_count": len(rows)}
        )
        logger.debug(
            "Search source %s returned %d rows in %.1fms",
            source.value,
            len(rows),
            (datetime.now() - started).total_seconds() * 1000,
        )
        return rows
