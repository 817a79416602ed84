"""Repository integration tests. Require Postgres (DATABASE_URL); tables are created if missing."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest

from kinfeed.application.dtos.search import PaginationCursor, PaginationDirective
from kinfeed.application.dtos.search_analytics import SearchAnalyticsEventCreate
from kinfeed.application.services.query_normalizer import normalize_query
from kinfeed.infrastructure.persistence import database
from kinfeed.infrastructure.persistence.models import Child, RecipientGroup
from kinfeed.infrastructure.persistence.repositories import (
    SearchAnalyticsRepository,
    SearchRepository,
)


@pytest.fixture
async def tables(session_factory):
    async with database.engine.begin() as conn:
        await conn.run_sync(database.Base.metadata.create_all)
    return session_factory


@pytest.mark.requires_db
async def test_structured_fetchers_only_see_the_owner(tables) -> None:
    owner, other = str(uuid.uuid4()), str(uuid.uuid4())
    async with tables() as session, session.begin():
        session.add_all(
            [
                Child(parent_id=owner, name="Emma Rose"),
                Child(parent_id=other, name="Emma Other"),
                RecipientGroup(parent_id=owner, name="Close family", default_frequency="weekly"),
            ]
        )
    repo = SearchRepository(tables)
    children = await repo.search_children(
        normalize_query("emma"), owner, PaginationDirective(limit=10)
    )
    assert [c.name for c in children] == ["Emma Rose"]
    groups = await repo.search_groups(
        normalize_query("FAMILY"), owner, PaginationDirective(limit=10, offset=0)
    )
    assert [g.default_frequency for g in groups] == ["weekly"]


@pytest.mark.requires_db
async def test_children_second_page_follows_cursor(tables) -> None:
    owner = str(uuid.uuid4())
    base = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)
    async with tables() as session, session.begin():
        session.add_all(
            [
                Child(parent_id=owner, name=f"Noah {n}", created_at=base + timedelta(hours=n))
                for n in range(3)
            ]
        )
    repo = SearchRepository(tables)
    query = normalize_query("noah")

    first = await repo.search_children(query, owner, PaginationDirective(limit=1))
    assert [c.name for c in first] == ["Noah 2", "Noah 1"]

    last_visible = first[0]
    cursor = PaginationCursor(
        created_at=last_visible.created_at.isoformat(), id=last_visible.id
    )
    second = await repo.search_children(
        query, owner, PaginationDirective(limit=1, cursor=cursor)
    )
    assert [c.name for c in second] == ["Noah 1", "Noah 0"]


@pytest.mark.requires_db
async def test_like_wildcards_are_literal(tables) -> None:
    owner = str(uuid.uuid4())
    async with tables() as session, session.begin():
        session.add(Child(parent_id=owner, name="Ava"))
    repo = SearchRepository(tables)
    assert await repo.search_children(
        normalize_query("%"), owner, PaginationDirective(limit=10)
    ) == []


@pytest.mark.requires_db
async def test_analytics_record_and_statistics(tables) -> None:
    user_id = str(uuid.uuid4())
    repo = SearchAnalyticsRepository(tables)
    for query, count in (("first steps", 4), ("first steps", 2), ("emma", 1)):
        await repo.record(
            SearchAnalyticsEventCreate(
                user_id=user_id,
                query=query,
                results_count=count,
                execution_time_ms=10,
                search_types=["memory"],
            )
        )
    stats = await repo.get_statistics(user_id, days=30)
    assert stats.total_searches == 3
    assert stats.unique_queries == 2
    assert stats.top_queries[0] == "first steps"
    assert stats.avg_execution_time_ms == 10.0
