"""SearchService unit tests with a mocked search repository."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from kinfeed.application.dtos.search import (
    ChildRow,
    CommentRow,
    GroupRow,
    MemoryRow,
    RecipientRow,
)
from kinfeed.application.services.pagination import decode_cursor
from kinfeed.application.use_cases.search import SearchService
from kinfeed.domain.enums import PaginationMode, SearchResultType
from kinfeed.domain.exceptions import SourceFetchException, ValidationException

USER_ID = "u1"
BASE = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)
M1 = "3d2c1b0a-0000-4000-8000-000000000001"
M2 = "3d2c1b0a-0000-4000-8000-000000000002"
M3 = "3d2c1b0a-0000-4000-8000-000000000003"

FETCHERS = (
    "search_memories",
    "search_comments",
    "search_children",
    "search_recipients",
    "search_groups",
)


def _memory(id: str, rank: float, minutes_ago: int = 0) -> MemoryRow:
    return MemoryRow(
        id=id,
        subject=f"Memory {id}",
        content="first steps in the garden",
        child_id=None,
        distribution_status="sent",
        created_at=BASE - timedelta(minutes=minutes_ago),
        search_rank=rank,
    )


def _comment(id: str, rank: float) -> CommentRow:
    return CommentRow(id, "lovely first steps", "m1", "Garden", BASE, rank)


@pytest.fixture
def repo() -> AsyncMock:
    repo = AsyncMock()
    for name in FETCHERS:
        getattr(repo, name).return_value = []
    return repo


@pytest.fixture
def service(repo: AsyncMock) -> SearchService:
    return SearchService(repo)


async def _search(service: SearchService, q: str = "first", **params):
    return await service.search(service.build_request(USER_ID, q, **params))


async def test_results_are_sorted_by_rank_descending(service, repo) -> None:
    repo.search_memories.return_value = [_memory("m1", 0.9), _memory("m2", 0.1)]
    repo.search_comments.return_value = [_comment("k1", 0.6)]
    repo.search_children.return_value = [ChildRow("c1", "First Born", None, BASE)]
    page = await _search(service)
    assert [r.id for r in page.results] == ["m1", "k1", "c1", "m2"]
    ranks = [r.rank for r in page.results]
    assert ranks == sorted(ranks, reverse=True)


async def test_equal_ranks_keep_source_order(service, repo) -> None:
    repo.search_groups.return_value = [GroupRow("g1", "First friends", "weekly", BASE)]
    repo.search_recipients.return_value = [
        RecipientRow("r1", "First Aunt", None, "aunt", BASE)
    ]
    repo.search_children.return_value = [ChildRow("c1", "First Born", None, BASE)]
    page = await _search(service)
    assert [r.type for r in page.results] == [
        SearchResultType.CHILD,
        SearchResultType.RECIPIENT,
        SearchResultType.GROUP,
    ]


async def test_type_filter_skips_excluded_sources(service, repo) -> None:
    repo.search_groups.return_value = [GroupRow("g1", "First friends", "weekly", BASE)]
    page = await _search(service, types="group,recipient")
    repo.search_memories.assert_not_awaited()
    repo.search_comments.assert_not_awaited()
    repo.search_children.assert_not_awaited()
    repo.search_recipients.assert_awaited_once()
    repo.search_groups.assert_awaited_once()
    assert {r.type for r in page.results} == {SearchResultType.GROUP}
    assert page.searched_types == ["recipient", "group"]


async def test_unknown_types_fall_back_to_all_sources(service, repo) -> None:
    await _search(service, types="photos,videos")
    for name in FETCHERS:
        getattr(repo, name).assert_awaited_once()


async def test_every_fetcher_is_scoped_to_the_caller(service, repo) -> None:
    await _search(service)
    for name in FETCHERS:
        _, user_id, _ = getattr(repo, name).await_args.args
        assert user_id == USER_ID


async def test_failing_source_contributes_nothing(service, repo) -> None:
    repo.search_memories.return_value = [_memory("m1", 0.9)]
    repo.search_comments.side_effect = SourceFetchException("comment", "timeout")
    repo.search_children.side_effect = RuntimeError("boom")
    repo.search_groups.return_value = [GroupRow("g1", "First friends", "weekly", BASE)]
    page = await _search(service)
    assert [r.id for r in page.results] == ["m1", "g1"]
    assert page.total == 2


async def test_keyset_window_reports_more_and_cursor(service, repo) -> None:
    repo.search_memories.return_value = [
        _memory(M1, 0.9, minutes_ago=1),
        _memory(M2, 0.8, minutes_ago=2),
        _memory(M3, 0.7, minutes_ago=3),
    ]
    page = await _search(service, limit="2")
    _, _, pagination = repo.search_memories.await_args.args
    assert pagination.fetch_limit == 3
    assert [r.id for r in page.results] == [M1, M2]
    assert page.total == 3
    assert page.has_more is True
    cursor = decode_cursor(page.next_cursor)
    assert cursor.id == M2
    assert cursor.created_at == (BASE - timedelta(minutes=2)).isoformat()


async def test_last_page_has_no_cursor(service, repo) -> None:
    repo.search_memories.return_value = [_memory(M1, 0.9)]
    page = await _search(service, limit="2")
    assert page.has_more is False
    assert page.next_cursor is None


async def test_next_cursor_is_forwarded_to_fetchers(service, repo) -> None:
    repo.search_memories.return_value = [
        _memory(M1, 0.9, minutes_ago=1),
        _memory(M2, 0.8, minutes_ago=2),
    ]
    first = await _search(service, limit="1")
    await _search(service, limit="1", cursor=first.next_cursor)
    _, _, pagination = repo.search_memories.await_args.args
    assert pagination.cursor.id == M1


async def test_offset_mode_never_reports_more(service, repo) -> None:
    repo.search_memories.return_value = [_memory("m1", 0.9), _memory("m2", 0.8)]
    repo.search_comments.return_value = [_comment("k1", 0.7)]
    page = await _search(service, limit="2", offset="4")
    _, _, pagination = repo.search_memories.await_args.args
    assert pagination.mode is PaginationMode.OFFSET
    assert pagination.effective_offset == 4
    assert len(page.results) == 2
    assert page.has_more is False
    assert page.next_cursor is None


async def test_limit_is_clamped(service, repo) -> None:
    await _search(service, limit="500")
    _, _, pagination = repo.search_memories.await_args.args
    assert pagination.limit == 100


async def test_empty_query_is_rejected_before_fetching(service, repo) -> None:
    with pytest.raises(ValidationException):
        service.build_request(USER_ID, "   ")
    repo.search_memories.assert_not_awaited()


async def test_highlights_can_be_turned_off(service, repo) -> None:
    repo.search_memories.return_value = [_memory("m1", 0.9)]
    page = await _search(service, include_highlights=False)
    assert page.results[0].highlights is None


def _cache(cached: dict | None = None) -> AsyncMock:
    cache = AsyncMock()
    cache.is_available = MagicMock(return_value=True)
    cache.get.return_value = cached
    cache.set.return_value = True
    cache.delete_pattern.return_value = 3
    return cache


async def test_cache_miss_stores_page(repo) -> None:
    cache = _cache()
    repo.search_memories.return_value = [_memory("m1", 0.9)]
    service = SearchService(repo, cache=cache, cache_ttl=30)
    page = await _search(service)
    key, stored = cache.set.await_args.args
    assert key.startswith(f"search:{USER_ID}:")
    assert stored["results"][0]["id"] == "m1"
    assert cache.set.await_args.kwargs == {"ttl": 30}
    assert page.results[0].id == "m1"


async def test_cache_hit_skips_fetchers(repo) -> None:
    repo.search_memories.return_value = [_memory("m1", 0.9)]
    first = await _search(SearchService(repo))
    cache = _cache(first.to_dict())
    repo.reset_mock()
    page = await _search(SearchService(repo, cache=cache))
    for name in FETCHERS:
        getattr(repo, name).assert_not_awaited()
    assert [r.id for r in page.results] == ["m1"]
    assert page.results[0].highlights == first.results[0].highlights


async def test_unavailable_cache_is_bypassed(repo) -> None:
    cache = _cache()
    cache.is_available = MagicMock(return_value=False)
    await _search(SearchService(repo, cache=cache))
    cache.get.assert_not_awaited()
    repo.search_memories.assert_awaited_once()


async def test_invalidate_user_deletes_user_keys(repo) -> None:
    cache = _cache()
    deleted = await SearchService(repo, cache=cache).invalidate_user(USER_ID)
    cache.delete_pattern.assert_awaited_once_with(f"search:{USER_ID}:*")
    assert deleted == 3
