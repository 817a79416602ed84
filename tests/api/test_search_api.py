"""Search API tests. Repositories are mocked through dependency overrides."""

import base64
from datetime import UTC, datetime
from unittest.mock import AsyncMock

from httpx import AsyncClient

from kinfeed.application.dtos.search import GroupRow, MemoryRow, RecipientRow
from kinfeed.application.dtos.search_analytics import SearchStatistics
from kinfeed.domain.exceptions import AnalyticsWriteException

CREATED = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)
TEST_USER_ID = "7f3c2a1e-0000-4000-8000-000000000001"
GROUP_ONE = "5a1d9e2b-0000-4000-8000-0000000000a1"
GROUP_TWO = "5a1d9e2b-0000-4000-8000-0000000000a2"


async def test_search_without_token_is_unauthorized(client: AsyncClient) -> None:
    response = await client.get("/api/v1/search", params={"q": "steps"})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized", "code": "AUTHENTICATION_ERROR"}


async def test_auth_is_checked_before_query_validation(client: AsyncClient) -> None:
    response = await client.get("/api/v1/search", params={"q": ""})
    assert response.status_code == 401


async def test_invalid_token_is_unauthorized(client: AsyncClient) -> None:
    response = await client.get(
        "/api/v1/search",
        params={"q": "steps"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401


async def test_empty_query_is_bad_request(
    client: AsyncClient, auth_headers: dict[str, str], search_repo: AsyncMock
) -> None:
    response = await client.get("/api/v1/search", params={"q": "   "}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Search query is required"
    search_repo.search_memories.assert_not_awaited()


async def test_missing_query_is_bad_request(
    client: AsyncClient, auth_headers: dict[str, str]
) -> None:
    response = await client.get("/api/v1/search", headers=auth_headers)
    assert response.status_code == 400


async def test_malformed_cursor_is_bad_request(
    client: AsyncClient, auth_headers: dict[str, str]
) -> None:
    response = await client.get(
        "/api/v1/search",
        params={"q": "steps", "cursor": "%%%not-a-cursor"},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid pagination cursor"


async def test_future_cursor_is_bad_request(
    client: AsyncClient, auth_headers: dict[str, str]
) -> None:
    token = base64.b64encode(b'{"createdAt":"2999-01-01T00:00:00Z","id":"m1"}').decode()
    response = await client.get(
        "/api/v1/search", params={"q": "steps", "cursor": token}, headers=auth_headers
    )
    assert response.status_code == 400


async def test_cursor_with_non_uuid_id_is_bad_request(
    client: AsyncClient, auth_headers: dict[str, str], search_repo: AsyncMock
) -> None:
    token = base64.b64encode(
        b'{"createdAt":"2024-01-01T00:00:00+00:00","id":"not-a-uuid"}'
    ).decode()
    response = await client.get(
        "/api/v1/search", params={"q": "steps", "cursor": token}, headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid pagination cursor"
    search_repo.search_groups.assert_not_awaited()


async def test_legacy_cursor_id_must_be_a_uuid(
    client: AsyncClient, auth_headers: dict[str, str]
) -> None:
    response = await client.get(
        "/api/v1/search",
        params={
            "q": "steps",
            "cursorCreatedAt": "2024-01-01T00:00:00+00:00",
            "cursorId": "g1",
        },
        headers=auth_headers,
    )
    assert response.status_code == 400


async def test_limit_is_clamped_to_maximum(
    client: AsyncClient, auth_headers: dict[str, str], search_repo: AsyncMock
) -> None:
    response = await client.get(
        "/api/v1/search", params={"q": "steps", "limit": "500"}, headers=auth_headers
    )
    assert response.status_code == 200
    _, _, pagination = search_repo.search_memories.await_args.args
    assert pagination.limit == 100


async def test_search_is_scoped_to_token_subject(
    client: AsyncClient, auth_headers: dict[str, str], search_repo: AsyncMock
) -> None:
    await client.get("/api/v1/search", params={"q": "steps"}, headers=auth_headers)
    _, user_id, _ = search_repo.search_groups.await_args.args
    assert user_id == TEST_USER_ID


async def test_first_steps_scenario(
    client: AsyncClient, auth_headers: dict[str, str], search_repo: AsyncMock
) -> None:
    search_repo.search_memories.return_value = [
        MemoryRow(
            id="m1",
            subject="Baby's first steps",
            content="She took her first steps today!",
            child_id="c1",
            distribution_status="sent",
            created_at=CREATED,
            search_rank=0.61,
        )
    ]
    response = await client.get(
        "/api/v1/search", params={"q": "first steps"}, headers=auth_headers
    )
    assert response.status_code == 200
    body = response.json()
    assert body["query"] == "first steps"
    assert body["total"] == 1
    assert isinstance(body["executionTime"], int)
    assert body["pagination"] == {"hasMore": False}
    (result,) = body["results"]
    assert result["type"] == "memory"
    assert result["url"] == "/dashboard/memories/m1"
    assert result["rank"] == 0.61
    assert result["highlights"]["title"] == "Baby's <mark>first</mark> <mark>steps</mark>"
    assert result["metadata"]["createdAt"] == "2024-03-01T09:00:00+00:00"
    memories_query = search_repo.search_memories.await_args.args[0]
    assert memories_query.oracle_expression == "first:* & steps:*"


async def test_type_filter_returns_structured_ranks(
    client: AsyncClient, auth_headers: dict[str, str], search_repo: AsyncMock
) -> None:
    search_repo.search_groups.return_value = [GroupRow("g1", "Family", "weekly", CREATED)]
    search_repo.search_recipients.return_value = [
        RecipientRow("r1", "Family Friend", "ff@example.com", "friend", CREATED)
    ]
    response = await client.get(
        "/api/v1/search",
        params={"q": "family", "types": "group,recipient"},
        headers=auth_headers,
    )
    results = response.json()["results"]
    assert [r["type"] for r in results] == ["recipient", "group"]
    assert {r["rank"] for r in results} == {0.5}
    search_repo.search_memories.assert_not_awaited()
    search_repo.search_comments.assert_not_awaited()
    search_repo.search_children.assert_not_awaited()


async def test_highlights_can_be_disabled(
    client: AsyncClient, auth_headers: dict[str, str], search_repo: AsyncMock
) -> None:
    search_repo.search_groups.return_value = [GroupRow("g1", "Family", "weekly", CREATED)]
    response = await client.get(
        "/api/v1/search",
        params={"q": "family", "includeHighlights": "false"},
        headers=auth_headers,
    )
    assert "highlights" not in response.json()["results"][0]


async def test_more_results_return_next_cursor(
    client: AsyncClient, auth_headers: dict[str, str], search_repo: AsyncMock
) -> None:
    search_repo.search_groups.return_value = [
        GroupRow(GROUP_ONE, "Family one", None, CREATED),
        GroupRow(GROUP_TWO, "Family two", None, CREATED),
    ]
    response = await client.get(
        "/api/v1/search", params={"q": "family", "limit": "1"}, headers=auth_headers
    )
    pagination = response.json()["pagination"]
    assert pagination["hasMore"] is True
    next_response = await client.get(
        "/api/v1/search",
        params={"q": "family", "limit": "1", "cursor": pagination["nextCursor"]},
        headers=auth_headers,
    )
    assert next_response.status_code == 200
    _, _, directive = search_repo.search_groups.await_args.args
    assert directive.cursor.id == GROUP_ONE


async def test_failing_source_still_returns_200(
    client: AsyncClient, auth_headers: dict[str, str], search_repo: AsyncMock
) -> None:
    search_repo.search_memories.side_effect = RuntimeError("database is down")
    search_repo.search_groups.return_value = [GroupRow("g1", "Family", "weekly", CREATED)]
    response = await client.get(
        "/api/v1/search", params={"q": "family"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert [r["id"] for r in response.json()["results"]] == ["g1"]


async def test_record_analytics(
    client: AsyncClient, auth_headers: dict[str, str], analytics_repo: AsyncMock
) -> None:
    response = await client.post(
        "/api/v1/search/analytics",
        json={
            "query": "first steps",
            "resultsCount": 3,
            "executionTimeMs": 42,
            "searchTypes": ["memory", "comment"],
            "clickedResultId": "m1",
            "clickedResultType": "memory",
        },
        headers=auth_headers,
    )
    assert response.status_code == 202
    assert response.json() == {"recorded": True}
    (event,) = analytics_repo.record.await_args.args
    assert event.user_id == TEST_USER_ID
    assert event.results_count == 3
    assert event.clicked_result_type == "memory"


async def test_analytics_write_failure_is_not_an_error(
    client: AsyncClient, auth_headers: dict[str, str], analytics_repo: AsyncMock
) -> None:
    analytics_repo.record.side_effect = AnalyticsWriteException("disk full")
    response = await client.post(
        "/api/v1/search/analytics",
        json={"query": "steps", "resultsCount": 0},
        headers=auth_headers,
    )
    assert response.status_code == 202
    assert response.json() == {"recorded": False}


async def test_analytics_requires_auth(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/search/analytics", json={"query": "steps", "resultsCount": 0}
    )
    assert response.status_code == 401


async def test_statistics(
    client: AsyncClient, auth_headers: dict[str, str], analytics_repo: AsyncMock
) -> None:
    analytics_repo.get_statistics.return_value = SearchStatistics(
        days=7,
        total_searches=12,
        unique_queries=5,
        avg_results_count=3.5,
        avg_execution_time_ms=41.25,
        top_queries=["first steps", "emma"],
    )
    response = await client.get(
        "/api/v1/search/statistics", params={"days": 7}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json() == {
        "days": 7,
        "totalSearches": 12,
        "uniqueQueries": 5,
        "avgResultsCount": 3.5,
        "avgExecutionTimeMs": 41.25,
        "topQueries": ["first steps", "emma"],
    }
    analytics_repo.get_statistics.assert_awaited_once_with(TEST_USER_ID, 7)


async def test_statistics_window_out_of_range(
    client: AsyncClient, auth_headers: dict[str, str]
) -> None:
    response = await client.get(
        "/api/v1/search/statistics", params={"days": 0}, headers=auth_headers
    )
    assert response.status_code == 400
