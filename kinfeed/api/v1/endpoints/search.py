"""Search API: federated search, analytics sink, usage statistics."""

import time
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from kinfeed.api.v1.dependencies import (
    get_current_user_id,
    get_search_analytics_service,
    get_search_service,
)
from kinfeed.application.dtos.search_analytics import SearchAnalyticsEventCreate
from kinfeed.application.use_cases.search import SearchService
from kinfeed.application.use_cases.search_analytics import SearchAnalyticsService
from kinfeed.core.limiter import limit_analytics, limit_search
from kinfeed.schemas.search import (
    SearchAnalyticsRequest,
    SearchAnalyticsResponse,
    SearchResponse,
    SearchStatisticsResponse,
)

router = APIRouter()


@router.get("", response_model=SearchResponse, response_model_exclude_none=True)
@limit_search
async def search(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    q: str | None = Query(None, description="Search text (required, non-blank)"),
    types: str | None = Query(
        None, description="Comma-separated: memory,comment,child,recipient,group"
    ),
    limit: str | None = Query(None, description="Page size, clamped to [1, 100]"),
    cursor: str | None = Query(None, description="Opaque keyset cursor"),
    offset: str | None = Query(None, description="Legacy offset (disables keyset paging)"),
    cursor_created_at: str | None = Query(None, alias="cursorCreatedAt"),
    cursor_id: str | None = Query(None, alias="cursorId"),
    include_highlights: str | None = Query(None, alias="includeHighlights"),
) -> SearchResponse:
    """Search the caller's memories, comments, children, recipients and groups."""
    started_at = time.perf_counter()
    search_request = search_svc.build_request(
        user_id=user_id,
        q=q,
        types=types,
        limit=limit,
        cursor=cursor,
        offset=offset,
        cursor_created_at=cursor_created_at,
        cursor_id=cursor_id,
        include_highlights=include_highlights != "false",
    )
    page = await search_svc.search(search_request, started_at=started_at)
    return SearchResponse.from_page(page)


@router.post(
    "/analytics",
    response_model=SearchAnalyticsResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
@limit_analytics
async def record_search_analytics(
    request: Request,
    body: SearchAnalyticsRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    analytics_svc: Annotated[
        SearchAnalyticsService, Depends(get_search_analytics_service)
    ],
) -> SearchAnalyticsResponse:
    """Record a search or click event. A failed write is reported, not raised."""
    recorded = await analytics_svc.record_event(
        SearchAnalyticsEventCreate(
            user_id=user_id,
            query=body.query,
            results_count=body.results_count,
            execution_time_ms=body.execution_time_ms,
            search_types=body.search_types,
            clicked_result_id=body.clicked_result_id,
            clicked_result_type=body.clicked_result_type,
        )
    )
    return SearchAnalyticsResponse(recorded=recorded)


@router.get("/statistics", response_model=SearchStatisticsResponse)
async def search_statistics(
    user_id: Annotated[str, Depends(get_current_user_id)],
    analytics_svc: Annotated[
        SearchAnalyticsService, Depends(get_search_analytics_service)
    ],
    days: int = Query(30, description="Trailing window in days (1-365)"),
) -> SearchStatisticsResponse:
    """Search usage for the caller over the last `days` days."""
    stats = await analytics_svc.get_statistics(user_id, days)
    return SearchStatisticsResponse.from_statistics(stats)
