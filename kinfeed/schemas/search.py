"""Search API schemas. Wire names are camelCase; Python attributes are snake_case."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from kinfeed.application.dtos.search import SearchPage, SearchResult
from kinfeed.application.dtos.search_analytics import SearchStatistics

ResultType = Literal["memory", "comment", "child", "recipient", "group"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HighlightsResponse(CamelModel):
    title: str | None = None
    content: str | None = None


class SearchResultResponse(CamelModel):
    """One unified hit. Type-specific fields live in metadata."""

    id: str
    type: ResultType
    title: str
    content: str | None = None
    excerpt: str | None = None
    url: str
    rank: float
    highlights: HighlightsResponse | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_result(cls, result: SearchResult) -> "SearchResultResponse":
        highlights = result.highlights
        return cls(
            id=result.id,
            type=result.type.value,
            title=result.title,
            content=result.content,
            excerpt=result.excerpt,
            url=result.url,
            rank=result.rank,
            highlights=(
                HighlightsResponse(title=highlights.title, content=highlights.content)
                if highlights is not None
                else None
            ),
            metadata=result.metadata.to_dict(),
        )


class PaginationResponse(CamelModel):
    has_more: bool
    next_cursor: str | None = None


class SearchResponse(CamelModel):
    """GET /search body: one page of merged results."""

    results: list[SearchResultResponse]
    total: int = Field(..., description="Results fetched across sources before windowing")
    query: str
    execution_time: int = Field(..., description="Milliseconds from receipt to assembly")
    pagination: PaginationResponse

    @classmethod
    def from_page(cls, page: SearchPage) -> "SearchResponse":
        return cls(
            results=[SearchResultResponse.from_result(r) for r in page.results],
            total=page.total,
            query=page.query,
            execution_time=page.execution_time_ms,
            pagination=PaginationResponse(
                has_more=page.has_more, next_cursor=page.next_cursor
            ),
        )


class SearchAnalyticsRequest(CamelModel):
    """Client-reported search or result click."""

    query: str = Field(..., min_length=1, max_length=500)
    results_count: int = Field(..., ge=0)
    execution_time_ms: int | None = Field(default=None, ge=0)
    search_types: list[str] = Field(default_factory=list)
    clicked_result_id: str | None = None
    clicked_result_type: ResultType | None = None


class SearchAnalyticsResponse(CamelModel):
    recorded: bool


class SearchStatisticsResponse(CamelModel):
    days: int
    total_searches: int
    unique_queries: int
    avg_results_count: float | None = None
    avg_execution_time_ms: float | None = None
    top_queries: list[str] = Field(default_factory=list)

    @classmethod
    def from_statistics(cls, stats: SearchStatistics) -> "SearchStatisticsResponse":
        return cls(
            days=stats.days,
            total_searches=stats.total_searches,
            unique_queries=stats.unique_queries,
            avg_results_count=stats.avg_results_count,
            avg_execution_time_ms=stats.avg_execution_time_ms,
            top_queries=list(stats.top_queries),
        )
