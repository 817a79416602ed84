"""Federated search use case: fan-out to per-source fetchers, merge, window.

Request lifecycle (linear): validated -> fetched (concurrent fan-out/fan-in)
-> normalized -> merged/sorted -> windowed -> serialized. There are no
retries; a failing source contributes zero results and never fails the
request.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING

from kinfeed.application.dtos.search import (
    NormalizedQuery,
    PaginationCursor,
    PaginationDirective,
    SearchPage,
    SearchRequest,
    SearchResult,
    SourceRow,
)
from kinfeed.application.services.pagination import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    encode_cursor,
    normalize_pagination,
)
from kinfeed.application.services.query_normalizer import normalize_query
from kinfeed.application.services.result_normalizer import ResultNormalizer
from kinfeed.core.constants import CACHE_KEY_SEP, CACHE_PREFIX_SEARCH
from kinfeed.domain.enums import PaginationMode, SearchResultType
from kinfeed.domain.exceptions import SourceFetchException
from kinfeed.shared.telemetry.tracing import TracedOperation

if TYPE_CHECKING:
    from kinfeed.application.interfaces.repositories import ISearchRepository
    from kinfeed.application.interfaces.services import ISearchCache

logger = logging.getLogger(__name__)

# Declaration order of SearchResultType; also the tie-break order of the merge.
SOURCE_ORDER: tuple[SearchResultType, ...] = tuple(SearchResultType)


def merge_results(per_source: Iterable[list[SearchResult]]) -> list[SearchResult]:
    """Concatenate per-source lists and sort by rank descending.

    sorted() is stable, so equal ranks keep concatenation (source) order.
    This is a full in-memory sort of what each source returned, not a
    distributed top-k: a source is never re-queried for more rows.
    """
    combined = [result for results in per_source for result in results]
    return sorted(combined, key=lambda r: r.rank, reverse=True)


def window_results(
    merged: list[SearchResult], pagination: PaginationDirective
) -> tuple[list[SearchResult], bool, str | None]:
    """Apply the page window. Returns (visible, has_more, next_cursor).

    Keyset mode: sources fetched limit + 1 rows, so more than limit merged
    results means another page exists; the cursor comes from the last visible
    result. Offset mode never reports has_more.
    """
    visible = merged[: pagination.limit]
    if pagination.mode is PaginationMode.OFFSET:
        return visible, False, None
    has_more = len(merged) > pagination.limit
    next_cursor = None
    if has_more and visible:
        last = visible[-1]
        if last.created_at:
            next_cursor = encode_cursor(
                PaginationCursor(created_at=last.created_at, id=last.id)
            )
        else:
            logger.warning(
                "Cannot build next cursor: last visible %s result %s has no createdAt",
                last.type.value,
                last.id,
            )
    return visible, has_more, next_cursor


def search_cache_key(request: SearchRequest) -> str:
    """Per-user cache key; the user id stays readable so a pattern can invalidate it."""
    cursor = request.pagination.cursor
    fingerprint = json.dumps(
        {
            "q": request.query.text,
            "types": sorted(t.value for t in request.types),
            "limit": request.pagination.limit,
            "offset": request.pagination.offset,
            "cursor": [cursor.created_at, cursor.id] if cursor else None,
            "highlights": request.include_highlights,
        },
        sort_keys=True,
    )
    digest = hashlib.sha256(fingerprint.encode("utf-8")).hexdigest()
    return CACHE_KEY_SEP.join((CACHE_PREFIX_SEARCH, request.user_id, digest))


def user_cache_pattern(user_id: str) -> str:
    return CACHE_KEY_SEP.join((CACHE_PREFIX_SEARCH, user_id, "*"))


class SearchService:
    """Federated search over memories, comments, children, recipients and groups (user-scoped)."""

    def __init__(
        self,
        search_repo: "ISearchRepository",
        normalizer: ResultNormalizer | None = None,
        cache: "ISearchCache | None" = None,
        cache_ttl: int = 30,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> None:
        self.search_repo = search_repo
        self.normalizer = normalizer or ResultNormalizer()
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.default_limit = default_limit
        self.max_limit = max_limit

    def build_request(
        self,
        user_id: str,
        q: str | None,
        types: str | None = None,
        limit: str | int | None = None,
        cursor: str | None = None,
        offset: str | int | None = None,
        cursor_created_at: str | None = None,
        cursor_id: str | None = None,
        include_highlights: bool = True,
    ) -> SearchRequest:
        """Validate raw parameters into a SearchRequest.

        Raises:
            ValidationException: Empty query or malformed cursor.
        """
        query = normalize_query(q)
        pagination = normalize_pagination(
            limit=limit,
            offset=offset,
            cursor=cursor,
            cursor_created_at=cursor_created_at,
            cursor_id=cursor_id,
            default_limit=self.default_limit,
            max_limit=self.max_limit,
        )
        return SearchRequest(
            user_id=user_id,
            query=query,
            types=SearchResultType.parse_list(types),
            pagination=pagination,
            include_highlights=include_highlights,
        )

    async def search(
        self, request: SearchRequest, started_at: float | None = None
    ) -> SearchPage:
        """Run the search and return one windowed page.

        Args:
            request: Validated request from build_request.
            started_at: time.perf_counter() at request receipt; defaults to now.
        """
        started_at = time.perf_counter() if started_at is None else started_at
        cache_key = search_cache_key(request) if self._cache_enabled() else None
        if cache_key is not None:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                page = SearchPage.from_dict(cached)
                page.execution_time_ms = _elapsed_ms(started_at)
                return page

        async with TracedOperation(
            "search.execute",
            {
                "search.mode": request.pagination.mode.value,
                "search.types": ",".join(sorted(t.value for t in request.types)),
            },
        ) as op:
            per_source = await self._fetch_all(request)
            op.set_attribute("search.fetched", sum(len(rows) for rows in per_source.values()))
        normalized = [
            self.normalizer.normalize_all(
                per_source[source], request.query.text, request.include_highlights
            )
            for source in SOURCE_ORDER
            if source in per_source
        ]
        merged = merge_results(normalized)
        visible, has_more, next_cursor = window_results(merged, request.pagination)
        page = SearchPage(
            results=visible,
            total=len(merged),
            query=request.query.text,
            has_more=has_more,
            next_cursor=next_cursor,
            searched_types=[s.value for s in SOURCE_ORDER if s in request.types],
        )
        if cache_key is not None:
            await self.cache.set(cache_key, page.to_dict(), ttl=self.cache_ttl)
        page.execution_time_ms = _elapsed_ms(started_at)
        logger.debug(
            "Search user=%s types=%s fetched=%d returned=%d has_more=%s in %dms",
            request.user_id,
            ",".join(page.searched_types),
            page.total,
            len(page.results),
            page.has_more,
            page.execution_time_ms,
        )
        return page

    async def invalidate_user(self, user_id: str) -> int:
        """Drop every cached search page for user_id (call after the user's data changes)."""
        if not self._cache_enabled():
            return 0
        return await self.cache.delete_pattern(user_cache_pattern(user_id))

    def _cache_enabled(self) -> bool:
        return self.cache is not None and self.cache.is_available()

    def _fetchers(
        self,
    ) -> dict[
        SearchResultType,
        Callable[[NormalizedQuery, str, PaginationDirective], Awaitable[list[SourceRow]]],
    ]:
        return {
            SearchResultType.MEMORY: self.search_repo.search_memories,
            SearchResultType.COMMENT: self.search_repo.search_comments,
            SearchResultType.CHILD: self.search_repo.search_children,
            SearchResultType.RECIPIENT: self.search_repo.search_recipients,
            SearchResultType.GROUP: self.search_repo.search_groups,
        }

    async def _fetch_all(
        self, request: SearchRequest
    ) -> dict[SearchResultType, list[SourceRow]]:
        """Fan out to the selected sources concurrently; excluded types are never called."""
        fetchers = self._fetchers()
        selected = [s for s in SOURCE_ORDER if s in request.types]
        rows = await asyncio.gather(
            *(self._fetch_source(source, fetchers[source], request) for source in selected)
        )
        return dict(zip(selected, rows, strict=True))

    async def _fetch_source(
        self,
        source: SearchResultType,
        fetch: Callable[[NormalizedQuery, str, PaginationDirective], Awaitable[list[SourceRow]]],
        request: SearchRequest,
    ) -> list[SourceRow]:
        """Run one fetcher; any failure is logged and the source yields no rows."""
        try:
            return list(await fetch(request.query, request.user_id, request.pagination))
        except SourceFetchException as e:
            logger.warning("Search source %s failed: %s", source.value, e.message)
        except Exception:
            logger.exception("Search source %s raised unexpectedly", source.value)
        return []


def _elapsed_ms(started_at: float) -> int:
    return int((time.perf_counter() - started_at) * 1000)
