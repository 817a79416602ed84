"""Map per-source rows into the unified SearchResult shape.

Text-ranked sources (memory, comment) keep the oracle's search_rank.
Name/email matches get a flat structured_match_rank regardless of match
quality. The two scales are not normalized against each other, so the merged
order between a text hit and a name hit does not reflect true relevance.
"""

from __future__ import annotations

from datetime import datetime

from kinfeed.application.dtos.search import (
    ChildMetadata,
    ChildRow,
    CommentMetadata,
    CommentRow,
    GroupMetadata,
    GroupRow,
    Highlights,
    MemoryMetadata,
    MemoryRow,
    RecipientMetadata,
    RecipientRow,
    SearchResult,
    SourceRow,
)
from kinfeed.application.services.excerpt import (
    DEFAULT_EXCERPT_LENGTH,
    generate_excerpt,
    highlight_matches,
)
from kinfeed.domain.enums import DistributionStatus, SearchResultType

DEFAULT_STRUCTURED_MATCH_RANK = 0.5
UNTITLED_MEMORY = "Untitled Memory"


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _highlights(
    query: str, title: str | None = None, content: str | None = None
) -> Highlights | None:
    """Marked-up title/content, or None when no term matched either field."""
    marked_title = highlight_matches(title, query) if title else None
    marked_content = highlight_matches(content, query) if content else None
    if marked_title == (title or None) and marked_content == (content or None):
        return None
    return Highlights(title=marked_title, content=marked_content)


def memory_url(memory_id: str, status: str | None) -> str:
    """Drafts open in the editor; everything else opens the memory view."""
    if status == DistributionStatus.DRAFT.value:
        return f"/dashboard/drafts/{memory_id}/edit"
    return f"/dashboard/memories/{memory_id}"


class ResultNormalizer:
    """Builds SearchResult records (title, url, excerpt, highlights, metadata, rank)."""

    def __init__(
        self,
        excerpt_length: int = DEFAULT_EXCERPT_LENGTH,
        structured_match_rank: float = DEFAULT_STRUCTURED_MATCH_RANK,
    ) -> None:
        self.excerpt_length = excerpt_length
        self.structured_match_rank = structured_match_rank

    def normalize(
        self, row: SourceRow, query: str, include_highlights: bool = True
    ) -> SearchResult:
        """Dispatch on row type."""
        if isinstance(row, MemoryRow):
            return self._memory(row, query, include_highlights)
        if isinstance(row, CommentRow):
            return self._comment(row, query, include_highlights)
        if isinstance(row, ChildRow):
            return self._child(row, query, include_highlights)
        if isinstance(row, RecipientRow):
            return self._recipient(row, query, include_highlights)
        if isinstance(row, GroupRow):
            return self._group(row, query, include_highlights)
        raise TypeError(f"Unsupported search row: {type(row).__name__}")

    def normalize_all(
        self, rows: list[SourceRow], query: str, include_highlights: bool = True
    ) -> list[SearchResult]:
        return [self.normalize(row, query, include_highlights) for row in rows]

    def _memory(self, row: MemoryRow, query: str, highlight: bool) -> SearchResult:
        excerpt = generate_excerpt(row.content, query, self.excerpt_length)
        return SearchResult(
            id=row.id,
            type=SearchResultType.MEMORY,
            title=row.subject or UNTITLED_MEMORY,
            content=row.content or None,
            excerpt=excerpt,
            url=memory_url(row.id, row.distribution_status),
            rank=float(row.search_rank),
            metadata=MemoryMetadata(
                child_id=row.child_id,
                status=row.distribution_status,
                created_at=_iso(row.created_at),
            ),
            highlights=_highlights(query, title=row.subject, content=excerpt)
            if highlight
            else None,
        )

    def _comment(self, row: CommentRow, query: str, highlight: bool) -> SearchResult:
        excerpt = generate_excerpt(row.content, query, self.excerpt_length)
        return SearchResult(
            id=row.id,
            type=SearchResultType.COMMENT,
            title=f"Comment on {row.update_subject or 'Update'}",
            content=row.content,
            excerpt=excerpt,
            url=f"/dashboard/memories/{row.update_id}#comment-{row.id}",
            rank=float(row.search_rank),
            metadata=CommentMetadata(
                update_id=row.update_id, created_at=_iso(row.created_at)
            ),
            highlights=_highlights(query, content=excerpt)
            if highlight
            else None,
        )

    def _child(self, row: ChildRow, query: str, highlight: bool) -> SearchResult:
        return SearchResult(
            id=row.id,
            type=SearchResultType.CHILD,
            title=row.name,
            url=f"/dashboard/children?selected={row.id}",
            rank=self.structured_match_rank,
            metadata=ChildMetadata(
                birth_date=row.birth_date, created_at=_iso(row.created_at)
            ),
            highlights=_highlights(query, title=row.name)
            if highlight
            else None,
        )

    def _recipient(
        self, row: RecipientRow, query: str, highlight: bool
    ) -> SearchResult:
        return SearchResult(
            id=row.id,
            type=SearchResultType.RECIPIENT,
            title=row.name,
            content=row.email or None,
            url=f"/dashboard/recipients?selected={row.id}",
            rank=self.structured_match_rank,
            metadata=RecipientMetadata(
                relationship=row.relationship,
                email=row.email,
                created_at=_iso(row.created_at),
            ),
            highlights=_highlights(query, title=row.name, content=row.email)
            if highlight
            else None,
        )

    def _group(self, row: GroupRow, query: str, highlight: bool) -> SearchResult:
        return SearchResult(
            id=row.id,
            type=SearchResultType.GROUP,
            title=row.name,
            url=f"/dashboard/groups?selected={row.id}",
            rank=self.structured_match_rank,
            metadata=GroupMetadata(
                frequency=row.default_frequency, created_at=_iso(row.created_at)
            ),
            highlights=_highlights(query, title=row.name)
            if highlight
            else None,
        )
