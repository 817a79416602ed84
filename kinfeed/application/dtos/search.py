"""DTOs for federated search (no dependency on ORM).

Per-source rows are what the fetchers return; SearchResult is the unified
record after normalization. Metadata is a tagged union discriminated by
SearchResult.type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from kinfeed.domain.enums import PaginationMode, SearchResultType


# ---- Normalized query and pagination directive ----


@dataclass(frozen=True)
class NormalizedQuery:
    """User query in the shapes each source needs."""

    text: str  # trimmed user query (used for excerpts and highlights)
    terms: tuple[str, ...]
    oracle_expression: str  # e.g. "first:* & steps:*"
    substring_pattern: str  # e.g. "%first steps%" (ILIKE, wildcards escaped)


@dataclass(frozen=True)
class PaginationCursor:
    """Position of the last-seen record when ordered by recency."""

    created_at: str  # ISO-8601, as sent to and received from clients
    id: str

    def created_at_datetime(self) -> datetime:
        """Parsed created_at; naive timestamps are taken as UTC."""
        parsed = datetime.fromisoformat(self.created_at)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


@dataclass(frozen=True)
class PaginationDirective:
    """Normalized {limit, cursor | offset} consumed by the fetchers."""

    limit: int
    cursor: PaginationCursor | None = None
    offset: int | None = None

    @property
    def mode(self) -> PaginationMode:
        """Keyset unless a legacy offset was supplied without a cursor."""
        return PaginationMode.OFFSET if self.offset is not None else PaginationMode.KEYSET

    @property
    def fetch_limit(self) -> int:
        """Rows to request per source: one extra in keyset mode to detect has_more."""
        return self.limit + 1 if self.mode is PaginationMode.KEYSET else self.limit

    @property
    def effective_offset(self) -> int:
        return self.offset or 0


# ---- Per-source rows (fetcher output) ----


@dataclass(frozen=True)
class MemoryRow:
    """Row from the memory ranking oracle."""

    id: str
    subject: str | None
    content: str | None
    child_id: str | None
    distribution_status: str | None
    created_at: datetime | None
    search_rank: float


@dataclass(frozen=True)
class CommentRow:
    """Row from the comment ranking oracle (joined with its memory's subject)."""

    id: str
    content: str | None
    update_id: str
    update_subject: str | None
    created_at: datetime | None
    search_rank: float


@dataclass(frozen=True)
class ChildRow:
    id: str
    name: str
    birth_date: str | None
    created_at: datetime | None


@dataclass(frozen=True)
class RecipientRow:
    id: str
    name: str
    email: str | None
    relationship: str | None
    created_at: datetime | None


@dataclass(frozen=True)
class GroupRow:
    id: str
    name: str
    default_frequency: str | None
    created_at: datetime | None


SourceRow = MemoryRow | CommentRow | ChildRow | RecipientRow | GroupRow


# ---- Per-type metadata (tagged union) ----


@dataclass(frozen=True)
class MemoryMetadata:
    child_id: str | None
    status: str | None
    created_at: str | None

    def to_dict(self) -> dict[str, Any]:
        return {"childId": self.child_id, "status": self.status, "createdAt": self.created_at}


@dataclass(frozen=True)
class CommentMetadata:
    update_id: str
    created_at: str | None

    def to_dict(self) -> dict[str, Any]:
        return {"updateId": self.update_id, "createdAt": self.created_at}


@dataclass(frozen=True)
class ChildMetadata:
    birth_date: str | None
    created_at: str | None

    def to_dict(self) -> dict[str, Any]:
        return {"birthDate": self.birth_date, "createdAt": self.created_at}


@dataclass(frozen=True)
class RecipientMetadata:
    relationship: str | None
    email: str | None
    created_at: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "relationship": self.relationship,
            "email": self.email,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class GroupMetadata:
    frequency: str | None
    created_at: str | None

    def to_dict(self) -> dict[str, Any]:
        return {"frequency": self.frequency, "createdAt": self.created_at}


SearchMetadata = (
    MemoryMetadata | CommentMetadata | ChildMetadata | RecipientMetadata | GroupMetadata
)


def metadata_from_dict(result_type: SearchResultType, data: dict[str, Any]) -> SearchMetadata:
    """Rebuild typed metadata from its camelCase dict (cache read path)."""
    created_at = data.get("createdAt")
    if result_type is SearchResultType.MEMORY:
        return MemoryMetadata(
            child_id=data.get("childId"), status=data.get("status"), created_at=created_at
        )
    if result_type is SearchResultType.COMMENT:
        return CommentMetadata(update_id=data["updateId"], created_at=created_at)
    if result_type is SearchResultType.CHILD:
        return ChildMetadata(birth_date=data.get("birthDate"), created_at=created_at)
    if result_type is SearchResultType.RECIPIENT:
        return RecipientMetadata(
            relationship=data.get("relationship"),
            email=data.get("email"),
            created_at=created_at,
        )
    return GroupMetadata(frequency=data.get("frequency"), created_at=created_at)


# ---- Unified result and page ----


@dataclass(frozen=True)
class Highlights:
    """Fields with query terms wrapped in <mark> tags."""

    title: str | None = None
    content: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in (("title", self.title), ("content", self.content)) if v is not None}


@dataclass(frozen=True)
class SearchResult:
    """Unified search hit. (type, id) is the key; id alone is only unique per type."""

    id: str
    type: SearchResultType
    title: str
    url: str
    rank: float
    metadata: SearchMetadata
    content: str | None = None
    excerpt: str | None = None
    highlights: Highlights | None = None

    @property
    def created_at(self) -> str | None:
        return self.metadata.created_at

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "url": self.url,
            "rank": self.rank,
            "metadata": self.metadata.to_dict(),
        }
        if self.content is not None:
            data["content"] = self.content
        if self.excerpt is not None:
            data["excerpt"] = self.excerpt
        if self.highlights is not None:
            data["highlights"] = self.highlights.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchResult":
        result_type = SearchResultType(data["type"])
        highlights = data.get("highlights")
        return cls(
            id=data["id"],
            type=result_type,
            title=data["title"],
            url=data["url"],
            rank=float(data["rank"]),
            metadata=metadata_from_dict(result_type, data.get("metadata") or {}),
            content=data.get("content"),
            excerpt=data.get("excerpt"),
            highlights=Highlights(**highlights) if highlights is not None else None,
        )


@dataclass(frozen=True)
class SearchRequest:
    """Validated search request (output of the query normalizer and pagination codec)."""

    user_id: str
    query: NormalizedQuery
    types: frozenset[SearchResultType]
    pagination: PaginationDirective
    include_highlights: bool = True


@dataclass
class SearchPage:
    """Windowed, merged result page.

    total counts fetched (pre-window) rows, not all matches in the store.
    """

    results: list[SearchResult]
    total: int
    query: str
    execution_time_ms: int = 0
    has_more: bool = False
    next_cursor: str | None = None
    searched_types: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "total": self.total,
            "query": self.query,
            "execution_time_ms": self.execution_time_ms,
            "has_more": self.has_more,
            "next_cursor": self.next_cursor,
            "searched_types": list(self.searched_types),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchPage":
        return cls(
            results=[SearchResult.from_dict(r) for r in data.get("results", [])],
            total=int(data.get("total", 0)),
            query=data.get("query", ""),
            execution_time_ms=int(data.get("execution_time_ms", 0)),
            has_more=bool(data.get("has_more", False)),
            next_cursor=data.get("next_cursor"),
            searched_types=list(data.get("searched_types", [])),
        )

