"""Domain enums (search result types, pagination modes)."""

from enum import Enum


class SearchResultType(str, Enum):
    """Queryable record types. Declaration order is the merge tie-break order."""

    MEMORY = "memory"
    COMMENT = "comment"
    CHILD = "child"
    RECIPIENT = "recipient"
    GROUP = "group"

    @classmethod
    def parse_list(cls, raw: str | None) -> frozenset["SearchResultType"]:
        """Parse a comma-separated types filter. Unknown names are ignored; empty means all."""
        if not raw:
            return frozenset(cls)
        values = {member.value: member for member in cls}
        selected = {
            values[name.strip().lower()]
            for name in raw.split(",")
            if name.strip().lower() in values
        }
        return frozenset(selected) if selected else frozenset(cls)


class PaginationMode(str, Enum):
    """How the per-source fetchers window their rows."""

    KEYSET = "keyset"  # (created_at, id) bound; limit + 1 rows
    OFFSET = "offset"  # legacy LIMIT/OFFSET; has_more never computed


class DistributionStatus(str, Enum):
    """Memory distribution status values that affect result URLs."""

    DRAFT = "draft"
    READY = "ready"
    SCHEDULED = "scheduled"
    SENDING = "sending"
    SENT = "sent"
    FAILED = "failed"
