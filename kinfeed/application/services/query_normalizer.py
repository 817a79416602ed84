"""Query normalizer: raw user query -> ranking-oracle expression + ILIKE pattern.

The oracle expression is an AND of prefix terms ("first:* & steps:*") passed to
to_tsquery by the stored ranking functions. Prefix terms keep typeahead
working; AND keeps multi-word queries precise.
"""

from __future__ import annotations

import re

from kinfeed.application.dtos.search import NormalizedQuery
from kinfeed.domain.exceptions import ValidationException

EMPTY_QUERY_MESSAGE = "Search query is required"

# to_tsquery operators and quoting; a token made only of these would make the
# oracle reject the whole expression.
_TSQUERY_SPECIAL_RE = re.compile(r"[&|!():*<>'\\]")
_WHITESPACE_RE = re.compile(r"\s+")


def tokenize(query: str) -> list[str]:
    """Split on whitespace, discarding empty tokens."""
    return [t for t in _WHITESPACE_RE.split(query) if t]


def build_oracle_expression(terms: list[str] | tuple[str, ...]) -> str:
    """Join terms as prefix matches with logical AND.

    Characters with tsquery meaning are removed from each term; terms left
    empty are dropped. Returns "" when nothing searchable remains.
    """
    cleaned = (_TSQUERY_SPECIAL_RE.sub("", t) for t in terms)
    return " & ".join(f"{t}:*" for t in cleaned if t)


def escape_like(value: str) -> str:
    """Escape ILIKE wildcards (%, _) and the escape char so value matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_substring_pattern(query: str) -> str:
    """Case-insensitive containment pattern for sources without a text index."""
    return f"%{escape_like(query)}%"


def normalize_query(raw: str | None) -> NormalizedQuery:
    """Validate and normalize a raw query string.

    Raises:
        ValidationException: If the query is missing or whitespace-only.
    """
    text = (raw or "").strip()
    if not text:
        raise ValidationException(EMPTY_QUERY_MESSAGE, field="q")
    terms = tuple(tokenize(text))
    return NormalizedQuery(
        text=text,
        terms=terms,
        oracle_expression=build_oracle_expression(terms),
        substring_pattern=build_substring_pattern(text),
    )
