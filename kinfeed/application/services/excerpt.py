"""Excerpt and highlight helpers for search results.

Both functions are pure and deterministic. highlight_matches is not
idempotent: a second pass can wrap the inserted <mark> tags themselves, so
call it exactly once per field.
"""

from __future__ import annotations

import re

from kinfeed.core.constants import EXCERPT_ELLIPSIS

DEFAULT_EXCERPT_LENGTH = 200
# How far past the window start to look for a space to snap to.
WORD_BOUNDARY_LOOKAHEAD = 20

MARK_OPEN = "<mark>"
MARK_CLOSE = "</mark>"


def generate_excerpt(
    content: str | None, query: str, max_length: int = DEFAULT_EXCERPT_LENGTH
) -> str:
    """Return a max_length window of content centered on the first match of query.

    Without a match the excerpt is the first max_length characters (with a
    trailing ellipsis when truncated). With a match the window starts
    max_length // 2 before it, snapped forward past the next space when that
    space is within WORD_BOUNDARY_LOOKAHEAD characters, and gets ellipses on
    whichever sides were cut. Result length is at most max_length + 6.
    """
    if not content:
        return ""

    match_index = content.lower().find(query.lower())
    if match_index == -1:
        truncated = len(content) > max_length
        return content[:max_length] + (EXCERPT_ELLIPSIS if truncated else "")

    start = max(0, match_index - max_length // 2)
    if start > 0:
        space_index = content.find(" ", start)
        if space_index != -1 and space_index < start + WORD_BOUNDARY_LOOKAHEAD:
            start = space_index + 1

    excerpt = content[start : start + max_length]
    if start > 0:
        excerpt = EXCERPT_ELLIPSIS + excerpt
    if start + max_length < len(content):
        excerpt = excerpt + EXCERPT_ELLIPSIS
    return excerpt.strip()


def highlight_matches(text: str | None, query: str) -> str | None:
    """Wrap every case-insensitive occurrence of each query term in <mark> tags.

    Terms are applied one after another on the progressively marked-up
    string; overlapping terms can nest tags.
    """
    if not text or not query:
        return text

    result = text
    for term in query.lower().split():
        pattern = re.compile(f"({re.escape(term)})", re.IGNORECASE)
        result = pattern.sub(rf"{MARK_OPEN}\1{MARK_CLOSE}", result)
    return result
