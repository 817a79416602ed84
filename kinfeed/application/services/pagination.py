"""Pagination codec: opaque cursor tokens and request-parameter normalization.

A cursor is base64(JSON {"createdAt": ISO-8601, "id": UUID}) naming the last
visible record of the previous page. Tokens are stateless, forward-only and
never stored server-side; resending one yields the same page (modulo writes).

Request parameters normalize into a PaginationDirective:

- limit clamped to [1, max_limit]; a leading integer is read ("1.5" -> 1),
  anything else falls back to the default;
- cursor (preferred) decoded strictly: a malformed token is a 400, never a
  silent fallback to page one;
- legacy cursorCreatedAt + cursorId accepted as an unencoded cursor;
- offset (deprecated) parsed as a non-negative integer, default 0.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
import uuid
from datetime import UTC, datetime, timedelta

from kinfeed.application.dtos.search import PaginationCursor, PaginationDirective
from kinfeed.core.constants import CURSOR_CLOCK_SKEW_SECONDS
from kinfeed.domain.exceptions import ValidationException

DEFAULT_LIMIT = 50
MAX_LIMIT = 100
INVALID_CURSOR_MESSAGE = "Invalid pagination cursor"

_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")


def encode_cursor(cursor: PaginationCursor) -> str:
    """Encode a cursor as URL-transmittable base64(JSON)."""
    payload = json.dumps(
        {"createdAt": cursor.created_at, "id": cursor.id}, separators=(",", ":")
    )
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


def _parse_timestamp(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def is_valid_cursor_timestamp(value: str, now: datetime | None = None) -> bool:
    """Return True if value is an ISO-8601 timestamp not in the future."""
    parsed = _parse_timestamp(value)
    if parsed is None:
        return False
    now = now or datetime.now(UTC)
    return parsed <= now + timedelta(seconds=CURSOR_CLOCK_SKEW_SECONDS)


def _validated_cursor(created_at: object, cursor_id: object) -> PaginationCursor:
    if not isinstance(created_at, str) or not isinstance(cursor_id, str):
        raise ValidationException(INVALID_CURSOR_MESSAGE, field="cursor")
    if not created_at or not cursor_id or not is_valid_cursor_timestamp(created_at):
        raise ValidationException(INVALID_CURSOR_MESSAGE, field="cursor")
    # Every searchable record is keyed by a UUID; anything else cannot be bound.
    try:
        uuid.UUID(cursor_id)
    except ValueError as e:
        raise ValidationException(INVALID_CURSOR_MESSAGE, field="cursor") from e
    return PaginationCursor(created_at=created_at, id=cursor_id)


def decode_cursor(token: str) -> PaginationCursor:
    """Decode a cursor token.

    Raises:
        ValidationException: If the token is not base64, not JSON, lacks
            createdAt/id, carries an unusable timestamp, or an id that is not a UUID.
    """
    try:
        raw = base64.b64decode(token.encode("ascii"), validate=True)
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise ValidationException(INVALID_CURSOR_MESSAGE, field="cursor") from e
    if not isinstance(data, dict):
        raise ValidationException(INVALID_CURSOR_MESSAGE, field="cursor")
    return _validated_cursor(data.get("createdAt"), data.get("id"))


def parse_limit(
    raw: str | int | None,
    default: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> int:
    """Clamp limit to [1, max_limit]; default when absent or without a leading integer."""
    value = _leading_int(raw)
    if value is None:
        return default
    return min(max(value, 1), max_limit)


def parse_offset(raw: str | int | None) -> int:
    """Non-negative integer offset; 0 when absent or without a leading integer."""
    value = _leading_int(raw)
    return max(value, 0) if value is not None else 0


def _leading_int(raw: str | int | None) -> int | None:
    """Integer prefix of raw ("20", " 7px", "1.5" -> 1), or None."""
    if isinstance(raw, int):
        return raw
    if not raw:
        return None
    match = _LEADING_INT_RE.match(raw)
    return int(match.group(1)) if match else None


def normalize_pagination(
    limit: str | int | None = None,
    offset: str | int | None = None,
    cursor: str | None = None,
    cursor_created_at: str | None = None,
    cursor_id: str | None = None,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> PaginationDirective:
    """Normalize raw request parameters into one pagination directive.

    Cursor takes precedence over offset when both are supplied. With neither,
    the directive is a keyset first page.
    """
    normalized_limit = parse_limit(limit, default=default_limit, max_limit=max_limit)
    if cursor:
        return PaginationDirective(limit=normalized_limit, cursor=decode_cursor(cursor))
    if cursor_created_at or cursor_id:
        return PaginationDirective(
            limit=normalized_limit,
            cursor=_validated_cursor(cursor_created_at, cursor_id),
        )
    if offset is not None and offset != "":
        return PaginationDirective(limit=normalized_limit, offset=parse_offset(offset))
    return PaginationDirective(limit=normalized_limit)
