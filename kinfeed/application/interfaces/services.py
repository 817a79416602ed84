"""Service interfaces (ports) for the application layer."""

from __future__ import annotations

from typing import Any, Protocol


class ISearchCache(Protocol):
    """Cache port injected into SearchService (TTL + per-user invalidation)."""

    def is_available(self) -> bool:
        """Return True if cache is connected."""

    async def get(self, key: str) -> Any:
        """Return cached value or None."""

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store value with TTL. Returns True on success."""

    async def delete_pattern(self, pattern: str) -> int:
        """Delete keys matching pattern. Returns count deleted."""
