"""Redis-backed cache for serialized search pages.

Pages are stored as JSON under keys built by the search use case
(search:{user_id}:{digest}) with a short TTL. Every operation degrades to a
miss or no-op when Redis is unreachable; a cache outage never fails a search.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis

from kinfeed.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNLINK_CHUNK_SIZE = 500


class RedisSearchCache:
    """Async Redis cache implementing ISearchCache.

    Call connect() at startup and disconnect() at shutdown (see core.lifespan).
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the cache.

        Args:
            redis_client: Optional pre-built client (tests inject a fake).
            settings: Optional settings; defaults to get_settings().
        """
        self.redis = redis_client
        self.settings = settings or get_settings()
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Open the Redis connection. On failure the cache stays disabled."""
        if self.redis is not None:
            return
        password = self.settings.redis_password
        try:
            self.redis = redis.Redis(
                host=self.settings.redis_host,
                port=self.settings.redis_port,
                db=self.settings.redis_db,
                password=password.get_secret_value() if password else None,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_keepalive=True,
            )
            await self.redis.ping()
            self._connected = True
            logger.info(
                "Redis search cache connected: %s:%s",
                self.settings.redis_host,
                self.settings.redis_port,
            )
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Redis connection failed: %s. Search cache disabled.", e)
            self._connected = False
            self.redis = None

    async def disconnect(self) -> None:
        """Close the Redis connection."""
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
            self._connected = False
            logger.info("Redis search cache disconnected")

    async def _reconnect(self) -> bool:
        if self.redis is None:
            return False
        try:
            await self.redis.aclose()
        except redis.RedisError:
            logger.debug("Ignoring error while closing stale Redis client")
        self.redis = None
        self._connected = False
        await self.connect()
        return self._connected

    def is_available(self) -> bool:
        return self._connected and self.redis is not None

    async def _call(
        self, op: str, key: str, run: Callable[[], Awaitable[T]], fallback: T
    ) -> T:
        """Run one Redis command, retrying once after a reconnect on connection loss."""
        if not self.is_available():
            return fallback
        try:
            return await run()
        except (redis.ConnectionError, redis.TimeoutError):
            if await self._reconnect():
                try:
                    return await run()
                except redis.RedisError:
                    logger.exception("Cache %s error for %s after reconnect", op, key)
                    return fallback
            logger.warning("Cache %s unavailable for %s (Redis disconnected)", op, key)
            return fallback
        except redis.RedisError:
            logger.exception("Cache %s error for %s", op, key)
            return fallback

    async def get(self, key: str) -> Any | None:
        """Return the cached JSON value for key, or None on miss/unavailable."""

        async def run() -> Any | None:
            value = await self.redis.get(key)
            if value is None:
                logger.debug("Cache MISS: %s", key)
                return None
            logger.debug("Cache HIT: %s", key)
            return json.loads(value)

        return await self._call("get", key, run, None)

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store a JSON-serializable value with TTL (seconds). Returns True on success."""
        serialized = json.dumps(value)

        async def run() -> bool:
            await self.redis.setex(key, ttl, serialized)
            logger.debug("Cache SET: %s (TTL: %ss)", key, ttl)
            return True

        return await self._call("set", key, run, False)

    async def delete_pattern(self, pattern: str) -> int:
        """Delete keys matching pattern via SCAN + batched UNLINK. Returns the count."""

        async def run() -> int:
            deleted = 0
            chunk: list[str] = []
            async for key in self.redis.scan_iter(match=pattern):
                chunk.append(key)
                if len(chunk) >= _UNLINK_CHUNK_SIZE:
                    deleted += await self._unlink(chunk)
                    chunk = []
            if chunk:
                deleted += await self._unlink(chunk)
            if deleted:
                logger.info("Cache INVALIDATE: %s (%s keys)", pattern, deleted)
            return deleted

        return await self._call("delete_pattern", pattern, run, 0)

    async def _unlink(self, keys: list[str]) -> int:
        async with self.redis.pipeline(transaction=False) as pipe:
            pipe.unlink(*keys)
            results = await pipe.execute()
        return sum(int(r or 0) for r in results)
