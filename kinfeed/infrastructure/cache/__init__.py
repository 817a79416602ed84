"""Cache: Redis-backed search page cache."""

from kinfeed.infrastructure.cache.redis_cache import RedisSearchCache

__all__ = ["RedisSearchCache"]
