"""Rate limiter instance for SlowAPI.

Shared so both main (app.state.limiter) and route modules can use the same
instance without circular imports. Central limit strings keep rate limits DRY.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

SEARCH_LIMIT = "60/minute"
ANALYTICS_LIMIT = "120/minute"

limit_search = limiter.limit(SEARCH_LIMIT)
limit_analytics = limiter.limit(ANALYTICS_LIMIT)
