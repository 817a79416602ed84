"""Core constants: cache key prefixes and search literals.

Single source of truth for cache key structure (DRY).
"""

# Cache key prefixes
CACHE_PREFIX_SEARCH = "search"

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Ellipsis marker added to truncated excerpts
EXCERPT_ELLIPSIS = "..."

# Tolerated client/server clock skew when rejecting cursors dated in the future.
CURSOR_CLOCK_SKEW_SECONDS = 60
