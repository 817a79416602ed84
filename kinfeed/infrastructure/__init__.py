"""Infrastructure adapters: PostgreSQL persistence, Redis cache, JWT security."""
