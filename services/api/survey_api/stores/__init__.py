"""Data stores for persistence and caching.

Stores handle:
- Relational DB: engine, sessions, schema bootstrap
- Redis: shared cache slot with TTL

No aggregation or validation logic in stores - that belongs in services.
"""
