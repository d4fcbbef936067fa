"""Rate limiting adapters.

The limiter, its record store and the eviction janitor live behind a small
interface so the in-memory backend can later be replaced by a shared store
without changing the HTTP layer.
"""
