"""Port: key/value cache with TTL."""

from __future__ import annotations

from typing import Any, Protocol


class CacheStore(Protocol):
    """Cache-aside store for JSON-compatible values.

    The cache never computes anything: callers check it, and on a miss
    compute the value and write it back themselves.
    """

    async def get(self, key: str) -> Any | None:
        """Return the stored value, or None when absent or expired."""
        ...

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store *value* under *key*, replacing any previous entry."""
        ...

    async def delete(self, key: str) -> None:
        ...
