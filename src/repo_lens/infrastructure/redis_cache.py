"""Redis-backed cache — the primary store."""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as aioredis


class RedisCache:
    """``CacheStore`` storing JSON strings with a native Redis TTL.

    Connection and protocol errors are not handled here; the
    ``FallbackCache`` decorator decides what to do with them.
    """

    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> RedisCache:
        return cls(aioredis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> Any | None:
        raw = await self._client.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        await self._client.set(key, json.dumps(value), ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def close(self) -> None:
        await self._client.aclose()
