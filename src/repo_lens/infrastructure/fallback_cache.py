"""Primary-then-fallback cache composition."""

from __future__ import annotations

import logging
from typing import Any

from repo_lens.domain.ports.cache_store import CacheStore

logger = logging.getLogger(__name__)


class FallbackCache:
    """Compose two ``CacheStore`` implementations.

    * ``get`` asks the primary first; on a miss or a primary failure the
      fallback answers.
    * ``set`` and ``delete`` go to the primary and always to the fallback,
      so the fallback stays warm for when the primary is unreachable.

    Primary failures are logged and never reach the caller.  Fallback
    failures propagate: the fallback is authoritative.
    """

    def __init__(self, primary: CacheStore, fallback: CacheStore) -> None:
        self._primary = primary
        self._fallback = fallback

    async def get(self, key: str) -> Any | None:
        try:
            value = await self._primary.get(key)
        except Exception:
            logger.warning("Primary cache get failed for %s — using fallback", key, exc_info=True)
        else:
            if value is not None:
                logger.debug("Primary cache hit: %s", key)
                return value

        value = await self._fallback.get(key)
        if value is not None:
            logger.debug("Fallback cache hit: %s", key)
        return value

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            await self._primary.set(key, value, ttl_seconds)
        except Exception:
            logger.warning("Primary cache set failed for %s — fallback only", key, exc_info=True)
        await self._fallback.set(key, value, ttl_seconds)

    async def delete(self, key: str) -> None:
        try:
            await self._primary.delete(key)
        except Exception:
            logger.warning("Primary cache delete failed for %s", key, exc_info=True)
        await self._fallback.delete(key)
