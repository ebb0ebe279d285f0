"""SQLite-backed cache — the fallback store behind Redis."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Callable

from sqlalchemy import delete
from sqlalchemy.orm import sessionmaker

from repo_lens.infrastructure.database import CacheRow

logger = logging.getLogger(__name__)


class SqliteCache:
    """``CacheStore`` over the ``cache_entries`` table.

    Expiry is checked on read; an expired row is deleted and reported as a
    miss.  ``clock`` returns epoch seconds and exists so tests can move time.
    Session work runs in a worker thread so a locked database file never
    stalls the event loop.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sessions = session_factory
        self._clock = clock

    async def get(self, key: str) -> Any | None:
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        payload = json.dumps(value)
        await asyncio.to_thread(self._set, key, payload, self._clock() + ttl_seconds)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)

    async def purge_expired(self) -> int:
        """Remove every expired entry; returns the number of rows deleted."""
        return await asyncio.to_thread(self._purge_expired)

    def _get(self, key: str) -> Any | None:
        with self._sessions() as session:
            row = session.get(CacheRow, key)
            if row is None:
                return None
            if row.expires_at <= self._clock():
                session.delete(row)
                session.commit()
                logger.debug("SQLite cache entry expired: %s", key)
                return None
            return json.loads(row.value)

    def _set(self, key: str, payload: str, expires_at: float) -> None:
        with self._sessions() as session:
            row = session.get(CacheRow, key)
            if row is None:
                session.add(CacheRow(key=key, value=payload, expires_at=expires_at))
            else:
                row.value = payload
                row.expires_at = expires_at
            session.commit()

    def _delete(self, key: str) -> None:
        with self._sessions() as session:
            session.execute(delete(CacheRow).where(CacheRow.key == key))
            session.commit()

    def _purge_expired(self) -> int:
        with self._sessions() as session:
            result = session.execute(delete(CacheRow).where(CacheRow.expires_at <= self._clock()))
            session.commit()
            return result.rowcount or 0
