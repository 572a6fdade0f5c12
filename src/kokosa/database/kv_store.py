"""
Key-value state store with per-key expiry.

Every piece of durable relay state (relays, blocks, trust scores, rate limit
windows, moderation cache entries, counters, language preferences) lives
behind the small :class:`KeyValueStore` interface:

- ``get(key)`` returns the stored string or ``None`` when absent or expired
- ``put(key, value, ttl_seconds=None)`` writes (and replaces) a value
- ``delete(key)`` removes a key; deleting a missing key is not an error
- ``list(prefix)`` returns the live keys starting with ``prefix``

Operations are individually atomic but there is no compare-and-swap: callers
doing read-modify-write must tolerate lost updates under concurrent events.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple

from kokosa.database.db_connection import ConnectionManager
from kokosa.database.db_schema import SchemaManager
from kokosa.util.logger import get_logger

logger = get_logger("kv_store")

# Upper bound appended to a prefix for range scans on the primary key
_PREFIX_UPPER_BOUND = "\uffff"


class KeyValueStore(ABC):
    """Abstract asynchronous key-value store with optional per-key TTL."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def list(self, prefix: str) -> List[str]:
        ...


def _expiry(now: float, ttl_seconds: Optional[int]) -> Optional[float]:
    if ttl_seconds is None:
        return None
    if ttl_seconds <= 0:
        raise ValueError("ttl_seconds must be positive")
    return now + ttl_seconds


class MemoryKeyValueStore(KeyValueStore):
    """
    Dictionary-backed store used by tests and by ``database.path: ":memory:"`` runs.

    Args:
        clock: Callable returning the current time in seconds. Defaults to
            ``time.time``; tests pass a fake clock to exercise expiry.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[str, Optional[float]]] = {}

    def _is_live(self, expires_at: Optional[float]) -> bool:
        return expires_at is None or expires_at > self._clock()

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if not self._is_live(expires_at):
            del self._entries[key]
            return None
        return value

    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        self._entries[key] = (str(value), _expiry(self._clock(), ttl_seconds))

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def list(self, prefix: str) -> List[str]:
        return sorted(
            key
            for key, (_, expires_at) in self._entries.items()
            if key.startswith(prefix) and self._is_live(expires_at)
        )


class SQLiteKeyValueStore(KeyValueStore):
    """
    Store backed by the ``kv_entries`` table on a shared aiosqlite connection.

    Expired rows read back as absent and are skipped by :meth:`list`;
    :meth:`purge_expired` deletes them physically.

    Args:
        connection_manager: Open (or to-be-opened) :class:`ConnectionManager`.
        clock: Callable returning the current time in seconds.
    """

    def __init__(
        self,
        connection_manager: ConnectionManager,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._db = connection_manager
        self._clock = clock

    async def initialize(self) -> None:
        """Create the schema. Call once after the connection is opened."""
        async with self._db.transaction() as conn:
            await SchemaManager.initialize_schema(conn)

    async def get(self, key: str) -> Optional[str]:
        async with self._db.read() as conn:
            cursor = await conn.execute(
                "SELECT value FROM kv_entries "
                "WHERE key = ? AND (expires_at IS NULL OR expires_at > ?)",
                (key, self._clock()),
            )
            row = await cursor.fetchone()
        return row[0] if row is not None else None

    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        expires_at = _expiry(self._clock(), ttl_seconds)
        async with self._db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO kv_entries (key, value, expires_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value      = excluded.value,
                    expires_at = excluded.expires_at
                """,
                (key, str(value), expires_at),
            )

    async def delete(self, key: str) -> None:
        async with self._db.transaction() as conn:
            await conn.execute("DELETE FROM kv_entries WHERE key = ?", (key,))

    async def list(self, prefix: str) -> List[str]:
        async with self._db.read() as conn:
            cursor = await conn.execute(
                "SELECT key FROM kv_entries "
                "WHERE key >= ? AND key < ? AND (expires_at IS NULL OR expires_at > ?) "
                "ORDER BY key",
                (prefix, prefix + _PREFIX_UPPER_BOUND, self._clock()),
            )
            rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def purge_expired(self) -> int:
        """Delete expired rows and return how many were removed."""
        async with self._db.transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM kv_entries WHERE expires_at IS NOT NULL AND expires_at <= ?",
                (self._clock(),),
            )
            removed = cursor.rowcount or 0
        if removed:
            logger.debug("[KV STORE] Purged %d expired entries", removed)
        return removed
