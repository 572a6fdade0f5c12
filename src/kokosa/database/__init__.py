"""
Database package for Kokosa.

Public API:
    - KeyValueStore: abstract key-value interface with per-key TTL
    - SQLiteKeyValueStore: store backed by the ``kv_entries`` table
    - MemoryKeyValueStore: in-process store for tests and ephemeral runs
    - db_connection: shared aiosqlite connection manager
"""

from kokosa.database.db_connection import ConnectionManager, db_connection
from kokosa.database.kv_store import KeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore

__all__ = [
    "ConnectionManager",
    "db_connection",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SQLiteKeyValueStore",
]
