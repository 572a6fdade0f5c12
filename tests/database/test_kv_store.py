"""Expiry and prefix-listing semantics shared by both key-value stores."""

from pathlib import Path

import pytest

from kokosa.database.db_connection import ConnectionManager
from kokosa.database.kv_store import MemoryKeyValueStore, SQLiteKeyValueStore


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


async def _open_sqlite(tmp_path: Path, clock: FakeClock):
    manager = ConnectionManager()
    await manager.open(tmp_path / "kv" / "state.db")
    store = SQLiteKeyValueStore(manager, clock=clock)
    await store.initialize()
    return manager, store


@pytest.mark.asyncio
async def test_memory_store_put_get_delete():
    store = MemoryKeyValueStore()

    assert await store.get("missing") is None
    await store.put("relay:R-1", "payload")
    assert await store.get("relay:R-1") == "payload"

    await store.put("relay:R-1", "replaced")
    assert await store.get("relay:R-1") == "replaced"

    await store.delete("relay:R-1")
    await store.delete("relay:R-1")
    assert await store.get("relay:R-1") is None


@pytest.mark.asyncio
async def test_memory_store_expired_entries_read_as_absent():
    clock = FakeClock()
    store = MemoryKeyValueStore(clock=clock)

    await store.put("ratelimit:1", "window", ttl_seconds=120)
    clock.now += 119
    assert await store.get("ratelimit:1") == "window"

    clock.now += 1
    assert await store.get("ratelimit:1") is None
    assert await store.list("ratelimit:") == []


@pytest.mark.asyncio
async def test_memory_store_list_filters_by_prefix():
    store = MemoryKeyValueStore()
    await store.put("block-info:2", "b")
    await store.put("block-info:1", "a")
    await store.put("blocked:1", "true")

    assert await store.list("block-info:") == ["block-info:1", "block-info:2"]
    assert await store.list("blocked:") == ["blocked:1"]


@pytest.mark.asyncio
async def test_put_rejects_non_positive_ttl():
    store = MemoryKeyValueStore()
    with pytest.raises(ValueError):
        await store.put("modcache:x", "SAFE", ttl_seconds=0)


@pytest.mark.asyncio
async def test_sqlite_store_round_trip_and_prefix_listing(tmp_path):
    clock = FakeClock()
    manager, store = await _open_sqlite(tmp_path, clock)
    try:
        await store.put("block-info:10", '{"guest_id": "10"}')
        await store.put("block-info:11", '{"guest_id": "11"}')
        await store.put("blocked:10", "true")
        await store.put("block-info:10", '{"guest_id": "10", "reason": "x"}')

        assert await store.get("block-info:10") == '{"guest_id": "10", "reason": "x"}'
        assert await store.list("block-info:") == ["block-info:10", "block-info:11"]

        await store.delete("blocked:10")
        assert await store.get("blocked:10") is None
    finally:
        await manager.close()


@pytest.mark.asyncio
async def test_sqlite_store_expiry_and_purge(tmp_path):
    clock = FakeClock()
    manager, store = await _open_sqlite(tmp_path, clock)
    try:
        await store.put("modcache:abc", "SAFE", ttl_seconds=10)
        await store.put("counter:total-relays", "4")

        clock.now += 10
        assert await store.get("modcache:abc") is None
        assert await store.list("modcache:") == []
        assert await store.get("counter:total-relays") == "4"

        assert await store.purge_expired() == 1
        assert await store.purge_expired() == 0
    finally:
        await manager.close()


@pytest.mark.asyncio
async def test_sqlite_store_persists_across_connections(tmp_path):
    clock = FakeClock()
    manager, store = await _open_sqlite(tmp_path, clock)
    await store.put("trust:7", "3")
    await manager.close()

    manager, store = await _open_sqlite(tmp_path, clock)
    try:
        assert await store.get("trust:7") == "3"
    finally:
        await manager.close()


@pytest.mark.asyncio
async def test_connection_manager_requires_open():
    manager = ConnectionManager()
    assert manager.is_open is False
    with pytest.raises(RuntimeError):
        manager.connection
