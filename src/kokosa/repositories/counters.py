"""
Named monotonic counters and the statistics view built on them.

Counters are decimal strings under ``counter:<name>``. A missing or
non-numeric value reads as 0.
"""

from __future__ import annotations

from typing import Optional

from kokosa.database.kv_store import KeyValueStore

COUNTER_PREFIX = "counter:"

TOTAL_RELAYS = "total-relays"
TOTAL_BLOCKED = "total-blocked"
AI_BLOCKS = "ai-blocks"


def parse_count(raw: Optional[str]) -> int:
    """Parse a stored decimal string, treating anything unparseable as 0."""
    if raw is None:
        return 0
    try:
        return int(raw.strip())
    except ValueError:
        return 0


class Counters:
    """Increment, decrement and read named counters."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def get(self, name: str) -> int:
        return parse_count(await self._store.get(COUNTER_PREFIX + name))

    async def increment(self, name: str) -> int:
        value = await self.get(name) + 1
        await self._store.put(COUNTER_PREFIX + name, str(value))
        return value

    async def decrement(self, name: str) -> int:
        """Decrease by one, never below zero."""
        current = await self.get(name)
        if current <= 0:
            return 0
        await self._store.put(COUNTER_PREFIX + name, str(current - 1))
        return current - 1
