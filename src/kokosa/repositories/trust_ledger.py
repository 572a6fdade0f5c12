"""Per-guest trust scores. Trusted guests skip AI moderation."""

from __future__ import annotations

from kokosa.database.kv_store import KeyValueStore
from kokosa.repositories.counters import parse_count

TRUST_PREFIX = "trust:"
DEFAULT_TRUST_THRESHOLD = 3


class TrustLedger:
    """
    Count consecutive clean messages per guest up to ``threshold``.

    The score never exceeds the threshold through :meth:`increment`; a
    guest is trusted once the score reaches it.
    """

    def __init__(self, store: KeyValueStore, threshold: int = DEFAULT_TRUST_THRESHOLD) -> None:
        self._store = store
        self.threshold = threshold

    async def score(self, guest_id: str) -> int:
        return parse_count(await self._store.get(TRUST_PREFIX + str(guest_id)))

    async def increment(self, guest_id: str) -> None:
        current = await self.score(guest_id)
        if current < self.threshold:
            await self._store.put(TRUST_PREFIX + str(guest_id), str(current + 1))

    async def reset(self, guest_id: str) -> None:
        await self._store.delete(TRUST_PREFIX + str(guest_id))

    async def force_trust(self, guest_id: str) -> None:
        await self._store.put(TRUST_PREFIX + str(guest_id), str(self.threshold))

    async def is_trusted(self, guest_id: str) -> bool:
        return await self.score(guest_id) >= self.threshold
