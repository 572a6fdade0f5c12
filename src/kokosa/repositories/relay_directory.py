"""
Relay records and the admin-message links that route replies back.

Keys:
    relay:<relay id>            JSON :class:`Relay`
    admin-msg:<admin msg id>    relay id the admin-side copy belongs to
    guest:latest:<guest id>     most recent relay id for the guest
"""

from __future__ import annotations

import random
import string
from typing import Optional

from kokosa.database.kv_store import KeyValueStore
from kokosa.datatypes.relay_datatypes import MessageSummary, Relay, RelayStatus
from kokosa.repositories.counters import TOTAL_RELAYS, Counters
from kokosa.util.clock import Clock, now_ms
from kokosa.util.logger import get_logger

logger = get_logger("relay_directory")

RELAY_PREFIX = "relay:"
ADMIN_MSG_PREFIX = "admin-msg:"
LATEST_RELAY_PREFIX = "guest:latest:"

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_relay_id(timestamp_ms: int) -> str:
    """Return ``R-<epoch ms>-<6 random base36 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=6))
    return f"R-{timestamp_ms}-{suffix}"


class RelayDirectory:
    """Create relays, track their status and resolve admin replies to them."""

    def __init__(self, store: KeyValueStore, counters: Counters, clock: Clock = now_ms) -> None:
        self._store = store
        self._counters = counters
        self._clock = clock

    async def create_relay(self, guest_id: str, summary: MessageSummary) -> Relay:
        now = self._clock()
        relay = Relay(
            id=generate_relay_id(now),
            guest_id=str(guest_id),
            guest_display_name=summary.display_name,
            status=RelayStatus.OPEN,
            created_at=now,
            message_kind=summary.kind,
            content_preview=summary.preview,
        )
        await self._store.put(RELAY_PREFIX + relay.id, relay.to_json())
        await self._store.put(LATEST_RELAY_PREFIX + relay.guest_id, relay.id)
        await self._counters.increment(TOTAL_RELAYS)
        logger.debug("[RELAY] Created %s for guest %s", relay.id, relay.guest_id)
        return relay

    async def get(self, relay_id: str) -> Optional[Relay]:
        raw = await self._store.get(RELAY_PREFIX + relay_id)
        if raw is None:
            return None
        try:
            return Relay.from_json(raw)
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("[RELAY] Unreadable relay record %s: %s", relay_id, exc)
            return None

    async def update_status(self, relay_id: str, status: RelayStatus) -> None:
        """Set the status and ``updated_at``; missing relays are left alone."""
        relay = await self.get(relay_id)
        if relay is None:
            return
        relay.status = status
        relay.updated_at = self._clock()
        await self._store.put(RELAY_PREFIX + relay_id, relay.to_json())

    async def link_admin_message(self, admin_message_id: int | str, relay_id: str) -> None:
        await self._store.put(ADMIN_MSG_PREFIX + str(admin_message_id), relay_id)

    async def resolve_by_admin_message(self, admin_message_id: int | str) -> Optional[str]:
        return await self._store.get(ADMIN_MSG_PREFIX + str(admin_message_id))

    async def latest_relay_id(self, guest_id: str) -> Optional[str]:
        return await self._store.get(LATEST_RELAY_PREFIX + str(guest_id))
