"""
Guest block flags and block metadata.

A blocked guest has ``blocked:<guest>`` = ``"true"`` and a JSON
:class:`BlockInfo` under ``block-info:<guest>``. Blocking also resets the
guest's trust score; unblocking leaves relay statuses as they are.
"""

from __future__ import annotations

import json
from typing import List, Optional

from kokosa.database.kv_store import KeyValueStore
from kokosa.datatypes.relay_datatypes import BlockInfo, Statistics
from kokosa.repositories.counters import AI_BLOCKS, TOTAL_BLOCKED, TOTAL_RELAYS, Counters
from kokosa.repositories.trust_ledger import TrustLedger
from kokosa.util.clock import Clock, now_ms
from kokosa.util.logger import get_logger

logger = get_logger("block_registry")

BLOCKED_PREFIX = "blocked:"
BLOCK_INFO_PREFIX = "block-info:"
BLOCKED_FLAG = "true"
DEFAULT_BLOCK_REASON = "Manual"


class BlockRegistry:
    """Block, unblock and enumerate guests."""

    def __init__(
        self,
        store: KeyValueStore,
        counters: Counters,
        trust: TrustLedger,
        clock: Clock = now_ms,
    ) -> None:
        self._store = store
        self._counters = counters
        self._trust = trust
        self._clock = clock

    async def set_blocked(self, guest_id: str, blocked: bool, reason: str = DEFAULT_BLOCK_REASON) -> None:
        """
        Block or unblock a guest.

        Blocking writes the flag and info, increments ``total-blocked`` and
        resets the trust score. Unblocking deletes both keys and decrements
        ``total-blocked`` (saturating at zero).
        """
        guest_id = str(guest_id)
        if blocked:
            info = BlockInfo(guest_id=guest_id, reason=reason, blocked_at=self._clock())
            await self._store.put(BLOCKED_PREFIX + guest_id, BLOCKED_FLAG)
            await self._store.put(BLOCK_INFO_PREFIX + guest_id, info.to_json())
            await self._counters.increment(TOTAL_BLOCKED)
            await self._trust.reset(guest_id)
            logger.info("[BLOCK] Guest %s blocked: %s", guest_id, reason)
        else:
            await self._store.delete(BLOCKED_PREFIX + guest_id)
            await self._store.delete(BLOCK_INFO_PREFIX + guest_id)
            await self._counters.decrement(TOTAL_BLOCKED)
            logger.info("[BLOCK] Guest %s unblocked", guest_id)

    async def is_blocked(self, guest_id: str) -> bool:
        return await self._store.get(BLOCKED_PREFIX + str(guest_id)) == BLOCKED_FLAG

    async def block_info(self, guest_id: str) -> Optional[BlockInfo]:
        raw = await self._store.get(BLOCK_INFO_PREFIX + str(guest_id))
        return self._decode(raw) if raw else None

    async def list_blocked(self) -> List[BlockInfo]:
        """Return the info records of every blocked guest, in key order."""
        blocked: List[BlockInfo] = []
        for key in await self._store.list(BLOCK_INFO_PREFIX):
            raw = await self._store.get(key)
            info = self._decode(raw) if raw else None
            if info is not None:
                blocked.append(info)
        return blocked

    async def statistics(self) -> Statistics:
        """Relay and AI-block counters plus the live blocked-guest count."""
        return Statistics(
            total_relays=await self._counters.get(TOTAL_RELAYS),
            total_blocked=len(await self.list_blocked()),
            ai_blocks=await self._counters.get(AI_BLOCKS),
        )

    @staticmethod
    def _decode(raw: str) -> Optional[BlockInfo]:
        try:
            return BlockInfo.from_json(raw)
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("[BLOCK] Ignoring unreadable block record: %s", exc)
            return None
