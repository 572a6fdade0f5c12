"""
Content-addressed cache of moderation verdicts.

Keys are ``modcache:<sha256 hex of the exact UTF-8 content>`` so identical
text is classified once per TTL. Content shorter than ``min_length`` is never
looked up or stored.
"""

from __future__ import annotations

import hashlib
from typing import Optional, Union

from kokosa.database.kv_store import KeyValueStore
from kokosa.datatypes.moderation_datatypes import CACHE_MISS, CacheLookup, Verdict
from kokosa.util.logger import get_logger

logger = get_logger("moderation_cache")

CACHE_PREFIX = "modcache:"
DEFAULT_MIN_LENGTH = 5
DEFAULT_TTL_SECONDS = 86400


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class ModerationCache:
    """Look up and store verdicts keyed by content hash."""

    def __init__(
        self,
        store: KeyValueStore,
        min_length: int = DEFAULT_MIN_LENGTH,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        self._store = store
        self.min_length = min_length
        self.ttl_seconds = ttl_seconds

    def _cacheable(self, content: Optional[str]) -> bool:
        return bool(content) and len(content) >= self.min_length

    async def lookup(self, content: Optional[str]) -> CacheLookup:
        if not self._cacheable(content):
            return CACHE_MISS

        raw = await self._store.get(CACHE_PREFIX + content_hash(content))
        if raw is None:
            return CACHE_MISS
        try:
            verdict = Verdict.decode(raw)
        except ValueError:
            logger.warning("[CACHE] Discarding malformed cache entry %r", raw[:40])
            return CACHE_MISS
        return CacheLookup(hit=True, verdict=verdict)

    async def store(self, content: Optional[str], verdict: Union[Verdict, str, None]) -> None:
        """
        Cache a verdict for ``content``.

        ``verdict`` may also be ``None`` (SAFE) or an UNSAFE reason string.
        """
        if not self._cacheable(content):
            return
        if verdict is None:
            verdict = Verdict.safe()
        elif isinstance(verdict, str):
            verdict = Verdict.unsafe(verdict)
        await self._store.put(
            CACHE_PREFIX + content_hash(content),
            verdict.encode(),
            ttl_seconds=self.ttl_seconds,
        )
