"""
Per-guest fixed-window rate limiting.

A window opens on the first request (or when the previous one is older than
``window_ms``) and admits ``max_requests`` requests. Denied requests do not
touch the stored window. Stored windows carry a TTL longer than the window
itself so idle guests leave nothing behind.
"""

from __future__ import annotations

import math

from kokosa.database.kv_store import KeyValueStore
from kokosa.datatypes.rate_limit_datatypes import RateLimitConfig, RateLimitResult, RateLimitWindow
from kokosa.util.clock import Clock, now_ms
from kokosa.util.logger import get_logger

logger = get_logger("rate_limiter")

RATE_LIMIT_PREFIX = "ratelimit:"
DEFAULT_MAX_REQUESTS = 10
DEFAULT_WINDOW_MS = 60000
DEFAULT_TTL_SECONDS = 120


class RateLimiter:
    """Admit or deny guest requests against a fixed window."""

    def __init__(
        self,
        store: KeyValueStore,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_ms: int = DEFAULT_WINDOW_MS,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Clock = now_ms,
    ) -> None:
        if ttl_seconds * 1000 <= window_ms:
            raise ValueError("ttl_seconds must outlast the rate limit window")
        self._store = store
        self.max_requests = max_requests
        self.window_ms = window_ms
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def config(self) -> RateLimitConfig:
        return RateLimitConfig(max_requests=self.max_requests, window_ms=self.window_ms)

    async def _load(self, key: str) -> RateLimitWindow | None:
        raw = await self._store.get(key)
        if raw is None:
            return None
        try:
            return RateLimitWindow.from_json(raw)
        except (ValueError, KeyError, TypeError):
            logger.warning("[RATE LIMIT] Replacing unreadable window under %s", key)
            return None

    async def check(self, guest_id: str) -> RateLimitResult:
        key = RATE_LIMIT_PREFIX + str(guest_id)
        now = self._clock()
        window = await self._load(key)

        if window is None or now - window.window_start > self.window_ms:
            window = RateLimitWindow(window_start=now, count=1)
            await self._store.put(key, window.to_json(), ttl_seconds=self.ttl_seconds)
            return RateLimitResult(allowed=True, remaining=self.max_requests - 1)

        if window.count >= self.max_requests:
            reset_in = math.ceil((window.window_start + self.window_ms - now) / 1000)
            logger.info("[RATE LIMIT] Guest %s limited, resets in %ds", guest_id, reset_in)
            return RateLimitResult(allowed=False, remaining=0, reset_in_seconds=reset_in)

        window.count += 1
        await self._store.put(key, window.to_json(), ttl_seconds=self.ttl_seconds)
        return RateLimitResult(allowed=True, remaining=self.max_requests - window.count)
