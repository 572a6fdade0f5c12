"""Fixed-window rate limit records."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class RateLimitWindow:
    """Stored window: start time (epoch ms) and requests counted so far."""

    window_start: int
    count: int

    def to_json(self) -> str:
        return json.dumps({"window_start": self.window_start, "count": self.count})

    @classmethod
    def from_json(cls, raw: str) -> "RateLimitWindow":
        data = json.loads(raw)
        return cls(window_start=int(data["window_start"]), count=int(data["count"]))


@dataclass(frozen=True, slots=True)
class RateLimitResult:
    """Outcome of a rate limit check.

    Attributes:
        allowed: Whether the request may proceed.
        remaining: Requests left in the current window.
        reset_in_seconds: Seconds until the window resets (denied checks only).
    """

    allowed: bool
    remaining: int
    reset_in_seconds: Optional[int] = None


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    max_requests: int
    window_ms: int
