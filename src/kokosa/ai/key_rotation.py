"""
Round-robin API key rotation.

One rotator is shared by the whole process: every selection advances a single
index (regardless of which keyset is passed) and bumps a per-key usage counter
that the admin ``/stats`` command reports. Neither is guarded by a lock;
counts are best-effort under concurrent updates.
"""

from __future__ import annotations

from typing import Dict, Sequence

from kokosa.util.logger import get_logger

logger = get_logger("key_rotation")


class ApiKeyRotator:
    """Select API keys in round-robin order and count their use."""

    def __init__(self) -> None:
        self._index = 0
        self._usage: Dict[str, int] = {}

    def next_key(self, keys: Sequence[str]) -> str:
        """
        Return the next key from ``keys`` and record its use.

        Raises:
            ValueError: If ``keys`` is empty.
        """
        if not keys:
            raise ValueError("No API keys provided")

        key = keys[self._index % len(keys)]
        self._index += 1
        self._usage[key] = self._usage.get(key, 0) + 1
        logger.debug(
            "[AI] Using API key #%d, total uses: %d",
            (self._index - 1) % len(keys) + 1,
            self._usage[key],
        )
        return key

    def usage_stats(self) -> Dict[str, int]:
        """Return a copy of the per-key call counts."""
        return dict(self._usage)

    def reset(self) -> None:
        self._index = 0
        self._usage.clear()


api_key_rotator = ApiKeyRotator()
