"""
Moderation verdict types.

A :class:`Verdict` is a tagged value: ``SAFE`` or ``UNSAFE`` carrying a short,
fixed reason string. The single-string form (``"SAFE"`` / ``"UNSAFE:<reason>"``)
exists only at the storage boundary through :meth:`Verdict.encode` and
:meth:`Verdict.decode`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

# Reason attached to every model-flagged item; model output is never echoed.
CONTENT_POLICY_VIOLATION = "Content policy violation"

_UNSAFE_PREFIX = "UNSAFE:"


class VerdictKind(Enum):
    """Classification outcome of a moderation check."""

    SAFE = "SAFE"
    UNSAFE = "UNSAFE"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Verdict:
    """Result of a moderation check.

    Attributes:
        kind: SAFE or UNSAFE.
        reason: Reason for an UNSAFE verdict, ``None`` for SAFE.
    """

    kind: VerdictKind
    reason: Optional[str] = None

    @classmethod
    def safe(cls) -> "Verdict":
        return cls(VerdictKind.SAFE)

    @classmethod
    def unsafe(cls, reason: str = CONTENT_POLICY_VIOLATION) -> "Verdict":
        return cls(VerdictKind.UNSAFE, reason or CONTENT_POLICY_VIOLATION)

    @property
    def is_safe(self) -> bool:
        return self.kind is VerdictKind.SAFE

    @property
    def is_unsafe(self) -> bool:
        return self.kind is VerdictKind.UNSAFE

    def encode(self) -> str:
        """Encode as ``"SAFE"`` or ``"UNSAFE:<reason>"`` for storage."""
        if self.is_safe:
            return VerdictKind.SAFE.value
        return f"{_UNSAFE_PREFIX}{self.reason or ''}"

    @classmethod
    def decode(cls, raw: str) -> "Verdict":
        """Inverse of :meth:`encode`.

        Raises:
            ValueError: If ``raw`` is neither form.
        """
        if raw == VerdictKind.SAFE.value:
            return cls.safe()
        if raw.startswith(_UNSAFE_PREFIX):
            return cls.unsafe(raw[len(_UNSAFE_PREFIX):])
        raise ValueError(f"Unrecognised verdict encoding: {raw!r}")

    def describe(self) -> str:
        """Human-readable status used in admin check reports."""
        return "SAFE" if self.is_safe else f"UNSAFE: {self.reason}"


@dataclass(frozen=True, slots=True)
class CacheLookup:
    """Outcome of a moderation cache lookup.

    Attributes:
        hit: Whether a cached verdict was found.
        verdict: The cached verdict on a hit, ``None`` on a miss.
    """

    hit: bool
    verdict: Optional[Verdict] = None

    @property
    def result(self) -> Optional[str]:
        """Reason string for a cached UNSAFE verdict, ``None`` otherwise."""
        if self.verdict is None or self.verdict.is_safe:
            return None
        return self.verdict.reason


CACHE_MISS = CacheLookup(hit=False)
