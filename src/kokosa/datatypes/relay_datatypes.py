"""
Relay, block and statistics records.

Records are persisted as JSON in the key-value store; ``to_json`` /
``from_json`` are the only places that know the stored field names.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

PREVIEW_LENGTH = 100
UNKNOWN_NAME = "Unknown"


class RelayStatus(Enum):
    """Lifecycle of a relay thread: open -> replied -> blocked."""

    OPEN = "open"
    REPLIED = "replied"
    BLOCKED = "blocked"

    def __str__(self) -> str:
        return self.value


class MessageKind(Enum):
    """Kind of the guest message that opened a relay."""

    TEXT = "text"
    PHOTO = "photo"
    OTHER = "other"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True)
class MessageSummary:
    """The parts of an inbound guest message a relay record keeps.

    Attributes:
        display_name: Username, first name, or ``"Unknown"``.
        text: Message text, if any.
        caption: Media caption, if any.
        has_photo: Whether the message carries a photo.
    """

    display_name: str = UNKNOWN_NAME
    text: Optional[str] = None
    caption: Optional[str] = None
    has_photo: bool = False

    @property
    def kind(self) -> MessageKind:
        if self.text:
            return MessageKind.TEXT
        if self.has_photo:
            return MessageKind.PHOTO
        return MessageKind.OTHER

    @property
    def preview(self) -> str:
        return (self.text or self.caption or "")[:PREVIEW_LENGTH]


@dataclass(slots=True)
class Relay:
    """One guest-initiated conversation thread.

    Attributes:
        id: Unique, immutable relay id (``R-<epoch ms>-<random>``).
        guest_id: Platform user id of the guest, as a string.
        guest_display_name: Name shown to the admin.
        status: Current :class:`RelayStatus`.
        created_at: Creation time, epoch milliseconds.
        message_kind: Kind of the first forwarded message.
        content_preview: At most 100 characters of text or caption.
        updated_at: Time of the last status change, epoch milliseconds.
    """

    id: str
    guest_id: str
    guest_display_name: str
    status: RelayStatus
    created_at: int
    message_kind: MessageKind
    content_preview: str
    updated_at: Optional[int] = None

    def to_json(self) -> str:
        data = asdict(self)
        data["status"] = self.status.value
        data["message_kind"] = self.message_kind.value
        return json.dumps(data, ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str) -> "Relay":
        data: Dict[str, Any] = json.loads(raw)
        return cls(
            id=str(data["id"]),
            guest_id=str(data["guest_id"]),
            guest_display_name=str(data.get("guest_display_name") or UNKNOWN_NAME),
            status=RelayStatus(data.get("status", RelayStatus.OPEN.value)),
            created_at=int(data.get("created_at", 0)),
            message_kind=MessageKind(data.get("message_kind", MessageKind.OTHER.value)),
            content_preview=str(data.get("content_preview") or ""),
            updated_at=data.get("updated_at"),
        )


@dataclass(slots=True)
class BlockInfo:
    """Why and when a guest was blocked."""

    guest_id: str
    reason: str
    blocked_at: int

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str) -> "BlockInfo":
        data: Dict[str, Any] = json.loads(raw)
        return cls(
            guest_id=str(data["guest_id"]),
            reason=str(data.get("reason") or UNKNOWN_NAME),
            blocked_at=int(data.get("blocked_at") or 0),
        )


@dataclass(frozen=True, slots=True)
class Statistics:
    """Counters shown by the admin ``/stats`` command."""

    total_relays: int
    total_blocked: int
    ai_blocks: int
