"""
Typed views over Telegram Bot API update payloads.

Only the fields the relay uses are extracted; the raw dictionary stays
available as ``raw`` for anything else.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from kokosa.datatypes.relay_datatypes import UNKNOWN_NAME, MessageSummary


@dataclass(frozen=True, slots=True)
class StickerInfo:
    """Sticker attached to a message. Only static stickers are moderated."""

    file_id: str
    is_animated: bool = False
    is_video: bool = False

    @property
    def is_static(self) -> bool:
        return not self.is_animated and not self.is_video


@dataclass(slots=True)
class InboundMessage:
    """
    A message received from Telegram.

    Attributes:
        message_id: Message id within its chat.
        chat_id: Chat the message was sent in.
        from_id: Sender's user id (``None`` for channel posts).
        username: Sender's @username, if set.
        first_name: Sender's first name, if set.
        text: Message text.
        caption: Media caption.
        photo_file_ids: File ids of the photo sizes, smallest to largest.
        sticker: Sticker attached to the message, if any.
        reply_to: The message this one replies to, if any.
        raw: The original payload.
    """

    message_id: int
    chat_id: int
    from_id: Optional[int] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    text: Optional[str] = None
    caption: Optional[str] = None
    photo_file_ids: List[str] = field(default_factory=list)
    sticker: Optional[StickerInfo] = None
    reply_to: Optional["InboundMessage"] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InboundMessage":
        sender = data.get("from") or {}
        chat = data.get("chat") or {}
        sticker_data = data.get("sticker")
        sticker = None
        if sticker_data:
            sticker = StickerInfo(
                file_id=sticker_data["file_id"],
                is_animated=bool(sticker_data.get("is_animated")),
                is_video=bool(sticker_data.get("is_video")),
            )
        reply_data = data.get("reply_to_message")
        return cls(
            message_id=int(data["message_id"]),
            chat_id=int(chat["id"]),
            from_id=sender.get("id"),
            username=sender.get("username"),
            first_name=sender.get("first_name"),
            text=data.get("text"),
            caption=data.get("caption"),
            photo_file_ids=[size["file_id"] for size in data.get("photo") or []],
            sticker=sticker,
            reply_to=cls.from_dict(reply_data) if reply_data else None,
            raw=data,
        )

    @property
    def display_name(self) -> str:
        return self.username or self.first_name or UNKNOWN_NAME

    @property
    def largest_photo_file_id(self) -> Optional[str]:
        return self.photo_file_ids[-1] if self.photo_file_ids else None

    @property
    def has_photo(self) -> bool:
        return bool(self.photo_file_ids)

    def summary(self) -> MessageSummary:
        return MessageSummary(
            display_name=self.display_name,
            text=self.text,
            caption=self.caption,
            has_photo=self.has_photo,
        )


@dataclass(slots=True)
class CallbackQuery:
    """An inline keyboard button press."""

    id: str
    from_id: int
    data: str
    chat_id: Optional[int] = None
    message_id: Optional[int] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "CallbackQuery":
        message = payload.get("message") or {}
        chat = message.get("chat") or {}
        return cls(
            id=str(payload["id"]),
            from_id=int(payload["from"]["id"]),
            data=payload.get("data") or "",
            chat_id=chat.get("id"),
            message_id=message.get("message_id"),
        )
