"""Moderation of a single inbound message: text, then photo, then sticker."""

from __future__ import annotations

from typing import Optional

from kokosa.datatypes.moderation_datatypes import Verdict
from kokosa.datatypes.telegram_datatypes import InboundMessage
from kokosa.moderation.relay_services import RelayServices
from kokosa.util.logger import get_logger

logger = get_logger("content_moderation")


async def resolve_file_url(telegram, file_id: str) -> Optional[str]:
    """Look up a file's download URL; ``None`` when the Bot API refuses."""
    result = await telegram.get_file(file_id)
    if not result.get("ok"):
        logger.info("[MODERATION] getFile failed for %s: %s", file_id, result.get("description"))
        return None
    return telegram.get_file_url(result["result"]["file_path"])


class ContentModerator:
    """
    Classify every moderatable part of a message, stopping at the first UNSAFE.

    Text (or caption) goes through the content-hash cache first and the engine
    on a miss, with the result written back. A photo is checked at its largest
    size together with the caption; stickers are checked only when static.
    """

    def __init__(self, services: RelayServices) -> None:
        self._s = services

    async def check_text(self, content: Optional[str]) -> Verdict:
        """Cache-first text check. Used by the guest pipeline and admin checks."""
        cached = await self._s.cache.lookup(content)
        if cached.hit and cached.verdict is not None:
            logger.debug("[MODERATION] Cache hit for text content")
            return cached.verdict

        verdict = await self._s.engine.evaluate_text(content, self._s.api_keys)
        await self._s.cache.store(content, verdict)
        return verdict

    async def check_file(self, file_id: str, caption: Optional[str] = None) -> Verdict:
        url = await resolve_file_url(self._s.telegram, file_id)
        if url is None:
            return Verdict.safe()
        return await self._s.engine.evaluate_image(url, self._s.api_keys, caption=caption)

    async def check_message(self, message: InboundMessage) -> Verdict:
        text_content = message.text or message.caption
        if text_content:
            verdict = await self.check_text(text_content)
            if verdict.is_unsafe:
                return verdict

        photo_id = message.largest_photo_file_id
        if photo_id:
            verdict = await self.check_file(photo_id, caption=message.caption)
            if verdict.is_unsafe:
                return verdict

        if message.sticker is not None:
            if not message.sticker.is_static:
                logger.debug("[MODERATION] Skipping animated/video sticker")
            else:
                verdict = await self.check_file(message.sticker.file_id)
                if verdict.is_unsafe:
                    return verdict

        return Verdict.safe()
