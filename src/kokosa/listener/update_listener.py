"""Dispatch Telegram updates to the admin, guest and callback handlers.

Updates are routed by type:
- ``message``: admin chat to the admin handler, everything else to the guest pipeline.
- ``callback_query``: inline keyboard actions.
- ``edited_message``: guest edits are reported to the admin; admin edits are ignored.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Optional

from kokosa.datatypes.telegram_datatypes import CallbackQuery, InboundMessage
from kokosa.i18n.translations import t
from kokosa.moderation.admin_commands import AdminCommandHandler
from kokosa.moderation.callback_actions import CallbackActionHandler
from kokosa.moderation.guest_pipeline import GuestPipeline
from kokosa.moderation.relay_services import RelayServices
from kokosa.util.logger import get_logger

logger = get_logger("update_listener")

EDIT_PREVIEW_LENGTH = 200
MEDIA_PLACEHOLDER = "[Media]"
ALLOWED_UPDATES = ("message", "callback_query", "edited_message")


class UpdateListener:
    """Entry point for every webhook update."""

    def __init__(
        self,
        services: RelayServices,
        guest_pipeline: Optional[GuestPipeline] = None,
        admin_handler: Optional[AdminCommandHandler] = None,
        callback_handler: Optional[CallbackActionHandler] = None,
    ) -> None:
        self._s = services
        self.guest_pipeline = guest_pipeline or GuestPipeline(services)
        self.admin_handler = admin_handler or AdminCommandHandler(services)
        self.callback_handler = callback_handler or CallbackActionHandler(services)
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[None]]] = {
            "message": self.on_message,
            "callback_query": self.on_callback_query,
            "edited_message": self.on_edited_message,
        }

    async def process_update(self, update: Dict[str, Any]) -> None:
        """Hand the update to the handler for the first known update type it carries."""
        for update_type, handler in self._handlers.items():
            if update_type in update:
                await handler(update[update_type])
                return
        logger.debug("[UPDATE] Ignoring update %s with no handled type", update.get("update_id"))

    async def on_message(self, payload: Dict[str, Any]) -> None:
        message = InboundMessage.from_dict(payload)
        logger.info("[MESSAGE] From %s: %s", message.chat_id, (message.text or MEDIA_PLACEHOLDER)[:50])
        if self._s.is_admin_chat(message.chat_id):
            await self.admin_handler.handle(message)
        else:
            await self.guest_pipeline.handle(message)

    async def on_callback_query(self, payload: Dict[str, Any]) -> None:
        query = CallbackQuery.from_dict(payload)
        logger.info("[CALLBACK] Action: %s", query.data)
        await self.callback_handler.handle(query)

    async def on_edited_message(self, payload: Dict[str, Any]) -> None:
        message = InboundMessage.from_dict(payload)
        logger.info("[EDIT] Message %s was edited by %s", message.message_id, message.chat_id)
        if self._s.is_admin_chat(message.chat_id):
            return

        admin_lang = await self._s.language.resolve(self._s.admin_uid)
        content = (message.text or message.caption or MEDIA_PLACEHOLDER)[:EDIT_PREVIEW_LENGTH]
        await self._s.send_admin(
            t(
                "edited_message_notice",
                admin_lang,
                username=message.display_name,
                guest_id=message.chat_id,
                content=content,
            )
        )
