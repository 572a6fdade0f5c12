"""
Inline keyboard callbacks.

Callback data is ``<action>:<params...>``:

- ``lang:<code>:<user>``        store a language preference (only for that user)
- ``appeal:accept:<guest>``     unblock the guest and notify both sides
- ``appeal:reject:<guest>``     notify both sides
- ``unban:<guest>``             unblock the guest

Appeal and unban actions are honoured only when pressed in the admin chat.
"""

from __future__ import annotations

from typing import List

from kokosa.datatypes.telegram_datatypes import CallbackQuery
from kokosa.i18n.translations import t
from kokosa.moderation.relay_services import RelayServices
from kokosa.util.logger import get_logger

logger = get_logger("callback_actions")


class CallbackActionHandler:
    """Answer and execute inline keyboard callbacks."""

    def __init__(self, services: RelayServices) -> None:
        self._s = services

    async def handle(self, query: CallbackQuery) -> None:
        try:
            await self._s.telegram.answer_callback_query(query.id)
            action, *params = query.data.split(":")
            caller_id = str(query.from_id)

            if action == "lang":
                await self._on_lang(caller_id, params)
            elif action in ("appeal", "unban") and not self._s.is_admin_chat(caller_id):
                logger.info("[CALLBACK] Ignoring %s action from non-admin %s", action, caller_id)
            elif action == "appeal":
                await self._on_appeal(caller_id, params)
            elif action == "unban":
                await self._on_unban(caller_id, params)
            else:
                logger.debug("[CALLBACK] Ignoring unknown action %r", action)
        except Exception:
            logger.exception("[CALLBACK] Error handling callback %r", query.data)

    async def _on_lang(self, caller_id: str, params: List[str]) -> None:
        if len(params) < 2:
            return
        lang, user_id = params[0], params[1]
        if caller_id != user_id:
            logger.info("[CALLBACK] %s tried to change the language of %s", caller_id, user_id)
            return
        await self._s.prefs.set(user_id, lang)
        await self._s.telegram.send_message(user_id, t("lang_changed", lang))

    async def _on_appeal(self, caller_id: str, params: List[str]) -> None:
        if len(params) < 2:
            return
        decision, guest_id = params[0], params[1]
        lang = await self._s.language.resolve(caller_id)
        guest_lang = await self._s.language.resolve(guest_id)

        if decision == "accept":
            await self._s.blocks.set_blocked(guest_id, False)
            await self._s.send_admin(t("appeal_accepted", lang, guest_id=guest_id))
            await self._s.telegram.send_message(guest_id, t("guest_appeal_accepted", guest_lang))
        elif decision == "reject":
            await self._s.send_admin(t("appeal_rejected", lang, guest_id=guest_id))
            await self._s.telegram.send_message(guest_id, t("guest_appeal_rejected", guest_lang))
        else:
            return
        logger.info("[CALLBACK] Appeal from %s: %s", guest_id, decision)

    async def _on_unban(self, caller_id: str, params: List[str]) -> None:
        if not params:
            return
        guest_id = params[0]
        lang = await self._s.language.resolve(caller_id)
        await self._s.blocks.set_blocked(guest_id, False)
        await self._s.send_admin(t("unbanned", lang, guest_id=guest_id))
