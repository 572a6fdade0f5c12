"""
Admin-side message handling.

The admin talks to the bot in a private chat. Messages are routed, in order:

- exact commands: ``/start``, ``/lang``, ``/list``, ``/stats``
- argument commands: ``/unban <id>``, ``/trustid <id>``, ``/checktext <text>``
- reply commands (replying to a forwarded guest message): ``/block``,
  ``/unblock``, ``/trust``, ``/untrust``, ``/status``, ``/check``
- any other reply is copied to the guest the replied-to message came from
"""

from __future__ import annotations

from typing import Awaitable, Callable, Dict, List

from kokosa.datatypes.relay_datatypes import Relay, RelayStatus
from kokosa.datatypes.telegram_datatypes import InboundMessage
from kokosa.i18n.translations import build_language_keyboard, is_valid_user_id, t
from kokosa.moderation.content_moderation import resolve_file_url
from kokosa.moderation.relay_services import RelayServices
from kokosa.util.clock import format_timestamp_ms
from kokosa.util.logger import get_logger, mask_secret

logger = get_logger("admin_commands")

MANUAL_BLOCK_REASON = "Manual block by admin"

ExactHandler = Callable[[str], Awaitable[None]]
ArgumentHandler = Callable[[str, str], Awaitable[None]]
ReplyHandler = Callable[[str, str, Relay, InboundMessage], Awaitable[None]]


class AdminCommandHandler:
    """Execute admin commands and relay admin replies back to guests."""

    def __init__(self, services: RelayServices) -> None:
        self._s = services
        self._exact: Dict[str, ExactHandler] = {
            "/start": self._cmd_start,
            "/lang": self._cmd_lang,
            "/list": self._cmd_list,
            "/stats": self._cmd_stats,
        }
        self._with_argument: Dict[str, ArgumentHandler] = {
            "/unban": self._cmd_unban,
            "/trustid": self._cmd_trustid,
            "/checktext": self._cmd_checktext,
        }
        self._reply_commands: Dict[str, ReplyHandler] = {
            "/block": self._reply_block,
            "/unblock": self._reply_unblock,
            "/trust": self._reply_trust,
            "/untrust": self._reply_untrust,
            "/status": self._reply_status,
            "/check": self._reply_check,
        }

    async def handle(self, message: InboundMessage) -> None:
        try:
            await self._dispatch(message)
        except Exception:
            logger.exception("[ADMIN] Handler error for %s", message.from_id)

    async def _dispatch(self, message: InboundMessage) -> None:
        text = message.text or ""
        lang = await self._s.language.resolve(message.from_id or self._s.admin_uid)

        exact = self._exact.get(text)
        if exact is not None:
            await exact(lang)
            return

        command, _, argument = text.partition(" ")
        with_argument = self._with_argument.get(command)
        if with_argument is not None:
            await with_argument(lang, argument.strip())
            return

        if message.reply_to is None:
            return

        reply_command = self._reply_commands.get(text)
        if reply_command is not None:
            await self._run_reply_command(reply_command, lang, message)
            return

        await self._copy_reply_to_guest(lang, message)

    # ------------------------------------------------------------------
    # Exact commands
    # ------------------------------------------------------------------

    async def _cmd_start(self, lang: str) -> None:
        await self._s.send_admin(t("admin_online", lang))

    async def _cmd_lang(self, lang: str) -> None:
        await self._s.send_admin(t("lang_select_prompt", lang), build_language_keyboard(self._s.admin_uid))

    async def _cmd_list(self, lang: str) -> None:
        blocked = await self._s.blocks.list_blocked()
        if not blocked:
            await self._s.send_admin(t("no_blocked_users", lang))
            return

        output = t("blocked_users_title", lang, count=len(blocked))
        buttons: List[List[dict]] = []
        for index, info in enumerate(blocked, start=1):
            output += t(
                "blocked_user_item",
                lang,
                index=index,
                guest_id=info.guest_id,
                reason=info.reason,
                date=format_timestamp_ms(info.blocked_at),
            )
            buttons.append([
                {"text": t("unban_button", lang, guest_id=info.guest_id), "callback_data": f"unban:{info.guest_id}"}
            ])
        await self._s.send_admin(output, {"inline_keyboard": buttons})

    async def _cmd_stats(self, lang: str) -> None:
        stats = await self._s.blocks.statistics()
        output = t("stats_title", lang) + t(
            "stats_content",
            lang,
            total_relays=stats.total_relays,
            total_blocked=stats.total_blocked,
            ai_blocks=stats.ai_blocks,
        )
        usage = self._s.engine.rotator.usage_stats()
        if usage:
            output += t("api_usage_title", lang)
            for index, (key, calls) in enumerate(usage.items(), start=1):
                output += t(
                    "api_usage_item",
                    lang,
                    index=index,
                    calls=calls,
                    masked=mask_secret(key, self._s.api_key_display_length),
                )
        await self._s.send_admin(output)

    # ------------------------------------------------------------------
    # Commands with an argument
    # ------------------------------------------------------------------

    async def _cmd_unban(self, lang: str, argument: str) -> None:
        guest_id = argument.split()[0] if argument else ""
        if not guest_id:
            await self._s.send_admin(t("unban_usage", lang))
            return
        if not is_valid_user_id(guest_id):
            await self._s.send_admin(t("invalid_user_id", lang))
            return
        await self._s.blocks.set_blocked(guest_id, False)
        await self._s.send_admin(t("unbanned", lang, guest_id=guest_id))

    async def _cmd_trustid(self, lang: str, argument: str) -> None:
        guest_id = argument.split()[0] if argument else ""
        if not guest_id:
            await self._s.send_admin(t("trustid_usage", lang))
            return
        if not is_valid_user_id(guest_id):
            await self._s.send_admin(t("invalid_user_id", lang))
            return
        await self._s.trust.force_trust(guest_id)
        await self._s.send_admin(t("trustid_success", lang, guest_id=guest_id))

    async def _cmd_checktext(self, lang: str, argument: str) -> None:
        if not argument:
            await self._s.send_admin(t("checktext_usage", lang))
            return
        verdict = await self._s.engine.evaluate_text(argument, self._s.api_keys)
        await self._s.send_admin(t("content_check", lang, status=verdict.describe()))

    # ------------------------------------------------------------------
    # Reply commands
    # ------------------------------------------------------------------

    async def _run_reply_command(self, handler: ReplyHandler, lang: str, message: InboundMessage) -> None:
        replied = message.reply_to
        relay_id = await self._s.relays.resolve_by_admin_message(replied.message_id)
        if relay_id is None:
            await self._s.send_admin(t("cannot_find_user", lang))
            return
        relay = await self._s.relays.get(relay_id)
        if relay is None:
            await self._s.send_admin(t("relay_not_found", lang))
            return
        await handler(lang, relay_id, relay, replied)

    async def _reply_block(self, lang: str, relay_id: str, relay: Relay, replied: InboundMessage) -> None:
        await self._s.blocks.set_blocked(relay.guest_id, True, MANUAL_BLOCK_REASON)
        await self._s.relays.update_status(relay_id, RelayStatus.BLOCKED)
        await self._s.send_admin(t("blocked", lang, guest_id=relay.guest_id, username=relay.guest_display_name))

    async def _reply_unblock(self, lang: str, relay_id: str, relay: Relay, replied: InboundMessage) -> None:
        await self._s.blocks.set_blocked(relay.guest_id, False)
        await self._s.send_admin(t("unblocked", lang, guest_id=relay.guest_id))

    async def _reply_trust(self, lang: str, relay_id: str, relay: Relay, replied: InboundMessage) -> None:
        await self._s.trust.force_trust(relay.guest_id)
        await self._s.send_admin(t("trusted", lang, guest_id=relay.guest_id, username=relay.guest_display_name))

    async def _reply_untrust(self, lang: str, relay_id: str, relay: Relay, replied: InboundMessage) -> None:
        await self._s.trust.reset(relay.guest_id)
        await self._s.send_admin(t("untrusted", lang, guest_id=relay.guest_id, username=relay.guest_display_name))

    async def _reply_status(self, lang: str, relay_id: str, relay: Relay, replied: InboundMessage) -> None:
        blocked = await self._s.blocks.is_blocked(relay.guest_id)
        await self._s.send_admin(
            t(
                "user_status",
                lang,
                guest_id=relay.guest_id,
                username=relay.guest_display_name,
                blocked=t("answer_yes", lang) if blocked else t("answer_no", lang),
                status=relay.status.value,
            )
        )

    async def _reply_check(self, lang: str, relay_id: str, relay: Relay, replied: InboundMessage) -> None:
        results: List[str] = []

        text_content = replied.caption or replied.text or relay.content_preview
        if text_content:
            verdict = await self._s.engine.evaluate_text(text_content, self._s.api_keys)
            results.append(t("content_check", lang, status=verdict.describe()))

        photo_id = replied.largest_photo_file_id
        if photo_id:
            # no image line when the file could not be fetched
            url = await resolve_file_url(self._s.telegram, photo_id)
            if url is not None:
                verdict = await self._s.engine.evaluate_image(url, self._s.api_keys)
                results.append(t("image_check", lang, status=verdict.describe()))

        if not results:
            await self._s.send_admin(t("no_content_to_check", lang))
            return
        await self._s.send_admin("\n".join(results))

    # ------------------------------------------------------------------
    # Plain replies
    # ------------------------------------------------------------------

    async def _copy_reply_to_guest(self, lang: str, message: InboundMessage) -> None:
        relay_id = await self._s.relays.resolve_by_admin_message(message.reply_to.message_id)
        if relay_id is None:
            await self._s.send_admin(t("cannot_find_sender", lang))
            return
        relay = await self._s.relays.get(relay_id)
        if relay is None:
            await self._s.send_admin(t("relay_data_not_found", lang))
            return
        if await self._s.blocks.is_blocked(relay.guest_id):
            await self._s.send_admin(t("user_blocked_cannot_reply", lang))
            return

        await self._s.telegram.copy_message(relay.guest_id, self._s.admin_uid, message.message_id)
        await self._s.relays.update_status(relay_id, RelayStatus.REPLIED)
        logger.debug("[ADMIN] Reply delivered for relay %s", relay_id)
