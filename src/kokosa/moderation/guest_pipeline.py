"""
Decision pipeline for messages sent to the bot by guests.

Each message walks an ordered route table; the first route that handles it
ends processing:

1. ``/lang``           language keyboard (always allowed)
2. ``/appeal ...``     appeal to the admin (blocked guests only)
3. blocked guest       blocked notice
4. ``/start``          welcome message
5. rate limit          "too many messages" notice
6. moderation          skipped for trusted guests; UNSAFE content is rejected
7. forward             relay record + forward to the admin

Any failure is logged and answered with a generic error message.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, List

from kokosa.datatypes.relay_datatypes import UNKNOWN_NAME
from kokosa.datatypes.telegram_datatypes import InboundMessage
from kokosa.i18n.translations import build_language_keyboard, t
from kokosa.moderation.content_moderation import ContentModerator
from kokosa.moderation.relay_services import RelayServices
from kokosa.repositories.counters import AI_BLOCKS
from kokosa.util.clock import format_timestamp_ms
from kokosa.util.logger import get_logger

logger = get_logger("guest_pipeline")

APPEAL_COMMAND = "/appeal"
AI_BLOCK_REASON_PREFIX = "AI Filter: "


@dataclass(slots=True)
class GuestContext:
    """Per-message state shared by the routes."""

    message: InboundMessage
    guest_id: str
    lang: str
    blocked: bool

    @property
    def text(self) -> str:
        return self.message.text or ""


Route = Callable[[GuestContext], Awaitable[bool]]


def build_appeal_keyboard(guest_id: str, lang: str) -> dict:
    return {
        "inline_keyboard": [
            [
                {"text": t("appeal_accept_button", lang), "callback_data": f"appeal:accept:{guest_id}"},
                {"text": t("appeal_reject_button", lang), "callback_data": f"appeal:reject:{guest_id}"},
            ]
        ]
    }


class GuestPipeline:
    """Route guest messages through commands, gates, moderation and forwarding."""

    def __init__(self, services: RelayServices, moderator: ContentModerator | None = None) -> None:
        self._s = services
        self._moderator = moderator or ContentModerator(services)
        self._routes: List[Route] = [
            self._route_lang,
            self._route_appeal,
            self._route_blocked,
            self._route_start,
            self._route_rate_limit,
            self._route_moderation,
            self._route_forward,
        ]

    async def handle(self, message: InboundMessage) -> None:
        guest_id = str(message.chat_id)
        try:
            ctx = GuestContext(
                message=message,
                guest_id=guest_id,
                lang=await self._s.language.resolve(guest_id),
                blocked=await self._s.blocks.is_blocked(guest_id),
            )
            for route in self._routes:
                if await route(ctx):
                    return
        except Exception:
            logger.exception("[GUEST] Handler error for %s", guest_id)
            await self._send_error(message.chat_id, guest_id)

    async def _send_error(self, chat_id: int, guest_id: str) -> None:
        try:
            lang = await self._s.language.resolve(guest_id)
            await self._s.telegram.send_message(chat_id, t("guest_error", lang))
        except Exception as exc:
            logger.debug("[GUEST] Could not deliver error notice to %s: %s", guest_id, exc)

    async def _reply(self, ctx: GuestContext, text: str, reply_markup: dict | None = None) -> None:
        await self._s.telegram.send_message(ctx.guest_id, text, reply_markup=reply_markup)

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    async def _route_lang(self, ctx: GuestContext) -> bool:
        if ctx.text != "/lang":
            return False
        await self._reply(ctx, t("lang_select_prompt", ctx.lang), build_language_keyboard(ctx.guest_id))
        return True

    async def _route_appeal(self, ctx: GuestContext) -> bool:
        if not ctx.text.startswith(APPEAL_COMMAND):
            return False
        if not ctx.blocked:
            await self._reply(ctx, t("guest_not_blocked", ctx.lang))
            return True
        await self._submit_appeal(ctx)
        return True

    async def _route_blocked(self, ctx: GuestContext) -> bool:
        if not ctx.blocked:
            return False
        await self._reply(ctx, t("guest_blocked", ctx.lang))
        return True

    async def _route_start(self, ctx: GuestContext) -> bool:
        if ctx.text != "/start":
            return False
        await self._reply(ctx, t("guest_welcome", ctx.lang))
        return True

    async def _route_rate_limit(self, ctx: GuestContext) -> bool:
        result = await self._s.rate_limiter.check(ctx.guest_id)
        if result.allowed:
            return False
        logger.info("[GUEST] Rate limited: %s", ctx.guest_id)
        await self._reply(ctx, t("guest_rate_limited", ctx.lang, seconds=result.reset_in_seconds))
        return True

    async def _route_moderation(self, ctx: GuestContext) -> bool:
        if not self._s.moderation_active:
            return False
        if await self._s.trust.is_trusted(ctx.guest_id):
            logger.debug("[GUEST] Trusted user, skipping AI check: %s", ctx.guest_id)
            return False

        verdict = await self._moderator.check_message(ctx.message)
        if verdict.is_safe:
            await self._s.trust.increment(ctx.guest_id)
            return False

        await self._s.counters.increment(AI_BLOCKS)
        if self._s.auto_block:
            await self._s.blocks.set_blocked(ctx.guest_id, True, f"{AI_BLOCK_REASON_PREFIX}{verdict.reason}")
        logger.info("[GUEST] Message from %s rejected: %s", ctx.guest_id, verdict.reason)
        await self._reply(ctx, t("guest_message_blocked", ctx.lang, reason=verdict.reason))
        return True

    async def _route_forward(self, ctx: GuestContext) -> bool:
        relay = await self._s.relays.create_relay(ctx.guest_id, ctx.message.summary())
        forwarded = await self._s.telegram.forward_message(
            self._s.admin_uid, ctx.message.chat_id, ctx.message.message_id
        )
        if forwarded.get("ok"):
            await self._s.relays.link_admin_message(forwarded["result"]["message_id"], relay.id)
        else:
            logger.warning("[GUEST] Forward of relay %s failed: %s", relay.id, forwarded.get("description"))
        return True

    # ------------------------------------------------------------------
    # Appeals
    # ------------------------------------------------------------------

    async def _submit_appeal(self, ctx: GuestContext) -> None:
        admin_lang = await self._s.language.resolve(self._s.admin_uid)
        info = await self._s.blocks.block_info(ctx.guest_id)
        reason = info.reason if info else UNKNOWN_NAME
        blocked_at = format_timestamp_ms(info.blocked_at if info else None)

        appeal_text = (
            t("appeal_title", admin_lang)
            + t("appeal_from", admin_lang, username=ctx.message.display_name, guest_id=ctx.guest_id)
            + t("appeal_blocked", admin_lang, date=blocked_at)
            + t("appeal_reason", admin_lang, reason=reason)
            + t("appeal_separator", admin_lang)
        )
        content = ctx.text.replace(APPEAL_COMMAND, "", 1).strip()
        if content:
            appeal_text += t("appeal_message", admin_lang, content=content)
        else:
            appeal_text += t("appeal_no_message", admin_lang)

        await self._s.telegram.send_message(
            self._s.admin_uid, appeal_text, reply_markup=build_appeal_keyboard(ctx.guest_id, admin_lang)
        )
        evidence = ctx.message.reply_to
        if evidence is not None:
            await self._s.telegram.forward_message(self._s.admin_uid, ctx.guest_id, evidence.message_id)

        logger.info("[GUEST] Appeal submitted by %s", ctx.guest_id)
        await self._reply(ctx, t("guest_appeal_submitted", ctx.lang))
