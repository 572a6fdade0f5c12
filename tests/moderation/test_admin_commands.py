"""Admin commands, reply commands and reply relaying."""

import pytest

from conftest import ADMIN_UID, GUEST_ID, make_message
from kokosa.datatypes.relay_datatypes import MessageSummary, RelayStatus
from kokosa.datatypes.telegram_datatypes import InboundMessage
from kokosa.i18n.translations import t
from kokosa.moderation.admin_commands import MANUAL_BLOCK_REASON, AdminCommandHandler

GUEST = str(GUEST_ID)
FORWARDED_ID = 5001


@pytest.fixture()
def handler(services):
    return AdminCommandHandler(services)


async def open_relay(services, text="hello admin"):
    relay = await services.relays.create_relay(GUEST, MessageSummary(display_name="guest_user", text=text))
    await services.relays.link_admin_message(FORWARDED_ID, relay.id)
    return relay


def admin_message(text, reply_to_id=None, message_id=77, **extra):
    if reply_to_id is not None:
        extra["reply_to_message"] = make_message("hello admin", chat_id=int(ADMIN_UID), message_id=reply_to_id)
    return InboundMessage.from_dict(make_message(text, chat_id=int(ADMIN_UID), message_id=message_id, **extra))


def admin_texts(telegram):
    return telegram.texts_to(ADMIN_UID)


@pytest.mark.asyncio
async def test_start(handler, telegram):
    await handler.handle(admin_message("/start"))

    assert admin_texts(telegram) == [t("admin_online", "en")]


@pytest.mark.asyncio
async def test_lang_keyboard_targets_admin(handler, telegram):
    await handler.handle(admin_message("/lang"))

    sent = telegram.calls_to("send_message")[0]
    callbacks = [b["callback_data"] for b in sent["reply_markup"]["inline_keyboard"][0]]
    assert callbacks == [f"lang:en:{ADMIN_UID}", f"lang:zh:{ADMIN_UID}"]


@pytest.mark.asyncio
async def test_list_without_blocked_users(handler, telegram):
    await handler.handle(admin_message("/list"))

    assert admin_texts(telegram) == ["No blocked users."]


@pytest.mark.asyncio
async def test_list_shows_blocked_users_with_unban_buttons(handler, services, telegram):
    await services.blocks.set_blocked("42", True, "spam")
    await services.blocks.set_blocked("43", True)

    await handler.handle(admin_message("/list"))

    sent = telegram.calls_to("send_message")[0]
    assert sent["text"].startswith("Blocked Users (2):\n\n1. 42\n   Reason: spam\n")
    assert "2. 43\n   Reason: Manual\n" in sent["text"]
    assert sent["reply_markup"]["inline_keyboard"] == [
        [{"text": "Unban 42", "callback_data": "unban:42"}],
        [{"text": "Unban 43", "callback_data": "unban:43"}],
    ]


@pytest.mark.asyncio
async def test_stats_reports_counters_and_masked_keys(handler, services, telegram):
    await open_relay(services)
    await services.blocks.set_blocked("42", True)
    await services.counters.increment("ai-blocks")
    await services.engine.evaluate_text("warm up the key", services.api_keys)

    await handler.handle(admin_message("/stats"))

    text = admin_texts(telegram)[0]
    assert "Total Relays: 1\nBlocked Users: 1\nAI Blocks: 1\n" in text
    assert "  #1: 1 calls (key-al***)\n" in text
    assert "key-alpha-0001" not in text


@pytest.mark.asyncio
async def test_stats_without_usage_has_no_usage_section(handler, telegram):
    await handler.handle(admin_message("/stats"))

    assert "API Usage" not in admin_texts(telegram)[0]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "text, expected",
    [
        ("/unban", "Usage: /unban <ID>"),
        ("/unban abc", "Invalid user ID format. ID must be a number."),
        ("/trustid", "Usage: /trustid <UID>"),
        ("/trustid 12a", "Invalid user ID format. ID must be a number."),
        ("/checktext", "Usage: /checktext <content>"),
    ],
)
async def test_argument_commands_validate_input(handler, telegram, text, expected):
    await handler.handle(admin_message(text))

    assert admin_texts(telegram) == [expected]


@pytest.mark.asyncio
async def test_unban_by_id(handler, services, telegram):
    await services.blocks.set_blocked("42", True)

    await handler.handle(admin_message("/unban 42"))

    assert not await services.blocks.is_blocked("42")
    assert admin_texts(telegram) == ["Unbanned: 42"]


@pytest.mark.asyncio
async def test_trustid(handler, services, telegram):
    await handler.handle(admin_message("/trustid 42"))

    assert await services.trust.is_trusted("42")
    assert admin_texts(telegram)[0].startswith("Trusted: 42")


@pytest.mark.asyncio
async def test_checktext_reports_verdict(handler, model, telegram):
    model.set_answers("UNSAFE")

    await handler.handle(admin_message("/checktext free crypto giveaway"))

    assert admin_texts(telegram) == ["Content Check: UNSAFE: Content policy violation"]
    assert model.client.requests[0]["messages"][0]["content"].endswith('"free crypto giveaway"')


@pytest.mark.asyncio
async def test_block_reply(handler, services, telegram):
    relay = await open_relay(services)

    await handler.handle(admin_message("/block", reply_to_id=FORWARDED_ID))

    info = await services.blocks.block_info(GUEST)
    assert info.reason == MANUAL_BLOCK_REASON
    assert (await services.relays.get(relay.id)).status is RelayStatus.BLOCKED
    assert admin_texts(telegram) == [f"Blocked: {GUEST} (guest_user)"]


@pytest.mark.asyncio
async def test_unblock_reply_keeps_relay_status(handler, services, telegram):
    relay = await open_relay(services)
    await handler.handle(admin_message("/block", reply_to_id=FORWARDED_ID))

    await handler.handle(admin_message("/unblock", reply_to_id=FORWARDED_ID))

    assert not await services.blocks.is_blocked(GUEST)
    assert (await services.relays.get(relay.id)).status is RelayStatus.BLOCKED
    assert admin_texts(telegram)[-1] == f"Unblocked: {GUEST}"


@pytest.mark.asyncio
async def test_trust_and_untrust_replies(handler, services, telegram):
    await open_relay(services)

    await handler.handle(admin_message("/trust", reply_to_id=FORWARDED_ID))
    assert await services.trust.is_trusted(GUEST)

    await handler.handle(admin_message("/untrust", reply_to_id=FORWARDED_ID))
    assert await services.trust.score(GUEST) == 0
    assert admin_texts(telegram)[-1].startswith(f"Untrusted: {GUEST} (guest_user)")


@pytest.mark.asyncio
async def test_status_reply(handler, services, telegram):
    await open_relay(services)

    await handler.handle(admin_message("/status", reply_to_id=FORWARDED_ID))

    assert admin_texts(telegram) == [f"User: {GUEST} (guest_user)\nBlocked: No\nRelay: open"]


@pytest.mark.asyncio
async def test_check_reply_runs_fresh_text_check(handler, services, model, telegram):
    await open_relay(services)
    await services.cache.store("hello admin", "cached reason")

    await handler.handle(admin_message("/check", reply_to_id=FORWARDED_ID))

    assert model.call_count == 1
    assert admin_texts(telegram) == ["Content Check: SAFE"]


@pytest.mark.asyncio
async def test_check_reply_includes_image_result(handler, services, model, telegram):
    relay = await services.relays.create_relay(GUEST, MessageSummary(has_photo=True))
    await services.relays.link_admin_message(FORWARDED_ID, relay.id)
    replied = make_message(None, chat_id=int(ADMIN_UID), message_id=FORWARDED_ID, photo=[{"file_id": "p1"}])
    message = InboundMessage.from_dict(make_message("/check", chat_id=int(ADMIN_UID), reply_to_message=replied))

    await handler.handle(message)

    assert admin_texts(telegram) == ["Image Check: SAFE"]
    assert telegram.calls_to("get_file") == [{"file_id": "p1"}]


@pytest.mark.asyncio
async def test_check_reply_skips_image_that_cannot_be_fetched(handler, services, model, telegram):
    telegram.get_file_ok = False
    relay = await services.relays.create_relay(GUEST, MessageSummary(has_photo=True))
    await services.relays.link_admin_message(FORWARDED_ID, relay.id)
    replied = make_message(None, chat_id=int(ADMIN_UID), message_id=FORWARDED_ID, photo=[{"file_id": "p1"}])
    message = InboundMessage.from_dict(make_message("/check", chat_id=int(ADMIN_UID), reply_to_message=replied))

    await handler.handle(message)

    assert model.call_count == 0
    assert admin_texts(telegram) == [t("no_content_to_check", "en")]


@pytest.mark.asyncio
async def test_reply_command_on_unknown_message(handler, telegram):
    await handler.handle(admin_message("/block", reply_to_id=4242))

    assert admin_texts(telegram) == [t("cannot_find_user", "en")]


@pytest.mark.asyncio
async def test_reply_command_on_missing_relay(handler, services, telegram):
    await services.relays.link_admin_message(FORWARDED_ID, "R-1-gone")

    await handler.handle(admin_message("/status", reply_to_id=FORWARDED_ID))

    assert admin_texts(telegram) == [t("relay_not_found", "en")]


@pytest.mark.asyncio
async def test_plain_reply_is_copied_to_guest(handler, services, telegram):
    relay = await open_relay(services)

    await handler.handle(admin_message("thanks, noted", reply_to_id=FORWARDED_ID, message_id=78))

    assert telegram.calls_to("copy_message") == [{"chat_id": GUEST, "from_chat_id": ADMIN_UID, "message_id": 78}]
    assert (await services.relays.get(relay.id)).status is RelayStatus.REPLIED
    assert admin_texts(telegram) == []


@pytest.mark.asyncio
async def test_plain_reply_to_blocked_guest_is_refused(handler, services, telegram):
    await open_relay(services)
    await services.blocks.set_blocked(GUEST, True)

    await handler.handle(admin_message("hello?", reply_to_id=FORWARDED_ID))

    assert telegram.calls_to("copy_message") == []
    assert admin_texts(telegram) == [t("user_blocked_cannot_reply", "en")]


@pytest.mark.asyncio
async def test_plain_reply_to_unknown_message(handler, telegram):
    await handler.handle(admin_message("hello?", reply_to_id=4242))

    assert admin_texts(telegram) == [t("cannot_find_sender", "en")]


@pytest.mark.asyncio
async def test_plain_reply_with_missing_relay(handler, services, telegram):
    await services.relays.link_admin_message(FORWARDED_ID, "R-1-gone")

    await handler.handle(admin_message("hello?", reply_to_id=FORWARDED_ID))

    assert admin_texts(telegram) == [t("relay_data_not_found", "en")]


@pytest.mark.asyncio
async def test_unrecognised_text_without_reply_is_ignored(handler, telegram):
    await handler.handle(admin_message("just talking to myself"))

    assert telegram.calls == []


@pytest.mark.asyncio
async def test_admin_language_preference_is_used(handler, services, telegram):
    await services.prefs.set(ADMIN_UID, "zh")

    await handler.handle(admin_message("/start"))

    assert admin_texts(telegram) == [t("admin_online", "zh")]
