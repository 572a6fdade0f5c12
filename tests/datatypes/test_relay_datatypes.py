import json

from kokosa.datatypes.rate_limit_datatypes import RateLimitWindow
from kokosa.datatypes.relay_datatypes import (
    BlockInfo,
    MessageKind,
    MessageSummary,
    Relay,
    RelayStatus,
)


def test_message_summary_kind_and_preview():
    assert MessageSummary(text="hi", has_photo=True).kind is MessageKind.TEXT
    assert MessageSummary(caption="cap", has_photo=True).kind is MessageKind.PHOTO
    assert MessageSummary().kind is MessageKind.OTHER
    assert MessageSummary(text="x" * 150).preview == "x" * 100
    assert MessageSummary(caption="cap").preview == "cap"
    assert MessageSummary().preview == ""


def test_relay_json_uses_enum_values():
    relay = Relay(
        id="R-1-abcdef",
        guest_id="42",
        guest_display_name="alice",
        status=RelayStatus.REPLIED,
        created_at=1,
        message_kind=MessageKind.PHOTO,
        content_preview="",
    )

    data = json.loads(relay.to_json())
    assert data["status"] == "replied"
    assert data["message_kind"] == "photo"
    assert data["updated_at"] is None
    assert Relay.from_json(relay.to_json()) == relay


def test_relay_from_partial_json_fills_defaults():
    relay = Relay.from_json('{"id": "R-1-x", "guest_id": 42}')

    assert relay.guest_id == "42"
    assert relay.guest_display_name == "Unknown"
    assert relay.status is RelayStatus.OPEN
    assert relay.message_kind is MessageKind.OTHER


def test_block_info_json():
    info = BlockInfo(guest_id="42", reason="AI Filter: Content policy violation", blocked_at=1700000000000)

    assert BlockInfo.from_json(info.to_json()) == info
    assert BlockInfo.from_json('{"guest_id": "1"}').reason == "Unknown"


def test_rate_limit_window_json():
    window = RateLimitWindow.from_json('{"window_start": 1000, "count": 3}')

    assert (window.window_start, window.count) == (1000, 3)
    assert json.loads(window.to_json()) == {"window_start": 1000, "count": 3}
