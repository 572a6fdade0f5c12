"""Bot API client against a local aiohttp stand-in for api.telegram.org."""

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from kokosa.telegram.client import TelegramClient

TOKEN = "123:abc"


class FakeBotApi:
    def __init__(self):
        self.requests = []
        self.app = web.Application()
        self.app.router.add_post("/bot{token}/{method}", self.handle)

    async def handle(self, request):
        body = await request.json()
        self.requests.append((request.match_info["token"], request.match_info["method"], body))
        if request.match_info["method"] == "getFile":
            return web.json_response({"ok": False, "description": "Bad Request: file is too big"})
        return web.json_response({"ok": True, "result": {"message_id": 5}})


async def start_api():
    api = FakeBotApi()
    server = TestServer(api.app)
    await server.start_server()
    return api, server


@pytest.mark.asyncio
async def test_send_message_posts_json_and_drops_none():
    api, server = await start_api()
    client = TelegramClient(TOKEN, api_base=str(server.make_url("/")))
    try:
        result = await client.send_message(42, "hi")
    finally:
        await client.close()
        await server.close()

    assert result == {"ok": True, "result": {"message_id": 5}}
    assert api.requests == [(TOKEN, "sendMessage", {"chat_id": 42, "text": "hi"})]


@pytest.mark.asyncio
async def test_api_failure_is_returned_not_raised():
    api, server = await start_api()
    client = TelegramClient(TOKEN, api_base=str(server.make_url("/")))
    try:
        result = await client.get_file("big")
    finally:
        await client.close()
        await server.close()

    assert result["ok"] is False
    assert "too big" in result["description"]


@pytest.mark.asyncio
async def test_set_webhook_sends_allowed_updates_as_list():
    api, server = await start_api()
    client = TelegramClient(TOKEN, api_base=str(server.make_url("/")))
    try:
        await client.set_webhook("https://x/endpoint", secret_token="s", allowed_updates=("message",))
        await client.set_webhook("")
    finally:
        await client.close()
        await server.close()

    assert api.requests[0][2] == {"url": "https://x/endpoint", "secret_token": "s", "allowed_updates": ["message"]}
    assert api.requests[1][2] == {"url": ""}


def test_file_url():
    client = TelegramClient(TOKEN, api_base="https://api.telegram.org/")

    assert client.get_file_url("photos/a.jpg") == f"https://api.telegram.org/file/bot{TOKEN}/photos/a.jpg"
