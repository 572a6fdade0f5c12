"""
Thin asynchronous Telegram Bot API client.

Every method POSTs a JSON body to ``https://api.telegram.org/bot<token>/<method>``
and returns the decoded response (``{"ok": ..., "result": ...}``). API-level
failures come back as ``ok: false`` payloads; transport errors propagate.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional

import aiohttp

from kokosa.util.logger import get_logger

logger = get_logger("telegram_client")

API_BASE = "https://api.telegram.org"
DEFAULT_TIMEOUT_SECONDS = 30


class TelegramClient:
    """Bot API client sharing one ``aiohttp.ClientSession``."""

    def __init__(
        self,
        token: str,
        session: Optional[aiohttp.ClientSession] = None,
        api_base: str = API_BASE,
    ) -> None:
        self._token = token
        self._api_base = api_base.rstrip("/")
        self._session = session
        self._owns_session = session is None

    def _session_or_create(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=DEFAULT_TIMEOUT_SECONDS)
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    async def _request(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = {key: value for key, value in payload.items() if value is not None}
        logger.debug("[TELEGRAM] %s %s", method, json.dumps(body, ensure_ascii=False)[:100])
        url = f"{self._api_base}/bot{self._token}/{method}"
        async with self._session_or_create().post(url, json=body) as response:
            data = await response.json(content_type=None)
        if not data.get("ok"):
            logger.warning("[TELEGRAM] %s failed: %s", method, data.get("description", data))
        return data

    async def send_message(
        self,
        chat_id: int | str,
        text: str,
        reply_markup: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        return await self._request(
            "sendMessage", {"chat_id": chat_id, "text": text, "reply_markup": reply_markup}
        )

    async def forward_message(self, chat_id: int | str, from_chat_id: int | str, message_id: int) -> Dict[str, Any]:
        return await self._request(
            "forwardMessage",
            {"chat_id": chat_id, "from_chat_id": from_chat_id, "message_id": message_id},
        )

    async def copy_message(self, chat_id: int | str, from_chat_id: int | str, message_id: int) -> Dict[str, Any]:
        return await self._request(
            "copyMessage",
            {"chat_id": chat_id, "from_chat_id": from_chat_id, "message_id": message_id},
        )

    async def get_file(self, file_id: str) -> Dict[str, Any]:
        return await self._request("getFile", {"file_id": file_id})

    def get_file_url(self, file_path: str) -> str:
        return f"{self._api_base}/file/bot{self._token}/{file_path}"

    async def answer_callback_query(self, callback_query_id: str) -> Dict[str, Any]:
        return await self._request("answerCallbackQuery", {"callback_query_id": callback_query_id})

    async def set_my_commands(
        self,
        commands: List[Dict[str, str]],
        scope: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        return await self._request("setMyCommands", {"commands": commands, "scope": scope})

    async def set_webhook(
        self,
        url: str,
        secret_token: Optional[str] = None,
        allowed_updates: Optional[Iterable[str]] = None,
    ) -> Dict[str, Any]:
        return await self._request(
            "setWebhook",
            {
                "url": url,
                "secret_token": secret_token,
                "allowed_updates": list(allowed_updates) if allowed_updates is not None else None,
            },
        )
