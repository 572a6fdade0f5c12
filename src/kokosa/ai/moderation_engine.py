"""Content classification against an OpenAI-compatible chat completions API.

This module turns a piece of guest content into a :class:`Verdict`:
- Text is embedded (JSON quoted) after the moderation prompt.
- Images are sent as a base64 ``data:`` URL part next to the prompt, with the
  caption appended when there is one.
- Keys are taken from the shared :class:`ApiKeyRotator`; a failing call moves
  on to the next key, up to one attempt per key.

Key Features:
- Fail-open: no keys, exhausted retries or an undownloadable image all yield SAFE.
- Model output is only scanned for ``UNSAFE``; it is never echoed back.
"""

from __future__ import annotations

import json
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from openai import AsyncOpenAI

from kokosa.ai.key_rotation import ApiKeyRotator, api_key_rotator
from kokosa.configuration.environment import parse_api_keys
from kokosa.configuration.moderation_settings import ModerationSettings
from kokosa.datatypes.moderation_datatypes import Verdict
from kokosa.util.image_utils import detect_mime_type, download_image_bytes, to_data_url
from kokosa.util.logger import get_logger

logger = get_logger("moderation_engine")

KeySet = Union[str, Sequence[str], None]
ClientFactory = Callable[[str], Any]
ImageDownloader = Callable[[str], Awaitable[Optional[bytes]]]

MIN_TEXT_LENGTH = 2
UNSAFE_MARKER = "UNSAFE"


def normalize_keyset(keyset: KeySet) -> List[str]:
    """Accept a single key, a comma separated string or a sequence of keys."""
    if keyset is None:
        return []
    if isinstance(keyset, str):
        return parse_api_keys(keyset)
    return [key.strip() for key in keyset if key and key.strip()]


class ModerationEngine:
    """
    Classify text and images as SAFE or UNSAFE.

    Args:
        settings: Model name, base URL, timeout and prompt. Defaults to the
            built-in :class:`ModerationSettings` values.
        rotator: Key rotator; the process-wide instance when omitted.
        client_factory: Builds an API client for a key. The default creates one
            ``AsyncOpenAI`` client per key (SDK retries disabled) and reuses it.
        image_downloader: Coroutine fetching image bytes for a URL.
    """

    def __init__(
        self,
        settings: Optional[ModerationSettings] = None,
        rotator: Optional[ApiKeyRotator] = None,
        client_factory: Optional[ClientFactory] = None,
        image_downloader: ImageDownloader = download_image_bytes,
    ) -> None:
        self._settings = settings or ModerationSettings()
        self._rotator = rotator or api_key_rotator
        self._client_factory = client_factory or self._default_client
        self._download = image_downloader
        self._clients: Dict[str, AsyncOpenAI] = {}

    @property
    def rotator(self) -> ApiKeyRotator:
        return self._rotator

    def _default_client(self, api_key: str) -> AsyncOpenAI:
        client = self._clients.get(api_key)
        if client is None:
            client = AsyncOpenAI(
                api_key=api_key,
                base_url=self._settings.base_url,
                max_retries=0,
                timeout=self._settings.request_timeout_seconds,
            )
            self._clients[api_key] = client
        return client

    async def evaluate_text(self, text: Optional[str], keyset: KeySet) -> Verdict:
        """Classify a text message. Short or empty text is SAFE without a call."""
        keys = normalize_keyset(keyset)
        if not text or len(text) < MIN_TEXT_LENGTH or not keys:
            return Verdict.safe()

        logger.debug("[AI] Checking text: %r...", text[:30])
        prompt = f"{self._settings.prompt} {json.dumps(text, ensure_ascii=False)}"
        return await self._classify(prompt, keys)

    async def evaluate_image(
        self,
        image: Union[str, bytes, None],
        keyset: KeySet,
        caption: Optional[str] = None,
    ) -> Verdict:
        """
        Classify an image given as raw bytes or a downloadable URL.

        Args:
            image: Image bytes, or a URL fetched before classification.
            keyset: API key(s) to use.
            caption: Optional caption sent alongside the image.

        Returns:
            Verdict: SAFE when there is nothing to check, the download fails,
                or every attempt fails.
        """
        keys = normalize_keyset(keyset)
        if not image or not keys:
            return Verdict.safe()

        url: Optional[str] = None
        if isinstance(image, bytes):
            data: Optional[bytes] = image
        else:
            url = image
            logger.debug("[AI] Checking image: %s...", url[:50])
            data = await self._download(url)

        if not data:
            logger.info("[AI] Image unavailable, skipping moderation")
            return Verdict.safe()

        mime_type = detect_mime_type(data, url)
        logger.debug("[AI] Image size: %d bytes, type: %s", len(data), mime_type)

        prompt = self._settings.prompt
        if caption:
            prompt = f"{prompt} (Caption: {caption})"

        content = [
            {"type": "image_url", "image_url": {"url": to_data_url(data, mime_type)}},
            {"type": "text", "text": prompt},
        ]
        return await self._classify(content, keys)

    async def _classify(self, content: Any, keys: List[str]) -> Verdict:
        """Send ``content`` as a single user message, rotating keys on failure."""
        messages = [{"role": "user", "content": content}]

        for attempt in range(1, len(keys) + 1):
            api_key = self._rotator.next_key(keys)
            try:
                client = self._client_factory(api_key)
                response = await client.chat.completions.create(
                    model=self._settings.model_name,
                    messages=messages,
                )
                answer = (response.choices[0].message.content or "").strip().upper()
            except Exception as exc:
                logger.warning(
                    "[AI] API request failed (attempt %d/%d): %s",
                    attempt,
                    len(keys),
                    type(exc).__name__,
                )
                continue

            logger.debug("[AI] Result: %s", answer)
            if UNSAFE_MARKER in answer:
                return Verdict.unsafe()
            return Verdict.safe()

        logger.error("[AI] All %d API attempts failed, treating content as SAFE", len(keys))
        return Verdict.safe()
