"""Image downloading and encoding utilities for moderation."""

import asyncio
import base64

import requests

from kokosa.util.logger import get_logger

logger = get_logger("image_utils")

DEFAULT_MIME_TYPE = "image/jpeg"
DOWNLOAD_TIMEOUT_SECONDS = 10

_URL_MIME_HINTS = ((".png", "image/png"), (".gif", "image/gif"), (".webp", "image/webp"))
_MAGIC_BYTES = ((b"\x89\x50", "image/png"), (b"\x47\x49", "image/gif"), (b"\x52\x49", "image/webp"))


def detect_mime_type(data: bytes, url: str | None = None) -> str:
    """
    Guess the MIME type of an image.

    The URL is checked first for a ``.png``, ``.gif`` or ``.webp`` substring,
    then the first two bytes of the payload. Anything else is reported as JPEG.
    """
    if url:
        for needle, mime_type in _URL_MIME_HINTS:
            if needle in url:
                return mime_type
    for magic, mime_type in _MAGIC_BYTES:
        if data[:2] == magic:
            return mime_type
    return DEFAULT_MIME_TYPE


def to_data_url(data: bytes, mime_type: str) -> str:
    """Encode raw image bytes as a base64 ``data:`` URL."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def _fetch_image_bytes(url: str) -> bytes | None:
    """Blocking download; returns ``None`` on any HTTP or network failure."""
    try:
        response = requests.get(url, timeout=DOWNLOAD_TIMEOUT_SECONDS)
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("[DOWNLOAD] Request failed for image: %s", type(exc).__name__)
        return None
    logger.debug("[DOWNLOAD] Downloaded image, size=%d bytes", len(response.content))
    return response.content


async def download_image_bytes(url: str) -> bytes | None:
    """Download an image without blocking the event loop."""
    return await asyncio.to_thread(_fetch_image_bytes, url)
