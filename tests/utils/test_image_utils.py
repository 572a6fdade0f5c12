import base64

import pytest
import requests

from kokosa.util import image_utils
from kokosa.util.image_utils import detect_mime_type, download_image_bytes, to_data_url


class FakeResponse:
    def __init__(self, content=b"", status=200):
        self.content = content
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.mark.parametrize(
    "data, url, expected",
    [
        (b"\xff\xd8\xff", "https://x/photos/a.png", "image/png"),
        (b"\xff\xd8\xff", "https://x/a.gif", "image/gif"),
        (b"\xff\xd8\xff", "https://x/a.webp?size=2", "image/webp"),
        (b"\x89PNG\r\n", "https://x/file_1", "image/png"),
        (b"GIF89a", None, "image/gif"),
        (b"RIFF\x00\x00WEBP", None, "image/webp"),
        (b"\xff\xd8\xff", "https://x/a.jpg", "image/jpeg"),
        (b"", None, "image/jpeg"),
    ],
)
def test_detect_mime_type(data, url, expected):
    assert detect_mime_type(data, url) == expected


def test_to_data_url():
    url = to_data_url(b"abc", "image/png")

    assert url == "data:image/png;base64," + base64.b64encode(b"abc").decode("ascii")


@pytest.mark.asyncio
async def test_download_returns_bytes(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return FakeResponse(b"\x89PNG data")

    monkeypatch.setattr(image_utils.requests, "get", fake_get)

    assert await download_image_bytes("https://files.test/p.png") == b"\x89PNG data"
    assert calls == [("https://files.test/p.png", image_utils.DOWNLOAD_TIMEOUT_SECONDS)]


@pytest.mark.asyncio
async def test_download_http_error_returns_none(monkeypatch):
    monkeypatch.setattr(image_utils.requests, "get", lambda url, timeout: FakeResponse(status=404))

    assert await download_image_bytes("https://files.test/missing.png") is None


@pytest.mark.asyncio
async def test_download_network_error_returns_none(monkeypatch):
    def fake_get(url, timeout):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(image_utils.requests, "get", fake_get)

    assert await download_image_bytes("https://files.test/p.png") is None
