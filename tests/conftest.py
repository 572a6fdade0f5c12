"""
Pytest configuration and fixtures for Kokosa tests.

No test touches the network: the Bot API client and the moderation model are
replaced with the in-memory fakes defined here.
"""

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from kokosa.ai.key_rotation import ApiKeyRotator  # noqa: E402
from kokosa.ai.moderation_engine import ModerationEngine  # noqa: E402
from kokosa.configuration.app_configuration import AppConfig  # noqa: E402
from kokosa.configuration.environment import EnvironmentSettings  # noqa: E402
from kokosa.database.kv_store import MemoryKeyValueStore  # noqa: E402
from kokosa.moderation.relay_services import RelayServices  # noqa: E402

ADMIN_UID = "999"
GUEST_ID = 12345


class FakeTelegram:
    """Records Bot API calls and answers them with canned successful responses."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self._next_message_id = 1000
        self.forward_ok = True
        self.get_file_ok = True

    def _message_result(self) -> Dict[str, Any]:
        self._next_message_id += 1
        return {"ok": True, "result": {"message_id": self._next_message_id}}

    def calls_to(self, method: str) -> List[Dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == method]

    def texts_to(self, chat_id: Any) -> List[str]:
        return [c["text"] for c in self.calls_to("send_message") if str(c["chat_id"]) == str(chat_id)]

    @property
    def last_message_id(self) -> int:
        return self._next_message_id

    async def send_message(self, chat_id, text, reply_markup=None):
        self.calls.append(("send_message", {"chat_id": chat_id, "text": text, "reply_markup": reply_markup}))
        return self._message_result()

    async def forward_message(self, chat_id, from_chat_id, message_id):
        self.calls.append(
            ("forward_message", {"chat_id": chat_id, "from_chat_id": from_chat_id, "message_id": message_id})
        )
        if not self.forward_ok:
            return {"ok": False, "description": "Forbidden"}
        return self._message_result()

    async def copy_message(self, chat_id, from_chat_id, message_id):
        self.calls.append(
            ("copy_message", {"chat_id": chat_id, "from_chat_id": from_chat_id, "message_id": message_id})
        )
        return self._message_result()

    async def get_file(self, file_id):
        self.calls.append(("get_file", {"file_id": file_id}))
        if not self.get_file_ok:
            return {"ok": False, "description": "file is too big"}
        return {"ok": True, "result": {"file_id": file_id, "file_path": f"photos/{file_id}.jpg"}}

    def get_file_url(self, file_path):
        return f"https://files.test/{file_path}"

    async def answer_callback_query(self, callback_query_id):
        self.calls.append(("answer_callback_query", {"callback_query_id": callback_query_id}))
        return {"ok": True, "result": True}

    async def set_my_commands(self, commands, scope=None):
        self.calls.append(("set_my_commands", {"commands": commands, "scope": scope}))
        return {"ok": True, "result": True}

    async def set_webhook(self, url, secret_token=None, allowed_updates=None):
        self.calls.append(
            ("set_webhook", {"url": url, "secret_token": secret_token, "allowed_updates": allowed_updates})
        )
        return {"ok": True, "result": True}


class FakeModelClient:
    """Stands in for ``AsyncOpenAI``: answers from a script, or raises."""

    def __init__(self, answers: List[Any]) -> None:
        self.answers = answers
        self.requests: List[Dict[str, Any]] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    async def _create(self, **kwargs):
        self.requests.append(kwargs)
        answer = self.answers.pop(0) if len(self.answers) > 1 else self.answers[0]
        if isinstance(answer, Exception):
            raise answer
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=answer))])


class ModelStub:
    """Client factory handing out one :class:`FakeModelClient` and recording keys used."""

    def __init__(self, *answers: Any) -> None:
        self.client = FakeModelClient(list(answers) or ["SAFE"])
        self.keys_used: List[str] = []

    def __call__(self, api_key: str) -> FakeModelClient:
        self.keys_used.append(api_key)
        return self.client

    def set_answers(self, *answers: Any) -> None:
        self.client.answers = list(answers)

    @property
    def call_count(self) -> int:
        return len(self.client.requests)


async def fake_download(url: str) -> Optional[bytes]:
    return b"\x89PNG fake image bytes"


def make_message(
    text: Optional[str] = "hello there",
    chat_id: int = GUEST_ID,
    message_id: int = 1,
    username: Optional[str] = "guest_user",
    **extra: Any,
) -> Dict[str, Any]:
    """Build a Telegram message payload."""
    payload: Dict[str, Any] = {
        "message_id": message_id,
        "chat": {"id": chat_id, "type": "private"},
        "from": {"id": chat_id, "first_name": "Guest", "username": username},
        "date": 1700000000,
    }
    if text is not None:
        payload["text"] = text
    payload.update(extra)
    return payload


@pytest.fixture()
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture()
def telegram() -> FakeTelegram:
    return FakeTelegram()


@pytest.fixture()
def model() -> ModelStub:
    return ModelStub("SAFE")


@pytest.fixture()
def rotator() -> ApiKeyRotator:
    return ApiKeyRotator()


@pytest.fixture()
def engine(model: ModelStub, rotator: ApiKeyRotator) -> ModerationEngine:
    return ModerationEngine(rotator=rotator, client_factory=model, image_downloader=fake_download)


@pytest.fixture()
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(tmp_path / "app_config.yml")


@pytest.fixture()
def env() -> EnvironmentSettings:
    return EnvironmentSettings(
        bot_token="123:token",
        webhook_secret="s3cret",
        admin_uid=ADMIN_UID,
        api_keys=["key-alpha-0001"],
    )


@pytest.fixture()
def services(store, telegram, env, app_config, engine) -> RelayServices:
    return RelayServices.build(store, telegram, env, app_config, engine=engine)


@pytest.fixture()
def build_message():
    return make_message
