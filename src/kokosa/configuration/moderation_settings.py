from typing import Any, Dict

DEFAULT_MODEL_NAME = "gemini-flash-lite-latest"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"

# One-word classifier prompt; only the presence of "UNSAFE" in the answer matters.
DEFAULT_MODERATION_PROMPT = """
# Role
Content Moderator API. Output one word only.

# Rules
UNSAFE if:
- Real human nudity/sex
- QR codes/spam/ads/gambling promotion
- Real gore/shock content
- Illegal content promotion
- Scam/phishing attempts

SAFE if:
- 2D/Anime/Cartoon (even suggestive)
- Normal photos/text/screenshots
- Regular conversation

# Output
One word: "SAFE" or "UNSAFE"

Analyze the content:"""


class ModerationSettings:
    """Helper exposing typed accessors for the ``moderation`` config section.

    Like the other settings wrappers it offers ``get`` and ``as_dict`` plus
    properties with defaults, so a missing or partial section still yields a
    usable configuration.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` or `default` if missing."""
        return self.data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        """Return the underlying mapping."""
        return self.data

    @property
    def enabled(self) -> bool:
        return bool(self.data.get("enabled", True))

    @property
    def auto_block(self) -> bool:
        return bool(self.data.get("auto_block", True))

    @property
    def model_name(self) -> str:
        val = self.data.get("model_name")
        return str(val) if val else DEFAULT_MODEL_NAME

    @property
    def base_url(self) -> str:
        val = self.data.get("base_url")
        return str(val) if val else DEFAULT_BASE_URL

    @property
    def request_timeout_seconds(self) -> float:
        return float(self.data.get("request_timeout_seconds", 20.0))

    @property
    def prompt(self) -> str:
        val = self.data.get("prompt")
        return str(val) if val else DEFAULT_MODERATION_PROMPT
