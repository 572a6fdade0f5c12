"""Secrets and deployment values read from the process environment (``.env``)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

from dotenv import load_dotenv

from kokosa.util.logger import get_logger

logger = get_logger("environment")


class MissingEnvironmentError(RuntimeError):
    """Raised when a required environment variable is unset."""


def parse_api_keys(key_string: str | None) -> List[str]:
    """Split a comma separated key string into a list of non-empty keys.

    >>> parse_api_keys("key1, key2")
    ['key1', 'key2']
    """
    if not key_string:
        return []
    return [key.strip() for key in key_string.split(",") if key.strip()]


@dataclass(slots=True)
class EnvironmentSettings:
    """Values the bot cannot run without, plus optional API credentials."""

    bot_token: str
    webhook_secret: str
    admin_uid: str
    api_keys: List[str]
    public_url: str | None = None

    @classmethod
    def from_environ(cls, dotenv_path: Path | None = None) -> "EnvironmentSettings":
        """Load ``.env`` (when present) and build settings from ``os.environ``.

        Raises
        ------
        MissingEnvironmentError
            If the bot token, webhook secret or admin id is missing.
        """
        load_dotenv(dotenv_path=dotenv_path)

        missing = [
            name
            for name in ("TELEGRAM_BOT_TOKEN", "TELEGRAM_WEBHOOK_SECRET", "ADMIN_UID")
            if not os.getenv(name)
        ]
        if missing:
            raise MissingEnvironmentError(f"Missing environment variables: {', '.join(missing)}")

        api_keys = parse_api_keys(os.getenv("GEMINI_API_KEY"))
        if not api_keys:
            logger.warning("[ENVIRONMENT] GEMINI_API_KEY not set; AI moderation is disabled.")

        return cls(
            bot_token=os.environ["TELEGRAM_BOT_TOKEN"],
            webhook_secret=os.environ["TELEGRAM_WEBHOOK_SECRET"],
            admin_uid=os.environ["ADMIN_UID"].strip(),
            api_keys=api_keys,
            public_url=os.getenv("KOKOSA_PUBLIC_URL") or None,
        )
