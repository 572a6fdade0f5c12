from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from kokosa.configuration.moderation_settings import ModerationSettings
from kokosa.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()
IN_MEMORY_DATABASE = ":memory:"


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name, {})
    return value if isinstance(value, dict) else {}


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml``, exposes dictionary-like
    access helpers, and typed properties with defaults for every tunable of the
    relay: rate limiting, trust threshold, moderation cache, webhook and database.
    Uses fcntl file locks for safe concurrent access across processes.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                # Acquire a shared lock for reading
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)

                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                if data is None:
                    return {}
                if not isinstance(data, dict):
                    logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
                    return {}
                return data
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping (do not mutate)."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def language(self) -> str:
        """Default language code for users without a stored preference."""
        return str(self._data.get("language") or "en")

    @property
    def moderation(self) -> ModerationSettings:
        """Return the moderation section wrapped in a ModerationSettings helper."""
        return ModerationSettings(_section(self._data, "moderation"))

    @property
    def rate_limit_max_requests(self) -> int:
        return int(_section(self._data, "rate_limit").get("max_requests", 10))

    @property
    def rate_limit_window_ms(self) -> int:
        return int(_section(self._data, "rate_limit").get("window_ms", 60000))

    @property
    def rate_limit_ttl_seconds(self) -> int:
        """TTL of stored windows; kept above the window length as a backstop."""
        return int(_section(self._data, "rate_limit").get("ttl_seconds", 120))

    @property
    def trust_threshold(self) -> int:
        return int(_section(self._data, "trust").get("threshold", 3))

    @property
    def moderation_cache_min_length(self) -> int:
        return int(_section(self._data, "moderation_cache").get("min_length", 5))

    @property
    def moderation_cache_ttl_seconds(self) -> int:
        return int(_section(self._data, "moderation_cache").get("ttl_seconds", 86400))

    @property
    def api_key_display_length(self) -> int:
        return int(_section(self._data, "stats").get("api_key_display_length", 6))

    @property
    def webhook_path(self) -> str:
        path = str(_section(self._data, "webhook").get("path") or "/endpoint")
        return path if path.startswith("/") else "/" + path

    @property
    def webhook_host(self) -> str:
        return str(_section(self._data, "webhook").get("host") or "0.0.0.0")

    @property
    def webhook_port(self) -> int:
        return int(_section(self._data, "webhook").get("port", 8080))

    @property
    def database_path(self) -> Path | str:
        """SQLite file path, or the string ``":memory:"`` for an in-process store."""
        raw = str(_section(self._data, "database").get("path") or "./data/kokosa.db")
        if raw == IN_MEMORY_DATABASE:
            return raw
        return Path(raw).resolve()


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
