"""
Message catalogues and lookup.

Catalogues are YAML files under ``locales/`` named after their language code.
``t(key, lang, **vars)`` looks the key up in the requested language, then in
English, then falls back to the key itself; ``{name}`` placeholders are
replaced with the matching keyword argument.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from kokosa.repositories.language_prefs import LanguagePrefs
from kokosa.util.logger import get_logger

logger = get_logger("translations")

LOCALES_DIR = Path(__file__).resolve().parent / "locales"
FALLBACK_LANGUAGE = "en"
UNKNOWN_LANGUAGE_FLAG = "🌐"

_USER_ID_PATTERN = re.compile(r"^\d+$")


class Translator:
    """Load every ``<code>.yml`` catalogue in ``locales_dir`` and translate keys."""

    def __init__(self, locales_dir: Path = LOCALES_DIR, default_language: str = FALLBACK_LANGUAGE) -> None:
        self.locales_dir = locales_dir
        self.default_language = default_language
        self._catalogues: Optional[Dict[str, Dict[str, str]]] = None

    @property
    def catalogues(self) -> Dict[str, Dict[str, str]]:
        if self._catalogues is None:
            self._catalogues = self._load()
        return self._catalogues

    def _load(self) -> Dict[str, Dict[str, str]]:
        catalogues: Dict[str, Dict[str, str]] = {}
        for path in sorted(self.locales_dir.glob("*.yml")):
            try:
                with path.open("r", encoding="utf-8") as fh:
                    data = yaml.safe_load(fh) or {}
            except (OSError, yaml.YAMLError) as exc:
                logger.error("[I18N] Failed to load catalogue %s: %s", path.name, exc)
                continue
            if not isinstance(data, dict):
                logger.warning("[I18N] Catalogue %s is not a mapping; skipped", path.name)
                continue
            catalogues[path.stem] = {str(k): str(v) for k, v in data.items()}
        logger.debug("[I18N] Loaded languages: %s", ", ".join(catalogues) or "none")
        return catalogues

    def available_languages(self) -> List[str]:
        return list(self.catalogues)

    def language_info(self, lang: str) -> Tuple[str, str]:
        """Return ``(name, flag)`` for a language code."""
        catalogue = self.catalogues.get(lang)
        if catalogue is None:
            return lang, UNKNOWN_LANGUAGE_FLAG
        return catalogue.get("lang_name", lang), catalogue.get("lang_flag", UNKNOWN_LANGUAGE_FLAG)

    def t(self, key: str, lang: Optional[str] = None, **variables: Any) -> str:
        catalogue = self.catalogues.get(lang or self.default_language) or self.catalogues.get(FALLBACK_LANGUAGE, {})
        message = catalogue.get(key) or self.catalogues.get(FALLBACK_LANGUAGE, {}).get(key) or key
        for name, value in variables.items():
            message = message.replace("{" + name + "}", str(value))
        return message

    def build_language_keyboard(self, user_id: int | str) -> Dict[str, Any]:
        """Inline keyboard with one ``lang:<code>:<user>`` button per language."""
        buttons = []
        for lang in self.available_languages():
            name, flag = self.language_info(lang)
            buttons.append({"text": f"{flag} {name}", "callback_data": f"lang:{lang}:{user_id}"})
        return {"inline_keyboard": [buttons]}


translator = Translator()


def t(key: str, lang: Optional[str] = None, **variables: Any) -> str:
    return translator.t(key, lang, **variables)


def build_language_keyboard(user_id: int | str) -> Dict[str, Any]:
    return translator.build_language_keyboard(user_id)


def is_valid_user_id(value: Optional[str]) -> bool:
    """True when ``value`` is a non-empty string of digits."""
    return bool(value) and bool(_USER_ID_PATTERN.match(value))


class LanguageResolver:
    """Resolve a user's language: stored preference, else the configured default."""

    def __init__(self, prefs: LanguagePrefs, default_language: str = FALLBACK_LANGUAGE) -> None:
        self._prefs = prefs
        self.default_language = default_language

    async def resolve(self, user_id: int | str) -> str:
        return await self._prefs.get(user_id) or self.default_language
