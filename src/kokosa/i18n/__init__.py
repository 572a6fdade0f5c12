"""Localised user-facing messages (``en`` and ``zh`` catalogues)."""

from kokosa.i18n.translations import (
    LanguageResolver,
    Translator,
    build_language_keyboard,
    is_valid_user_id,
    t,
    translator,
)

__all__ = [
    "LanguageResolver",
    "Translator",
    "build_language_keyboard",
    "is_valid_user_id",
    "t",
    "translator",
]
