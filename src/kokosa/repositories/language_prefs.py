"""Per-user interface language preference, stored under ``lang:<user>``."""

from __future__ import annotations

from typing import Optional

from kokosa.database.kv_store import KeyValueStore

LANG_PREFIX = "lang:"


class LanguagePrefs:

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def get(self, user_id: int | str) -> Optional[str]:
        return await self._store.get(LANG_PREFIX + str(user_id))

    async def set(self, user_id: int | str, lang: str) -> None:
        await self._store.put(LANG_PREFIX + str(user_id), lang)
