"""
Shared wiring for the guest, admin and callback handlers.

:class:`RelayServices` bundles the transport, the moderation engine and every
repository over one key-value store so handlers receive a single object.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from kokosa.ai.moderation_engine import ModerationEngine
from kokosa.configuration.app_configuration import AppConfig
from kokosa.configuration.environment import EnvironmentSettings
from kokosa.database.kv_store import KeyValueStore
from kokosa.i18n.translations import LanguageResolver
from kokosa.repositories.block_registry import BlockRegistry
from kokosa.repositories.counters import Counters
from kokosa.repositories.language_prefs import LanguagePrefs
from kokosa.repositories.moderation_cache import ModerationCache
from kokosa.repositories.rate_limiter import RateLimiter
from kokosa.repositories.relay_directory import RelayDirectory
from kokosa.repositories.trust_ledger import TrustLedger
from kokosa.util.clock import Clock, now_ms
from kokosa.util.logger import get_logger

logger = get_logger("relay_services")


@dataclass(slots=True)
class RelayServices:
    """Everything a handler needs to act on an update.

    Attributes:
        telegram: Bot API client (``TelegramClient`` or a compatible fake).
        admin_uid: Chat id of the single admin, as a string.
        api_keys: Moderation API keys; empty disables moderation.
        engine: Moderation engine.
        moderation_enabled: Master switch for guest moderation.
        auto_block: Block guests whose content is classified UNSAFE.
        api_key_display_length: Characters of each key shown in ``/stats``.
    """

    telegram: Any
    admin_uid: str
    api_keys: List[str]
    engine: ModerationEngine
    relays: RelayDirectory
    blocks: BlockRegistry
    trust: TrustLedger
    rate_limiter: RateLimiter
    cache: ModerationCache
    counters: Counters
    prefs: LanguagePrefs
    language: LanguageResolver
    moderation_enabled: bool = True
    auto_block: bool = True
    api_key_display_length: int = 6

    @property
    def moderation_active(self) -> bool:
        return self.moderation_enabled and bool(self.api_keys)

    def is_admin_chat(self, chat_id: int | str) -> bool:
        return str(chat_id) == self.admin_uid

    async def send_admin(self, text: str, reply_markup: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        result = await self.telegram.send_message(self.admin_uid, text, reply_markup=reply_markup)
        if not result.get("ok"):
            logger.warning("[ADMIN] sendMessage to admin failed: %s", result)
        return result

    @classmethod
    def build(
        cls,
        store: KeyValueStore,
        telegram: Any,
        env: EnvironmentSettings,
        config: AppConfig,
        engine: Optional[ModerationEngine] = None,
        clock: Clock = now_ms,
    ) -> "RelayServices":
        """Create every repository over ``store`` using the tunables in ``config``."""
        moderation = config.moderation
        counters = Counters(store)
        trust = TrustLedger(store, threshold=config.trust_threshold)
        prefs = LanguagePrefs(store)
        return cls(
            telegram=telegram,
            admin_uid=str(env.admin_uid),
            api_keys=list(env.api_keys),
            engine=engine or ModerationEngine(moderation),
            relays=RelayDirectory(store, counters, clock=clock),
            blocks=BlockRegistry(store, counters, trust, clock=clock),
            trust=trust,
            rate_limiter=RateLimiter(
                store,
                max_requests=config.rate_limit_max_requests,
                window_ms=config.rate_limit_window_ms,
                ttl_seconds=config.rate_limit_ttl_seconds,
                clock=clock,
            ),
            cache=ModerationCache(
                store,
                min_length=config.moderation_cache_min_length,
                ttl_seconds=config.moderation_cache_ttl_seconds,
            ),
            counters=counters,
            prefs=prefs,
            language=LanguageResolver(prefs, default_language=config.language),
            moderation_enabled=moderation.enabled,
            auto_block=moderation.auto_block,
            api_key_display_length=config.api_key_display_length,
        )
