"""
State repositories built on the key-value store.

Public API:
    - BlockRegistry: block flags, block info and statistics
    - Counters: named counters
    - LanguagePrefs: per-user language preference
    - ModerationCache: verdicts keyed by content hash
    - RateLimiter: fixed-window per-guest limiting
    - RelayDirectory: relay records and admin message links
    - TrustLedger: per-guest trust scores
"""

from kokosa.repositories.block_registry import BlockRegistry
from kokosa.repositories.counters import Counters
from kokosa.repositories.language_prefs import LanguagePrefs
from kokosa.repositories.moderation_cache import ModerationCache
from kokosa.repositories.rate_limiter import RateLimiter
from kokosa.repositories.relay_directory import RelayDirectory
from kokosa.repositories.trust_ledger import TrustLedger

__all__ = [
    "BlockRegistry",
    "Counters",
    "LanguagePrefs",
    "ModerationCache",
    "RateLimiter",
    "RelayDirectory",
    "TrustLedger",
]
