"""
AI moderation package for Kokosa.

Public API:
    - ModerationEngine: text and image classification with key rotation
    - ApiKeyRotator / api_key_rotator: shared round-robin key selection
"""

from kokosa.ai.key_rotation import ApiKeyRotator, api_key_rotator
from kokosa.ai.moderation_engine import ModerationEngine, normalize_keyset

__all__ = ["ApiKeyRotator", "api_key_rotator", "ModerationEngine", "normalize_keyset"]
