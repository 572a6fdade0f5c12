"""Telegram Bot API transport."""

from kokosa.telegram.client import TelegramClient

__all__ = ["TelegramClient"]
