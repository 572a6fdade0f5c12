"""HTTP surface: the Telegram webhook and its management endpoints."""

from kokosa.web.webhook_app import create_webhook_app

__all__ = ["create_webhook_app"]
