"""Update routing for Kokosa."""

from kokosa.listener.update_listener import ALLOWED_UPDATES, UpdateListener

__all__ = ["ALLOWED_UPDATES", "UpdateListener"]
