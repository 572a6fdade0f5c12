"""
Relay decision logic.

Public API:
    - GuestPipeline: guest message routing, moderation and forwarding
    - AdminCommandHandler: admin commands and replies to guests
    - CallbackActionHandler: inline keyboard actions
    - ContentModerator: per-message text/photo/sticker moderation
    - RelayServices: dependency bundle shared by the handlers
"""

from kokosa.moderation.admin_commands import AdminCommandHandler
from kokosa.moderation.callback_actions import CallbackActionHandler
from kokosa.moderation.content_moderation import ContentModerator
from kokosa.moderation.guest_pipeline import GuestPipeline
from kokosa.moderation.relay_services import RelayServices

__all__ = [
    "AdminCommandHandler",
    "CallbackActionHandler",
    "ContentModerator",
    "GuestPipeline",
    "RelayServices",
]
