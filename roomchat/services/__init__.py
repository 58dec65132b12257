"""
Services layer for room access and message synchronization.

This layer handles:
- Session identity and profile updates (auth provider pass-through)
- Room catalog and password-gated joining
- Message log synchronization and image uploads
- Owner-only room settings and deletion
"""

from . import auth_service
from . import blob_service
from . import room_directory
from . import access_controller
from . import message_sync
from . import room_lifecycle
from . import chat_client

__all__ = [
    "auth_service",
    "blob_service",
    "room_directory",
    "access_controller",
    "message_sync",
    "room_lifecycle",
    "chat_client",
]
