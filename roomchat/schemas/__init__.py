"""
Pydantic 스키마 모듈
"""

from .user import SessionUser
from .room import RoomResponse
from .membership import MembershipResponse, JoinResult
from .message import TextPayload, ImagePayload, MessagePayload, MessageResponse, build_message_row
from .upload import UploadedImage

__all__ = [
    "SessionUser",
    "RoomResponse",
    "MembershipResponse",
    "JoinResult",
    "TextPayload",
    "ImagePayload",
    "MessagePayload",
    "MessageResponse",
    "build_message_row",
    "UploadedImage",
]
