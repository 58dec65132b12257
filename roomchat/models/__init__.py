from .rooms import Room
from .room_members import RoomMember
from .messages import Message
from .message_reactions import MessageReaction

__all__ = [
    "Room",
    "RoomMember",
    "Message",
    "MessageReaction",
]
