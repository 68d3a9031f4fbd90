"""
Database models for the chat backend.

- Users and their social edges (follows, pending follow requests)
- Chat rooms and their membership rows
- Messages and their reactions
"""

from .chat_room import ChatRoom, RoomMember
from .message import Message, MessageReaction
from .user import FollowRequest, User, UserFollow

__all__ = [
    # User models
    "User",
    "UserFollow",
    "FollowRequest",
    # Room models
    "ChatRoom",
    "RoomMember",
    # Message models
    "Message",
    "MessageReaction",
]
