# backend/chatapp/core/enums.py
"""
Core enums for the chat backend.

Stored values match the wire values clients send and receive.
"""

from enum import Enum


class MessageType(str, Enum):
    """Kinds of message payloads."""

    TEXT = "text"
    IMAGE = "image"
    FILE = "file"


class EncryptionMethod(str, Enum):
    """
    Encryption applied by the client before the content reached us.

    The server never decrypts; this is metadata for the receiving client.
    """

    AES = "AES"
    RSA = "RSA"
    E2EE_AES_GCM = "E2EE-AES-GCM"
    NONE = "none"


class ConversationType(str, Enum):
    """Resolved kind of a conversation target."""

    ROOM = "room"
    DM = "dm"


class ReactionAction(str, Enum):
    """Outcome of a reaction toggle."""

    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


class FollowStatus(str, Enum):
    FOLLOWING = "following"
    PENDING = "pending"
    NOT_FOLLOWING = "not_following"
