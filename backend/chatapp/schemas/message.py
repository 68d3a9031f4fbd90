# backend/chatapp/schemas/message.py
"""Request and response schemas for messages and reactions."""

from datetime import datetime
from typing import List, Optional

from .base import StandardizedModel
from .user import UserSummary


class SendMessageRequest(StandardizedModel):
    sender_user_id: Optional[str] = None
    receiver_user_id_or_room_id: Optional[str] = None
    message_content: Optional[str] = None
    message_type: Optional[str] = None
    is_encrypted: Optional[bool] = None
    encryption_method: Optional[str] = None
    reply_to_message_id: Optional[str] = None
    # Older clients send `replyTo`
    reply_to: Optional[str] = None

    @property
    def requested_reply_id(self) -> Optional[str]:
        return self.reply_to_message_id or self.reply_to


class ConversationActionRequest(StandardizedModel):
    """Body for clear/delete; the same fields may come in the query string."""

    actor_user_id: Optional[str] = None
    receiver_user_id_or_room_id: Optional[str] = None


class ReactionRequest(StandardizedModel):
    user_id: Optional[str] = None
    emoji: Optional[str] = None


class RemoveReactionRequest(StandardizedModel):
    user_id: Optional[str] = None


class ReactionResponse(StandardizedModel):
    user: str
    emoji: str
    created_at: Optional[datetime] = None


class ReplyPreview(StandardizedModel):
    id: str
    message_content: str
    sender_user_id: str
    sender: Optional[UserSummary] = None
    receiver_user_id_or_room_id: str
    created_at: Optional[datetime] = None


class MessageResponse(StandardizedModel):
    id: str
    sender_user_id: str
    sender: Optional[UserSummary] = None
    receiver_user_id_or_room_id: str
    message_content: str
    message_type: str
    read_status: bool
    is_encrypted: bool
    encryption_method: str
    reply_to_id: Optional[str] = None
    reply_to: Optional[ReplyPreview] = None
    reactions: List[ReactionResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_message(cls, message) -> "MessageResponse":
        reply = message.reply_to if message.reply_to_id else None
        return cls(
            id=message.id,
            sender_user_id=message.sender_user_id,
            sender=UserSummary.model_validate(message.sender) if message.sender else None,
            receiver_user_id_or_room_id=message.receiver_user_id_or_room_id,
            message_content=message.message_content,
            message_type=message.message_type,
            read_status=message.read_status,
            is_encrypted=message.is_encrypted,
            encryption_method=message.encryption_method,
            reply_to_id=message.reply_to_id,
            reply_to=ReplyPreview(
                id=reply.id,
                message_content=reply.message_content,
                sender_user_id=reply.sender_user_id,
                sender=UserSummary.model_validate(reply.sender) if reply.sender else None,
                receiver_user_id_or_room_id=reply.receiver_user_id_or_room_id,
                created_at=reply.created_at,
            )
            if reply is not None
            else None,
            reactions=[
                ReactionResponse(user=r.user_id, emoji=r.emoji, created_at=r.created_at)
                for r in message.reactions
            ],
            created_at=message.created_at,
            updated_at=message.updated_at,
        )


def message_to_wire(message) -> dict:
    return MessageResponse.from_message(message).to_wire()


def reactions_to_wire(message) -> List[dict]:
    """Compact `{user, emoji}` list carried by reaction events."""
    return [{"user": r.user_id, "emoji": r.emoji} for r in message.reactions]
