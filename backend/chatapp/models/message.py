# backend/chatapp/models/message.py
"""
Message model for the chat system.

`receiver_user_id_or_room_id` holds either a user id (direct conversation) or
a chat room id (room conversation). It has no foreign key or type flag;
the conversation resolver decides which it is by lookup.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import EncryptionMethod, MessageType
from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(Base):
    """A single chat message inside one conversation."""

    __tablename__ = "messages"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    sender_user_id = Column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    receiver_user_id_or_room_id = Column(String(26), nullable=False, index=True)
    message_content = Column(Text, nullable=False)
    message_type = Column(String(16), nullable=False, default=MessageType.TEXT.value)
    read_status = Column(Boolean, nullable=False, default=False)
    is_encrypted = Column(Boolean, nullable=False, default=False)
    encryption_method = Column(String(16), nullable=False, default=EncryptionMethod.NONE.value)
    reply_to_id = Column(String(26), ForeignKey("messages.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    # Relationships
    sender = relationship("User", foreign_keys=[sender_user_id])
    reply_to = relationship("Message", remote_side=[id], foreign_keys=[reply_to_id])
    reactions = relationship(
        "MessageReaction",
        back_populates="message",
        order_by=lambda: [MessageReaction.created_at, MessageReaction.id],
        cascade="all, delete-orphan",
    )

    def is_between(self, user_a: str, user_b: str) -> bool:
        """True when the message belongs to the direct conversation {user_a, user_b}."""
        pair = (self.sender_user_id, self.receiver_user_id_or_room_id)
        return pair == (user_a, user_b) or pair == (user_b, user_a)

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, sender={self.sender_user_id}, target={self.receiver_user_id_or_room_id})>"


class MessageReaction(Base):
    """
    Emoji reaction on a message.

    The unique (message_id, user_id) pair means a user holds at most one
    reaction per message; changing emoji updates the row in place.
    """

    __tablename__ = "message_reactions"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    message_id = Column(
        String(26), ForeignKey("messages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    emoji = Column(String(16), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    message = relationship("Message", back_populates="reactions")
    user = relationship("User", foreign_keys=[user_id])

    __table_args__ = (UniqueConstraint("message_id", "user_id", name="uq_message_reactions_user"),)
