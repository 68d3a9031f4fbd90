# backend/chatapp/models/chat_room.py
"""
Chat room model.

The creator is inserted into `room_members` when the room is created and the
service layer refuses to remove that row, so `created_by` is always a member.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatRoom(Base):
    """Named group conversation owned by `created_by`."""

    __tablename__ = "chat_rooms"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    room_name = Column(String(100), nullable=False)
    created_by = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    # Relationships
    creator = relationship("User", foreign_keys=[created_by])
    members = relationship(
        "RoomMember",
        back_populates="room",
        order_by=lambda: [RoomMember.joined_at, RoomMember.id],
        cascade="all, delete-orphan",
    )

    @property
    def member_ids(self) -> list[str]:
        return [member.user_id for member in self.members]

    def is_member(self, user_id: str) -> bool:
        return any(member.user_id == user_id for member in self.members)

    def is_creator(self, user_id: str) -> bool:
        return self.created_by == user_id

    def __repr__(self) -> str:
        return f"<ChatRoom(id={self.id}, name={self.room_name})>"


class RoomMember(Base):
    """Membership row; unique per (room, user)."""

    __tablename__ = "room_members"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    room_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    room = relationship("ChatRoom", back_populates="members")
    user = relationship("User", foreign_keys=[user_id])

    __table_args__ = (UniqueConstraint("room_id", "user_id", name="uq_room_members_pair"),)
