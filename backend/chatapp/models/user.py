# backend/chatapp/models/user.py
"""
User model and the two social-edge tables.

A follow edge is a single `user_follows` row: it is the follower's
`following` entry and the followed user's `followers` entry at once, so the
two lists can never disagree. Pending requests live in `follow_requests`
until the target accepts (row moves to `user_follows`) or rejects.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
import ulid

from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    Chat user.

    Attributes:
        id: ULID primary key
        username: Unique handle
        email: Unique email address used for login
        password_hash: Bcrypt hash, never serialized
        online_status: Presence flag toggled by login/logout/status updates
        e2e_public_key: Client-published key for end-to-end encrypted DMs
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    online_status = Column(Boolean, nullable=False, default=False)
    bio = Column(Text, nullable=False, default="")
    avatar_url = Column(Text, nullable=False, default="")
    phone_number = Column(String(32), nullable=False, default="")
    e2e_public_key = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"


class UserFollow(Base):
    """Directed follow edge: follower_id follows followed_id."""

    __tablename__ = "user_follows"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    follower_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    followed_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (
        UniqueConstraint("follower_id", "followed_id", name="uq_user_follows_pair"),
        CheckConstraint("follower_id <> followed_id", name="ck_user_follows_not_self"),
    )

    def __repr__(self) -> str:
        return f"<UserFollow(follower={self.follower_id}, followed={self.followed_id})>"


class FollowRequest(Base):
    """Pending follow request from requester_id to target_id."""

    __tablename__ = "follow_requests"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    requester_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (
        UniqueConstraint("requester_id", "target_id", name="uq_follow_requests_pair"),
        CheckConstraint("requester_id <> target_id", name="ck_follow_requests_not_self"),
    )
