# backend/chatapp/schemas/user.py
"""Request and response schemas for users and the follow graph."""

from datetime import datetime
from typing import List, Optional

from .base import StandardizedModel


class SignUpRequest(StandardizedModel):
    username: Optional[str] = None
    # Older clients send `name` instead of `username`
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(StandardizedModel):
    email: Optional[str] = None
    password: Optional[str] = None


class StatusUpdateRequest(StandardizedModel):
    online_status: Optional[bool] = None


class ProfileUpdateRequest(StandardizedModel):
    """Only fields present in the request body are applied."""

    username: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    phone_number: Optional[str] = None
    e2e_public_key: Optional[str] = None


class UserSummary(StandardizedModel):
    """Compact user shape embedded in rooms, messages and follow lists."""

    id: str
    username: str
    email: str
    online_status: bool = False


class UserResponse(StandardizedModel):
    """Public user profile; the password hash is never part of it."""

    id: str
    username: str
    email: str
    online_status: bool
    bio: str = ""
    avatar_url: str = ""
    phone_number: str = ""
    e2e_public_key: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileStats(StandardizedModel):
    followers_count: int
    following_count: int
    follow_requests_count: int


class FollowInfoStats(StandardizedModel):
    received_count: int
    sent_count: int
    followers_count: int
    following_count: int


class FollowStatusResponse(StandardizedModel):
    is_following: bool
    has_pending_request: bool
    status: str


def summaries(users: list) -> List[dict]:
    """Serialize users into wire-shaped summaries."""
    return [UserSummary.model_validate(user).to_wire() for user in users]
