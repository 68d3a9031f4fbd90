# backend/chatapp/schemas/chat_room.py
"""Request and response schemas for chat rooms."""

from datetime import datetime
from typing import List, Optional

from .base import StandardizedModel
from .user import UserSummary


class RoomCreateRequest(StandardizedModel):
    room_name: Optional[str] = None
    created_by: Optional[str] = None


class AddMemberRequest(StandardizedModel):
    user_id: Optional[str] = None
    actor_id: Optional[str] = None


class ChatRoomResponse(StandardizedModel):
    """Room with its creator and members in join order."""

    id: str
    room_name: str
    created_by: str
    creator: Optional[UserSummary] = None
    members: List[UserSummary]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_room(cls, room) -> "ChatRoomResponse":
        return cls(
            id=room.id,
            room_name=room.room_name,
            created_by=room.created_by,
            creator=UserSummary.model_validate(room.creator) if room.creator else None,
            members=[UserSummary.model_validate(member.user) for member in room.members],
            created_at=room.created_at,
            updated_at=room.updated_at,
        )


def room_to_wire(room) -> dict:
    return ChatRoomResponse.from_room(room).to_wire()
