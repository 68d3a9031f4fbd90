# backend/chatapp/services/room_service.py
"""
Room Service.

Creates rooms and manages their membership. The creator becomes a member
on create and can never be removed. When an optional actor is supplied,
only the creator may add or remove members.
"""

from dataclasses import dataclass, field
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    ForbiddenException,
    InvalidIdentifierException,
    NotFoundException,
    ValidationException,
)
from ..core.ulid_helper import is_valid_ulid, require_ulid
from ..models.chat_room import ChatRoom
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass
class MembershipResult:
    """Room after a membership call; `changed` is False for no-op adds."""

    room: ChatRoom
    changed: bool


@dataclass
class RoomDeletionResult:
    room_id: str
    member_ids: List[str] = field(default_factory=list)


class RoomService(BaseService):
    """Service for chat rooms and membership."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_room_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    def _get_room_or_404(self, room_id: str) -> ChatRoom:
        room = self.repository.get_by_id(room_id)
        if room is None:
            raise NotFoundException("Room not found")
        return room

    def _reload(self, room: ChatRoom) -> ChatRoom:
        self.repository.refresh(room)
        return room

    @BaseService.measure_operation("create_room")
    def create_room(self, room_name: Optional[str], created_by: Optional[str]) -> ChatRoom:
        """
        Create a room owned by `created_by`, who becomes its first member.
        """
        name = (room_name or "").strip()
        if not name or not created_by:
            raise ValidationException("Room name and creator required")
        if len(name) > settings.room_name_max_length:
            raise ValidationException(
                f"Room name cannot exceed {settings.room_name_max_length} characters"
            )
        require_ulid(created_by, "Invalid createdBy")
        if self.user_repository.get_by_id(created_by) is None:
            raise NotFoundException("Creator user not found")

        with self.transaction():
            room = self.repository.create_room(room_name=name, created_by=created_by)

        self.logger.info("Room created", extra={"room_id": room.id, "created_by": created_by})
        return self._reload(room)

    @BaseService.measure_operation("list_rooms")
    def list_rooms(self, member_id: Optional[str] = None) -> List[ChatRoom]:
        if member_id:
            require_ulid(member_id, "Invalid memberId")
        return self.repository.list_rooms(member_id=member_id)

    @BaseService.measure_operation("get_room")
    def get_room(self, room_id: str) -> ChatRoom:
        require_ulid(room_id, "Invalid roomId")
        return self._get_room_or_404(room_id)

    @BaseService.measure_operation("add_member")
    def add_member(
        self, room_id: str, user_id: Optional[str], actor_id: Optional[str] = None
    ) -> MembershipResult:
        """
        Add `user_id` to the room.

        Adding an existing member is a no-op returning `changed=False`.
        """
        if not user_id:
            raise ValidationException("userId is required")
        require_ulid(room_id, "Invalid roomId")
        require_ulid(user_id, "Invalid userId")
        if actor_id and not is_valid_ulid(actor_id):
            raise InvalidIdentifierException("Invalid actorId")

        room = self._get_room_or_404(room_id)
        if self.user_repository.get_by_id(user_id) is None:
            raise NotFoundException("User not found")
        if actor_id and not room.is_creator(actor_id):
            raise ForbiddenException("Only room creator can add members")

        if room.is_member(user_id):
            return MembershipResult(room=room, changed=False)

        with self.transaction():
            added = self.repository.add_member(room.id, user_id)
        if not added:
            return MembershipResult(room=self._reload(room), changed=False)

        self.logger.info("Room member added", extra={"room_id": room.id, "user_id": user_id})
        return MembershipResult(room=self._reload(room), changed=True)

    @BaseService.measure_operation("remove_member")
    def remove_member(
        self, room_id: str, member_id: str, actor_id: Optional[str] = None
    ) -> MembershipResult:
        """
        Remove `member_id` from the room.

        Raises:
            ForbiddenException: Actor is not the creator, or the target is the creator
            NotFoundException: Room missing, or the user is not a member
        """
        require_ulid(room_id, "Invalid roomId")
        require_ulid(member_id, "Invalid memberId")
        if actor_id and not is_valid_ulid(actor_id):
            raise InvalidIdentifierException("Invalid actorId")

        room = self._get_room_or_404(room_id)
        if actor_id and not room.is_creator(actor_id):
            raise ForbiddenException("Only room creator can remove members")
        if room.is_creator(member_id):
            raise ForbiddenException("Room creator cannot be removed")
        if not room.is_member(member_id):
            raise NotFoundException("Member not found in room")

        with self.transaction():
            self.repository.remove_member(room.id, member_id)

        self.logger.info("Room member removed", extra={"room_id": room.id, "user_id": member_id})
        return MembershipResult(room=self._reload(room), changed=True)

    @BaseService.measure_operation("delete_room")
    def delete_room(self, room_id: str) -> RoomDeletionResult:
        """Delete the room and its membership; messages addressed to it stay."""
        require_ulid(room_id, "Invalid roomId")
        room = self._get_room_or_404(room_id)
        member_ids = list(room.member_ids)

        with self.transaction():
            self.repository.delete_room(room.id)

        self.logger.info("Room deleted", extra={"room_id": room_id})
        return RoomDeletionResult(room_id=room_id, member_ids=member_ids)
