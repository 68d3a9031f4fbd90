# backend/chatapp/services/identity_directory.py
"""
Identity Directory.

Read-only lookups the routing rules depend on: does this user exist, is
this id a room, is the user a member, does A follow B. No writes happen
here; social-edge writes live in UserService and membership writes in
RoomService.
"""

from typing import Optional

from sqlalchemy.orm import Session

from ..models.chat_room import ChatRoom
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService


class IdentityDirectory(BaseService):
    """Lookup facade over users, rooms and follow edges."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.room_repository = RepositoryFactory.create_room_repository(db)

    def get_user(self, user_id: str) -> Optional[User]:
        return self.user_repository.get_by_id(user_id)

    def get_room(self, room_id: str) -> Optional[ChatRoom]:
        return self.room_repository.get_by_id(room_id)

    def room_exists(self, room_id: str) -> bool:
        return self.room_repository.exists(id=room_id)

    def is_room_member(self, room_id: str, user_id: str) -> bool:
        return self.room_repository.is_member(room_id, user_id)

    def is_following(self, follower_id: str, followed_id: str) -> bool:
        """True when `follower_id` holds a follow edge to `followed_id`."""
        return self.user_repository.is_following(follower_id, followed_id)
