# backend/chatapp/repositories/room_repository.py
"""
Chat Room Repository.

Room rows plus membership rows. Members are always returned in join order,
with the creator first because it is inserted together with the room.
"""

import logging
from typing import List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.chat_room import ChatRoom, RoomMember
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class RoomRepository(BaseRepository[ChatRoom]):
    """Repository for chat rooms and their membership."""

    def __init__(self, db: Session):
        super().__init__(db, ChatRoom)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(selectinload(ChatRoom.members).selectinload(RoomMember.user))

    def create_room(self, room_name: str, created_by: str) -> ChatRoom:
        """Insert the room and its creator's membership row."""
        room = self.create(room_name=room_name, created_by=created_by)
        self.db.add(RoomMember(room_id=room.id, user_id=created_by))
        self.db.flush()
        self.db.refresh(room)
        return room

    def list_rooms(self, member_id: Optional[str] = None) -> List[ChatRoom]:
        query = self._apply_eager_loading(self.db.query(ChatRoom))
        if member_id:
            query = query.join(RoomMember, RoomMember.room_id == ChatRoom.id).filter(
                RoomMember.user_id == member_id
            )
        return self._execute_query(query.order_by(ChatRoom.created_at, ChatRoom.id))

    def is_member(self, room_id: str, user_id: str) -> bool:
        return (
            self.db.query(RoomMember.id)
            .filter(and_(RoomMember.room_id == room_id, RoomMember.user_id == user_id))
            .first()
            is not None
        )

    def add_member(self, room_id: str, user_id: str) -> bool:
        """Insert the membership row; False when the user is already a member."""
        if self.is_member(room_id, user_id):
            return False
        self.db.add(RoomMember(room_id=room_id, user_id=user_id))
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            # Another request inserted the same membership first
            if self.is_member(room_id, user_id):
                return False
            raise RepositoryException(f"Failed to add room member: {e.orig}") from e
        return True

    def remove_member(self, room_id: str, user_id: str) -> bool:
        count = (
            self.db.query(RoomMember)
            .filter(and_(RoomMember.room_id == room_id, RoomMember.user_id == user_id))
            .delete(synchronize_session=False)
        )
        return bool(count)

    def delete_room(self, room_id: str) -> bool:
        self.db.query(RoomMember).filter(RoomMember.room_id == room_id).delete(
            synchronize_session=False
        )
        count = self.db.query(ChatRoom).filter(ChatRoom.id == room_id).delete(
            synchronize_session=False
        )
        return bool(count)
