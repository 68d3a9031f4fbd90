# backend/chatapp/repositories/message_repository.py
"""
Message Repository for the chat system.

Durable storage of messages and their reactions. Every read returns
messages ordered by `created_at` then `id`, ascending, so ties on the
timestamp still sort by ULID (creation) order.

Bulk deletes go through `Query.delete()`, which skips ORM cascades, so
reactions and inbound reply pointers are cleaned up explicitly first.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.message import Message, MessageReaction
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class MessageRepository(BaseRepository[Message]):
    """
    Repository for message data access.

    Handles messages plus the reaction rows hanging off them.
    """

    def __init__(self, db: Session):
        """Initialize with Message model."""
        super().__init__(db, Message)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(selectinload(Message.reactions))

    def _ordered(self, query: Query) -> Query:
        return query.order_by(Message.created_at.asc(), Message.id.asc())

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_between(self, user_a: str, user_b: str) -> List[Message]:
        """All messages of the direct conversation {user_a, user_b}, either direction."""
        query = self.db.query(Message).filter(
            or_(
                and_(
                    Message.sender_user_id == user_a,
                    Message.receiver_user_id_or_room_id == user_b,
                ),
                and_(
                    Message.sender_user_id == user_b,
                    Message.receiver_user_id_or_room_id == user_a,
                ),
            )
        )
        return self._execute_query(self._ordered(self._apply_eager_loading(query)))

    def find_by_target(self, target_id: str) -> List[Message]:
        """All messages addressed to `target_id` (a user or a room)."""
        query = self.db.query(Message).filter(Message.receiver_user_id_or_room_id == target_id)
        return self._execute_query(self._ordered(self._apply_eager_loading(query)))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def mark_read(self, message_id: str) -> Optional[Message]:
        message = self.get_by_id(message_id)
        if message is None:
            return None
        message.read_status = True
        self.db.flush()
        return message

    def delete_one(self, message_id: str) -> bool:
        """Delete a single message; False when it did not exist."""
        return self._delete_ids([message_id]) > 0

    def delete_for_room(self, room_id: str) -> int:
        ids = [
            row[0]
            for row in self.db.query(Message.id)
            .filter(Message.receiver_user_id_or_room_id == room_id)
            .all()
        ]
        return self._delete_ids(ids)

    def delete_between(self, user_a: str, user_b: str) -> int:
        ids = [
            row[0]
            for row in self.db.query(Message.id)
            .filter(
                or_(
                    and_(
                        Message.sender_user_id == user_a,
                        Message.receiver_user_id_or_room_id == user_b,
                    ),
                    and_(
                        Message.sender_user_id == user_b,
                        Message.receiver_user_id_or_room_id == user_a,
                    ),
                )
            )
            .all()
        ]
        return self._delete_ids(ids)

    def _delete_ids(self, message_ids: Sequence[str]) -> int:
        """Remove messages by id and return the exact number of rows removed."""
        if not message_ids:
            return 0
        try:
            self.db.query(MessageReaction).filter(
                MessageReaction.message_id.in_(message_ids)
            ).delete(synchronize_session=False)
            self.db.query(Message).filter(Message.reply_to_id.in_(message_ids)).update(
                {Message.reply_to_id: None}, synchronize_session=False
            )
            count = (
                self.db.query(Message)
                .filter(Message.id.in_(message_ids))
                .delete(synchronize_session=False)
            )
            # Drop stale identity-map entries so later reads see the deletion
            self.db.expire_all()
            return int(count or 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting messages: {str(e)}")
            raise RepositoryException(f"Failed to delete messages: {str(e)}")

    # ------------------------------------------------------------------
    # Reactions
    # ------------------------------------------------------------------

    def get_user_reaction(self, message_id: str, user_id: str) -> Optional[MessageReaction]:
        return (
            self.db.query(MessageReaction)
            .filter(
                and_(MessageReaction.message_id == message_id, MessageReaction.user_id == user_id)
            )
            .first()
        )

    def add_reaction(self, message_id: str, user_id: str, emoji: str) -> Optional[MessageReaction]:
        """Insert the reaction; None when the user already has a row on this message."""
        reaction = MessageReaction(message_id=message_id, user_id=user_id, emoji=emoji)
        self.db.add(reaction)
        try:
            self.db.flush()
            return reaction
        except IntegrityError as e:
            self.db.rollback()
            if self.get_user_reaction(message_id, user_id) is not None:
                return None
            self.logger.error(f"Error adding reaction: {str(e)}")
            raise RepositoryException(f"Failed to add reaction: {str(e)}") from e
        except SQLAlchemyError as e:
            self.logger.error(f"Error adding reaction: {str(e)}")
            raise RepositoryException(f"Failed to add reaction: {str(e)}")

    def change_reaction(self, reaction: MessageReaction, emoji: str) -> MessageReaction:
        """Swap the emoji in place; the row keeps its position in the list."""
        reaction.emoji = emoji
        self.db.flush()
        return reaction

    def remove_reaction(self, reaction: MessageReaction) -> None:
        self.db.delete(reaction)
        self.db.flush()
