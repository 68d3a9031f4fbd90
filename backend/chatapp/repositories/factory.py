# backend/chatapp/repositories/factory.py
"""
Repository Factory for the chat backend.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from .message_repository import MessageRepository
    from .room_repository import RoomRepository
    from .user_repository import UserRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_base_repository(db: Session, model) -> BaseRepository:
        """Create a generic base repository for any model."""
        return BaseRepository(db, model)

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        """Create repository for users and the follow graph."""
        from .user_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_room_repository(db: Session) -> "RoomRepository":
        """Create repository for chat rooms and membership."""
        from .room_repository import RoomRepository

        return RoomRepository(db)

    @staticmethod
    def create_message_repository(db: Session) -> "MessageRepository":
        """Create repository for messages and reactions."""
        from .message_repository import MessageRepository

        return MessageRepository(db)
