# backend/chatapp/repositories/__init__.py
"""
Repository layer for the chat backend.

Repositories own every query; services call them and never build
SQLAlchemy statements themselves.

Usage:
    from chatapp.repositories import RepositoryFactory

    repository = RepositoryFactory.create_message_repository(db)
    history = repository.find_between(user_a, user_b)
"""

from .base_repository import BaseRepository
from .factory import RepositoryFactory
from .message_repository import MessageRepository
from .room_repository import RoomRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "RepositoryFactory",
    "UserRepository",
    "RoomRepository",
    "MessageRepository",
]
