# backend/chatapp/services/reaction_ledger.py
"""
Reaction Ledger.

A user holds at most one reaction per message, enforced by the unique
(message_id, user_id) constraint. Toggling walks a small state machine:

    none        + emoji  -> added
    same emoji  + emoji  -> removed
    other emoji + emoji  -> changed (row updated in place, keeps its position)
"""

from dataclasses import dataclass
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import ReactionAction
from ..core.exceptions import InvalidIdentifierException, NotFoundException, ValidationException
from ..core.ulid_helper import is_valid_ulid
from ..models.message import Message
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .conversation_resolver import ConversationResolver, ConversationTarget

logger = logging.getLogger(__name__)


@dataclass
class ReactionResult:
    """Outcome of a reaction change, with the refreshed message."""

    action: ReactionAction
    message: Message
    target: ConversationTarget


class ReactionLedger(BaseService):
    """Adds, swaps and removes per-user message reactions."""

    def __init__(self, db: Session, resolver: Optional[ConversationResolver] = None):
        super().__init__(db)
        self.message_repository = RepositoryFactory.create_message_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.resolver = resolver or ConversationResolver(db)

    def _load_message(self, message_id: str) -> Message:
        if not is_valid_ulid(message_id):
            raise InvalidIdentifierException("Invalid messageId")
        message = self.message_repository.get_by_id(message_id)
        if message is None:
            raise NotFoundException("Message not found")
        return message

    def _require_user(self, user_id: str) -> None:
        if not is_valid_ulid(user_id):
            raise InvalidIdentifierException("Invalid userId")
        if self.user_repository.get_by_id(user_id) is None:
            raise NotFoundException("User not found")

    def _result(self, action: ReactionAction, message: Message) -> ReactionResult:
        self.message_repository.refresh(message)
        target = self.resolver.classify_target(message.receiver_user_id_or_room_id)
        return ReactionResult(action=action, message=message, target=target)

    def _apply_toggle(self, message_id: str, user_id: str, emoji: str) -> ReactionAction:
        existing = self.message_repository.get_user_reaction(message_id, user_id)
        if existing is None:
            if self.message_repository.add_reaction(message_id, user_id, emoji) is not None:
                return ReactionAction.ADDED
            # Lost the insert to a concurrent toggle; apply ours on top of its row
            existing = self.message_repository.get_user_reaction(message_id, user_id)
        if existing.emoji == emoji:
            self.message_repository.remove_reaction(existing)
            return ReactionAction.REMOVED
        self.message_repository.change_reaction(existing, emoji)
        return ReactionAction.CHANGED

    @BaseService.measure_operation("toggle_reaction")
    def toggle_reaction(
        self, message_id: str, user_id: Optional[str], emoji: Optional[str]
    ) -> ReactionResult:
        """
        Apply `emoji` from `user_id` to the message.

        Returns:
            ReactionResult with action added, removed or changed
        """
        if not user_id or not emoji or not str(emoji).strip():
            raise ValidationException("userId and emoji are required")
        if len(emoji) > settings.emoji_max_length:
            raise ValidationException(
                f"Emoji cannot exceed {settings.emoji_max_length} characters"
            )

        message = self._load_message(message_id)
        self._require_user(user_id)

        with self.transaction():
            action = self._apply_toggle(message.id, user_id, emoji)

        self.logger.debug(
            "Reaction toggled",
            extra={"message_id": message.id, "user_id": user_id, "action": action.value},
        )
        return self._result(action, message)

    @BaseService.measure_operation("remove_reaction")
    def remove_reaction(self, message_id: str, user_id: Optional[str]) -> ReactionResult:
        """
        Remove the user's reaction, whatever the emoji.

        Raises:
            NotFoundException: Message missing, or the user has no reaction on it
        """
        if not user_id:
            raise ValidationException("userId is required")

        message = self._load_message(message_id)

        with self.transaction():
            existing = self.message_repository.get_user_reaction(message.id, user_id)
            if existing is None:
                raise NotFoundException("Reaction not found for this user")
            self.message_repository.remove_reaction(existing)

        return self._result(ReactionAction.REMOVED, message)
