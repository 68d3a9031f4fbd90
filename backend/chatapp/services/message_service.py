# backend/chatapp/services/message_service.py
"""
Message Service for chat functionality.

Handles business logic for the messaging system including:
- Message validation and creation
- Permission checks through the conversation resolver
- Single-message delete and whole-conversation clear
- Read marking

Services never emit realtime events. They return result objects carrying
the resolved target so routes can publish after the commit.
"""

from dataclasses import dataclass
import logging
from typing import Any, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import EncryptionMethod, MessageType
from ..core.exceptions import (
    ForbiddenException,
    InvalidIdentifierException,
    NotFoundException,
    ValidationException,
)
from ..core.ulid_helper import is_valid_ulid
from ..models.message import Message
from ..repositories.factory import RepositoryFactory
from ..repositories.message_repository import MessageRepository
from .base import BaseService
from .conversation_resolver import ConversationContext, ConversationResolver, ConversationTarget

logger = logging.getLogger(__name__)

ALLOWED_ENCRYPTION_METHODS = {method.value for method in EncryptionMethod}
ALLOWED_MESSAGE_TYPES = {message_type.value for message_type in MessageType}


@dataclass
class MessageActionResult:
    """Result of a message write, with the resolved target for fan-out."""

    message: Message
    target: ConversationTarget


@dataclass
class MessageDeletionResult:
    """Snapshot of a deleted message; `message` is detached from the session."""

    message: Message
    target: ConversationTarget
    actor_id: str


@dataclass
class ConversationClearResult:
    context: ConversationContext
    deleted_count: int


def normalize_encryption(is_encrypted: Any, method: Any) -> Tuple[bool, str]:
    """
    Unencrypted messages always carry "none"; encrypted messages with an
    unknown or missing method fall back to "AES".
    """
    encrypted = bool(is_encrypted)
    if not encrypted:
        return False, EncryptionMethod.NONE.value
    requested = str(method or "").strip()
    if requested in ALLOWED_ENCRYPTION_METHODS:
        return True, requested
    return True, EncryptionMethod.AES.value


class MessageService(BaseService):
    """
    Service for managing chat messages in rooms and direct conversations.
    """

    def __init__(self, db: Session, resolver: Optional[ConversationResolver] = None):
        """Initialize message service."""
        super().__init__(db)
        self.repository: MessageRepository = RepositoryFactory.create_message_repository(db)
        self.resolver = resolver or ConversationResolver(db)

    def _validate_content(self, content: Any, message_type: Any) -> str:
        if not isinstance(content, str) or not content.strip():
            raise ValidationException("Message content cannot be empty")
        if len(content) > settings.message_max_length:
            raise ValidationException(
                f"Message content cannot exceed {settings.message_max_length} characters"
            )
        resolved_type = message_type or MessageType.TEXT.value
        if resolved_type not in ALLOWED_MESSAGE_TYPES:
            raise ValidationException("Invalid message type. Must be: text, image, or file")
        return resolved_type

    @BaseService.measure_operation("send_message")
    def send_message(
        self,
        sender_id: Optional[str],
        target_id: Optional[str],
        content: Optional[str],
        message_type: Optional[str] = None,
        is_encrypted: Optional[bool] = None,
        encryption_method: Optional[str] = None,
        reply_to_id: Optional[str] = None,
    ) -> MessageActionResult:
        """
        Validate, authorize and store a new message.

        Every check runs before the insert, so a failed send leaves no row.

        Raises:
            ValidationException: Missing field, blank or oversize content, bad type
            InvalidIdentifierException: Malformed sender, target or reply id
            NotFoundException: Sender, recipient or reply message missing
            ForbiddenException: Not a room member, or not following the peer
            InvalidReplyException: Reply belongs to another conversation
        """
        if not sender_id or not target_id or not content:
            raise ValidationException("All fields required")

        resolved_type = self._validate_content(content, message_type)
        target = self.resolver.resolve_send_permission(sender_id, target_id)
        reply_id = self.resolver.resolve_reply_target(reply_to_id, target, sender_id)
        encrypted, method = normalize_encryption(is_encrypted, encryption_method)

        with self.transaction():
            message = self.repository.create(
                sender_user_id=sender_id,
                receiver_user_id_or_room_id=target.target_id,
                message_content=content,
                message_type=resolved_type,
                read_status=False,
                is_encrypted=encrypted,
                encryption_method=method,
                reply_to_id=reply_id,
            )

        self.logger.info(
            "Message stored",
            extra={
                "message_id": message.id,
                "conversation_type": target.conversation_type.value,
                "has_reply": reply_id is not None,
            },
        )
        self.repository.refresh(message)
        return MessageActionResult(message=message, target=target)

    @BaseService.measure_operation("list_between")
    def list_between(self, user_a: str, user_b: str) -> List[Message]:
        """Direct conversation history, oldest first."""
        return self.repository.find_between(user_a, user_b)

    @BaseService.measure_operation("list_for_target")
    def list_for_target(self, target_id: str) -> List[Message]:
        """Every message addressed to a user or room, oldest first."""
        return self.repository.find_by_target(target_id)

    @BaseService.measure_operation("delete_message")
    def delete_message(self, message_id: str, actor_id: Optional[str]) -> MessageDeletionResult:
        """
        Delete one message.

        In a room the sender or the room creator may delete; in a direct
        conversation the sender or the receiver may.
        """
        if not actor_id:
            raise ValidationException("actorUserId is required")
        if not is_valid_ulid(message_id):
            raise InvalidIdentifierException("Invalid messageId")

        message = self.repository.get_by_id(message_id)
        if message is None:
            raise NotFoundException("Message not found")

        context = self.resolver.resolve_actor_permission(
            actor_id, message.receiver_user_id_or_room_id
        )
        if not ConversationResolver.can_delete_message(message, context):
            raise ForbiddenException("You can only delete your own message in this chat")

        with self.transaction():
            # Keep the loaded attributes readable for the deletion event
            self.db.expunge(message)
            self.repository.delete_one(message_id)

        self.logger.info(
            "Message deleted", extra={"message_id": message_id, "actor_id": actor_id}
        )
        return MessageDeletionResult(message=message, target=context.target, actor_id=actor_id)

    @BaseService.measure_operation("clear_conversation")
    def clear_conversation(
        self, actor_id: Optional[str], target_id: Optional[str]
    ) -> ConversationClearResult:
        """
        Delete every message of one conversation and return the exact count.

        Rooms can only be cleared by their creator. Either party of a direct
        conversation may clear it; both directions are removed.
        """
        if not actor_id or not target_id:
            raise ValidationException("actorUserId and receiverUserIdOrRoomId are required")

        context = self.resolver.resolve_actor_permission(actor_id, target_id)
        if not ConversationResolver.can_clear_conversation(context):
            raise ForbiddenException("Only room creator can clear room chat")

        with self.transaction():
            if context.is_room:
                deleted_count = self.repository.delete_for_room(context.target_id)
            else:
                deleted_count = self.repository.delete_between(actor_id, context.target_id)

        self.logger.info(
            "Conversation cleared",
            extra={
                "conversation_type": context.conversation_type.value,
                "deleted_count": deleted_count,
            },
        )
        return ConversationClearResult(context=context, deleted_count=deleted_count)

    @BaseService.measure_operation("mark_read")
    def mark_read(self, message_id: str) -> MessageActionResult:
        if not is_valid_ulid(message_id):
            raise InvalidIdentifierException("Invalid messageId")

        with self.transaction():
            message = self.repository.mark_read(message_id)
            if message is None:
                raise NotFoundException("Message not found")

        target = self.resolver.classify_target(message.receiver_user_id_or_room_id)
        return MessageActionResult(message=message, target=target)
