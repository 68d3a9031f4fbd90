# backend/chatapp/services/conversation_resolver.py
"""
Conversation Resolver.

A message's `receiver_user_id_or_room_id` carries no type flag. This module
turns it into a typed target exactly once, by lookup (room first, then
user), and answers every permission question the message flows ask:

- may this sender post to this target?
- does this reply point into the same conversation?
- may this actor manage (delete, clear) messages in this conversation?
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from sqlalchemy.orm import Session

from ..core.enums import ConversationType
from ..core.exceptions import (
    ForbiddenException,
    InvalidIdentifierException,
    InvalidReplyException,
    NotFoundException,
)
from ..core.ulid_helper import is_valid_ulid
from ..models.message import Message
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .identity_directory import IdentityDirectory


@dataclass(frozen=True)
class RoomTarget:
    """Target id resolved to a chat room."""

    room_id: str

    @property
    def target_id(self) -> str:
        return self.room_id

    @property
    def conversation_type(self) -> ConversationType:
        return ConversationType.ROOM


@dataclass(frozen=True)
class PeerTarget:
    """Target id resolved to another user (direct conversation)."""

    peer_id: str

    @property
    def target_id(self) -> str:
        return self.peer_id

    @property
    def conversation_type(self) -> ConversationType:
        return ConversationType.DM


ConversationTarget = Union[RoomTarget, PeerTarget]


@dataclass(frozen=True)
class ConversationContext:
    """
    Who is acting on which conversation.

    Room contexts carry the creator and a membership snapshot taken at
    resolution time; DM contexts only need the peer.
    """

    actor_id: str
    target: ConversationTarget
    room_created_by: Optional[str] = None
    room_member_ids: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def conversation_type(self) -> ConversationType:
        return self.target.conversation_type

    @property
    def target_id(self) -> str:
        return self.target.target_id

    @property
    def is_room(self) -> bool:
        return isinstance(self.target, RoomTarget)


class ConversationResolver(BaseService):
    """Resolves targets and enforces the send/reply/manage rules."""

    def __init__(self, db: Session, directory: Optional[IdentityDirectory] = None):
        super().__init__(db)
        self.directory = directory or IdentityDirectory(db)
        self.message_repository = RepositoryFactory.create_message_repository(db)

    @BaseService.measure_operation("resolve_send_permission")
    def resolve_send_permission(self, sender_id: str, target_id: str) -> ConversationTarget:
        """
        Decide whether `sender_id` may post to `target_id`.

        Rooms require membership; direct messages require the sender to
        follow the recipient. The recipient does not need to follow back.

        Raises:
            InvalidIdentifierException: Either id is malformed
            NotFoundException: Sender or recipient does not exist
            ForbiddenException: Not a room member, or not following the peer
        """
        if not is_valid_ulid(sender_id) or not is_valid_ulid(target_id):
            raise InvalidIdentifierException("Invalid sender or receiver identifier")

        if self.directory.get_user(sender_id) is None:
            raise NotFoundException("Sender user not found")

        room = self.directory.get_room(target_id)
        if room is not None:
            if not self.directory.is_room_member(room.id, sender_id):
                raise ForbiddenException("Only room members can send messages to this room")
            return RoomTarget(room_id=room.id)

        if self.directory.get_user(target_id) is None:
            raise NotFoundException("Recipient user not found")

        if not self.directory.is_following(sender_id, target_id):
            raise ForbiddenException("Follow this user first to send direct messages")

        return PeerTarget(peer_id=target_id)

    def resolve_reply_target(
        self, reply_id: Optional[str], target: ConversationTarget, sender_id: str
    ) -> Optional[str]:
        """
        Validate that `reply_id` names a message in the same conversation.

        Returns the reply message id, or None when no reply was requested.
        """
        if not reply_id:
            return None

        if not is_valid_ulid(reply_id):
            raise InvalidIdentifierException("Invalid replyToMessageId")

        reply: Optional[Message] = self.message_repository.get_by_id(
            reply_id, load_relationships=False
        )
        if reply is None:
            raise NotFoundException("Reply target message not found")

        if isinstance(target, RoomTarget):
            if reply.receiver_user_id_or_room_id != target.room_id:
                raise InvalidReplyException("Reply message must belong to the same room")
            return reply.id

        if not reply.is_between(sender_id, target.peer_id):
            raise InvalidReplyException("Reply message must belong to the same conversation")
        return reply.id

    @BaseService.measure_operation("resolve_actor_permission")
    def resolve_actor_permission(self, actor_id: str, target_id: str) -> ConversationContext:
        """
        Resolve the conversation an actor wants to manage.

        Unlike sending, no follow edge is needed: either party of a direct
        conversation may manage it. Room actors must still be members.
        """
        if not is_valid_ulid(actor_id) or not is_valid_ulid(target_id):
            raise InvalidIdentifierException("Invalid actor or conversation identifier")

        if self.directory.get_user(actor_id) is None:
            raise NotFoundException("Actor user not found")

        room = self.directory.get_room(target_id)
        if room is not None:
            if not room.is_member(actor_id):
                raise ForbiddenException("Only room members can manage room messages")
            return ConversationContext(
                actor_id=actor_id,
                target=RoomTarget(room_id=room.id),
                room_created_by=room.created_by,
                room_member_ids=tuple(room.member_ids),
            )

        if self.directory.get_user(target_id) is None:
            raise NotFoundException("Conversation target not found")

        return ConversationContext(actor_id=actor_id, target=PeerTarget(peer_id=target_id))

    def classify_target(self, target_id: str) -> ConversationTarget:
        """Type an already-stored target id without any permission check."""
        if self.directory.room_exists(target_id):
            return RoomTarget(room_id=target_id)
        return PeerTarget(peer_id=target_id)

    @staticmethod
    def can_delete_message(message: Message, context: ConversationContext) -> bool:
        """
        Room: the sender or the room creator. DM: the sender or the receiver.
        """
        actor_id = context.actor_id
        if message.sender_user_id == actor_id:
            return True
        if context.is_room:
            return context.room_created_by == actor_id
        return message.receiver_user_id_or_room_id == actor_id

    @staticmethod
    def can_clear_conversation(context: ConversationContext) -> bool:
        """Rooms can only be cleared by their creator; either DM party may clear."""
        if context.is_room:
            return context.room_created_by == context.actor_id
        return True
