# backend/chatapp/services/messaging/publisher.py
"""
High-level publishing functions for realtime events.

Each function builds the event payload, computes the channel set and hands
both to the router. Callers invoke these after the triggering transaction
committed.
"""

import logging
from typing import Any, Dict, Iterable

from ...models.message import Message
from ...schemas.message import reactions_to_wire
from ..conversation_resolver import ConversationContext, ConversationTarget
from .channels import channels_for_conversation, channels_for_message, channels_for_users
from .events import (
    EventType,
    build_conversation_cleared_event,
    build_membership_changed_event,
    build_message_deleted_event,
    build_message_read_event,
    build_new_message_event,
    build_reaction_updated_event,
    build_room_removed_event,
)
from .fanout import FanoutRouter

logger = logging.getLogger(__name__)


async def publish_new_message(
    router: FanoutRouter, message: Message, target: ConversationTarget, data: Dict[str, Any]
) -> None:
    """Publish message:new with the serialized message as `data`."""
    await router.emit(
        channels_for_message(message, target),
        EventType.MESSAGE_NEW,
        build_new_message_event(data),
    )


async def publish_message_deleted(
    router: FanoutRouter, message: Message, target: ConversationTarget, actor_id: str
) -> None:
    await router.emit(
        channels_for_message(message, target),
        EventType.MESSAGE_DELETED,
        build_message_deleted_event(message.id, message.receiver_user_id_or_room_id, actor_id),
    )


async def publish_reaction_update(
    router: FanoutRouter, message: Message, target: ConversationTarget, action: str
) -> None:
    """Publish the message's full reaction list after a change."""
    await router.emit(
        channels_for_message(message, target),
        EventType.MESSAGE_REACTION_UPDATED,
        build_reaction_updated_event(message.id, reactions_to_wire(message), action),
    )


async def publish_message_read(
    router: FanoutRouter, message: Message, target: ConversationTarget
) -> None:
    await router.emit(
        channels_for_message(message, target),
        EventType.MESSAGE_READ,
        build_message_read_event(message.id, message.receiver_user_id_or_room_id),
    )


async def publish_conversation_cleared(
    router: FanoutRouter, context: ConversationContext, deleted_count: int
) -> None:
    await router.emit(
        channels_for_conversation(context),
        EventType.CONVERSATION_CLEARED,
        build_conversation_cleared_event(
            context.target_id,
            context.actor_id,
            deleted_count,
            context.conversation_type.value,
        ),
    )


async def publish_membership_changed(
    router: FanoutRouter,
    room_id: str,
    member_ids: Iterable[str],
    action: str,
    room: Dict[str, Any],
) -> None:
    """Tell every current member (personal channels) the room changed."""
    await router.emit(
        channels_for_users(member_ids),
        EventType.ROOM_MEMBERSHIP_CHANGED,
        build_membership_changed_event(action, room_id, room),
    )


async def publish_room_removed(
    router: FanoutRouter, room_id: str, user_ids: Iterable[str], action: str
) -> None:
    """Tell users they no longer have access to the room."""
    await router.emit(
        channels_for_users(user_ids),
        EventType.ROOM_REMOVED,
        build_room_removed_event(action, room_id),
    )
