# backend/chatapp/services/messaging/channels.py
"""
Channel naming and channel-set computation.

Pure functions: nothing here touches the database or a transport. Channel
sets are returned as ordered, de-duplicated lists so emission order is
stable.

Channel names:
    user:{user_id}          personal channel, joined on connect
    room:{room_id}          room broadcast channel
    conversation:{room_id}  generic conversation channel for a room
    dm:{lo}:{hi}            direct pair channel, ids sorted
"""

from typing import Iterable, List

from ...models.message import Message
from ..conversation_resolver import ConversationContext, ConversationTarget, RoomTarget

USER_PREFIX = "user:"
ROOM_PREFIX = "room:"
CONVERSATION_PREFIX = "conversation:"
DM_PREFIX = "dm:"


def user_channel(user_id: str) -> str:
    return f"{USER_PREFIX}{user_id}"


def room_channel(room_id: str) -> str:
    return f"{ROOM_PREFIX}{room_id}"


def conversation_channel(room_id: str) -> str:
    return f"{CONVERSATION_PREFIX}{room_id}"


def dm_channel(user_a: str, user_b: str) -> str:
    """Canonical pair channel; dm_channel(a, b) == dm_channel(b, a)."""
    low, high = sorted((user_a, user_b))
    return f"{DM_PREFIX}{low}:{high}"


def _unique(channels: Iterable[str]) -> List[str]:
    seen: dict = {}
    for channel in channels:
        if channel and channel not in seen:
            seen[channel] = None
    return list(seen)


def channels_for_message(message: Message, target: ConversationTarget) -> List[str]:
    """
    Channels interested in an event about a single message.

    Always the sender's and the target's personal channels; rooms add the
    room and conversation channels, direct messages add the pair channel.
    """
    sender_id = message.sender_user_id
    target_id = target.target_id
    channels = [user_channel(sender_id), user_channel(target_id)]
    if isinstance(target, RoomTarget):
        channels.extend([room_channel(target_id), conversation_channel(target_id)])
    else:
        channels.append(dm_channel(sender_id, target_id))
    return _unique(channels)


def channels_for_conversation(context: ConversationContext) -> List[str]:
    """
    Channels interested in a conversation-wide event.

    Room events also go to every member's personal channel so members that
    never joined the room channel still hear about them.
    """
    if isinstance(context.target, RoomTarget):
        room_id = context.target.room_id
        channels = [room_channel(room_id), conversation_channel(room_id)]
        channels.extend(user_channel(member_id) for member_id in context.room_member_ids)
        return _unique(channels)

    peer_id = context.target.peer_id
    return _unique(
        [
            user_channel(context.actor_id),
            user_channel(peer_id),
            dm_channel(context.actor_id, peer_id),
        ]
    )


def channels_for_users(user_ids: Iterable[str]) -> List[str]:
    """Personal channels for a set of users (room membership events)."""
    return _unique(user_channel(user_id) for user_id in user_ids if user_id)


def channels_for_join(conversation_id: str) -> List[str]:
    """
    Channels a session subscribes to when it joins `conversation_id`.

    A `room:{id}` conversation id also joins `conversation:{id}`, so a
    client only has to name the room once.
    """
    channels = [conversation_id]
    if conversation_id.startswith(ROOM_PREFIX):
        room_id = conversation_id[len(ROOM_PREFIX):]
        if room_id:
            channels.extend([conversation_channel(room_id), room_channel(room_id)])
    return _unique(channels)
