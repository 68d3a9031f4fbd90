# backend/chatapp/services/messaging/events.py
"""
Realtime event names and payload builders.

Every frame a live session receives has this structure:
{
    "event": str,   # Event name, e.g. "message:new"
    "data": dict    # Event-specific payload
}
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class EventType(str, Enum):
    """Server-to-client events emitted by the fan-out router."""

    MESSAGE_NEW = "message:new"
    MESSAGE_DELETED = "message:deleted"
    MESSAGE_REACTION_UPDATED = "message:reaction_updated"
    MESSAGE_READ = "message:read"
    CONVERSATION_CLEARED = "conversation:cleared"
    ROOM_MEMBERSHIP_CHANGED = "room:membership_changed"
    ROOM_REMOVED = "room:removed"


class ClientEvent(str, Enum):
    """Client-to-server subscription requests."""

    CONVERSATION_JOIN = "conversation:join"
    CONVERSATION_LEAVE = "conversation:leave"


class SignalEvent(str, Enum):
    """Call signalling events relayed between two users."""

    CALL_OFFER = "call:offer"
    CALL_ANSWER = "call:answer"
    CALL_ICE_CANDIDATE = "call:ice-candidate"
    CALL_END = "call:end"


class MembershipAction(str, Enum):
    CREATED = "created"
    MEMBER_ADDED = "member_added"
    MEMBER_REMOVED = "member_removed"


class RoomRemovedAction(str, Enum):
    MEMBER_REMOVED = "member_removed"
    DELETED = "deleted"


def build_envelope(event: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Wrap a payload into the frame shape sent over the socket."""
    return {"event": event, "data": data}


def build_new_message_event(message: Dict[str, Any]) -> Dict[str, Any]:
    """Build a message:new payload."""
    return {"data": message}


def build_message_deleted_event(
    message_id: str, target_id: str, actor_id: str
) -> Dict[str, Any]:
    """Build a message:deleted payload."""
    return {
        "messageId": message_id,
        "receiverUserIdOrRoomId": target_id,
        "actorUserId": actor_id,
    }


def build_reaction_updated_event(
    message_id: str, reactions: List[Dict[str, Any]], action: str
) -> Dict[str, Any]:
    """Build a message:reaction_updated payload."""
    return {"messageId": message_id, "reactions": reactions, "action": action}


def build_message_read_event(message_id: str, target_id: str) -> Dict[str, Any]:
    return {"messageId": message_id, "receiverUserIdOrRoomId": target_id}


def build_conversation_cleared_event(
    target_id: str, actor_id: str, deleted_count: int, conversation_type: str
) -> Dict[str, Any]:
    """Build a conversation:cleared payload."""
    return {
        "receiverUserIdOrRoomId": target_id,
        "actorUserId": actor_id,
        "deletedCount": deleted_count,
        "conversationType": conversation_type,
    }


def build_membership_changed_event(
    action: str, room_id: str, room: Dict[str, Any]
) -> Dict[str, Any]:
    """Build a room:membership_changed payload."""
    return {"action": action, "roomId": room_id, "room": room}


def build_room_removed_event(action: str, room_id: str) -> Dict[str, Any]:
    """Build a room:removed payload."""
    return {"action": action, "roomId": room_id}


def build_signal_payload(
    event: str, from_user_id: str, data: Dict[str, Any]
) -> Optional[Dict[str, Any]]:
    """
    Build the payload relayed to the call peer.

    Returns None when the frame lacks the field its event requires
    (`offer`, `answer` or `candidate`); such frames are dropped.
    """
    call_id = data.get("callId") or None

    if event == SignalEvent.CALL_OFFER.value:
        if not data.get("offer"):
            return None
        return {
            "fromUserId": from_user_id,
            "fromUserName": data.get("fromUserName") or "",
            "callType": "video" if data.get("callType") == "video" else "audio",
            "callId": call_id,
            "offer": data["offer"],
        }

    if event == SignalEvent.CALL_ANSWER.value:
        if not data.get("answer"):
            return None
        return {"fromUserId": from_user_id, "callId": call_id, "answer": data["answer"]}

    if event == SignalEvent.CALL_ICE_CANDIDATE.value:
        if not data.get("candidate"):
            return None
        return {"fromUserId": from_user_id, "callId": call_id, "candidate": data["candidate"]}

    if event == SignalEvent.CALL_END.value:
        return {
            "fromUserId": from_user_id,
            "callId": call_id,
            "reason": data.get("reason") or "ended",
        }

    return None
