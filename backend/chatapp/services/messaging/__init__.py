# backend/chatapp/services/messaging/__init__.py
"""
Realtime messaging package.

Architecture:
- SessionRegistry keeps the live sessions of this worker and their channels
- A transport carries events to every worker (Broadcaster) or just this one
- FanoutRouter is the single entry point routes publish through
- publisher.py builds each event and picks its channels
"""

from .events import EventType, build_envelope
from .fanout import FanoutRouter
from .publisher import (
    publish_conversation_cleared,
    publish_membership_changed,
    publish_message_deleted,
    publish_message_read,
    publish_new_message,
    publish_reaction_update,
    publish_room_removed,
)
from .session_registry import LiveSession, SessionRegistry
from .transport import BroadcastTransport, LocalTransport

__all__ = [
    "EventType",
    "build_envelope",
    "FanoutRouter",
    "SessionRegistry",
    "LiveSession",
    "BroadcastTransport",
    "LocalTransport",
    "publish_new_message",
    "publish_message_deleted",
    "publish_reaction_update",
    "publish_message_read",
    "publish_conversation_cleared",
    "publish_membership_changed",
    "publish_room_removed",
]
