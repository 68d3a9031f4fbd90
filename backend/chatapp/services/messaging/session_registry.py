# backend/chatapp/services/messaging/session_registry.py
"""
Realtime Session Registry.

Tracks the live sessions connected to this worker and the channels each
one has joined. A session's lifecycle is

    connect -> (join | leave)* -> disconnect

and nothing survives a disconnect: a reconnecting client declares its
identity again and re-joins its conversations.

Delivery puts a frame on each session's outbound asyncio.Queue; the
WebSocket handler owning the session drains that queue. All methods run
on the event loop thread.
"""

import asyncio
from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional, Set

import ulid

from ...monitoring.prometheus_metrics import prometheus_metrics
from .channels import channels_for_join, user_channel
from .events import build_envelope, build_signal_payload

if TYPE_CHECKING:
    from .fanout import FanoutRouter

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1000


@dataclass(eq=False)
class LiveSession:
    """One connected client."""

    user_id: Optional[str]
    queue: "asyncio.Queue[Dict[str, Any]]"
    session_id: str = field(default_factory=lambda: str(ulid.ULID()))
    channels: Set[str] = field(default_factory=set)


class SessionRegistry:
    """In-process map of sessions to channels and back."""

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._sessions: Dict[str, LiveSession] = {}
        self._subscribers: Dict[str, Set[str]] = {}

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def connect(self, user_id: Optional[str] = None) -> LiveSession:
        """Register a session; a declared identity joins its personal channel."""
        session = LiveSession(user_id=user_id or None, queue=asyncio.Queue(maxsize=self.queue_size))
        self._sessions[session.session_id] = session
        if session.user_id:
            self._subscribe(session, user_channel(session.user_id))
        prometheus_metrics.set_active_sessions(self.session_count)
        logger.debug(
            "Live session connected",
            extra={"session_id": session.session_id, "user_id": session.user_id},
        )
        return session

    def disconnect(self, session: LiveSession) -> None:
        for channel in list(session.channels):
            self._unsubscribe(session, channel)
        self._sessions.pop(session.session_id, None)
        prometheus_metrics.set_active_sessions(self.session_count)
        logger.debug("Live session disconnected", extra={"session_id": session.session_id})

    def join(self, session: LiveSession, conversation_id: Any) -> Set[str]:
        """
        Join a conversation. Returns the channels joined; an empty or
        non-string conversation id is ignored.
        """
        if not conversation_id or not isinstance(conversation_id, str):
            return set()
        channels = channels_for_join(conversation_id)
        for channel in channels:
            self._subscribe(session, channel)
        return set(channels)

    def leave(self, session: LiveSession, conversation_id: Any) -> Set[str]:
        if not conversation_id or not isinstance(conversation_id, str):
            return set()
        channels = channels_for_join(conversation_id)
        for channel in channels:
            self._unsubscribe(session, channel)
        return set(channels)

    def sessions_for(self, channels: Iterable[str]) -> Set[str]:
        """Distinct session ids subscribed to any of `channels`."""
        session_ids: Set[str] = set()
        for channel in channels:
            session_ids.update(self._subscribers.get(channel, ()))
        return session_ids

    def deliver(self, channels: Iterable[str], event: str, payload: Dict[str, Any]) -> int:
        """
        Queue one frame per distinct session subscribed to any channel.

        A session on several of the channels still receives the frame once.
        Returns the number of sessions reached.
        """
        frame = build_envelope(event, payload)
        delivered = 0
        for session_id in self.sessions_for(channels):
            session = self._sessions.get(session_id)
            if session is None:
                continue
            try:
                session.queue.put_nowait(frame)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(
                    "Outbound queue full, dropping frame",
                    extra={"session_id": session_id, "event": event},
                )
        return delivered

    async def relay_signal(
        self,
        session: LiveSession,
        event: str,
        data: Any,
        router: "FanoutRouter",
    ) -> bool:
        """
        Relay a call signalling frame to `user:{toUserId}`.

        Frames from anonymous sessions, frames without `toUserId` and
        frames missing their required field are dropped silently.
        """
        if not session.user_id or not isinstance(data, dict):
            return False
        to_user_id = data.get("toUserId")
        if not to_user_id:
            return False
        payload = build_signal_payload(event, session.user_id, data)
        if payload is None:
            return False
        await router.emit([user_channel(str(to_user_id))], event, payload)
        return True

    def _subscribe(self, session: LiveSession, channel: str) -> None:
        session.channels.add(channel)
        self._subscribers.setdefault(channel, set()).add(session.session_id)

    def _unsubscribe(self, session: LiveSession, channel: str) -> None:
        session.channels.discard(channel)
        members = self._subscribers.get(channel)
        if members is None:
            return
        members.discard(session.session_id)
        if not members:
            del self._subscribers[channel]
