# backend/chatapp/services/messaging/fanout.py
"""
Fan-out Router.

Hands an event and its channel set to the injected live transport. The
router owns no global state: the application builds one at startup and
routes receive it through a dependency.

Emission is fire-and-forget and happens after the write committed. A
transport failure is logged, never raised to the caller.
"""

import logging
from typing import Any, Dict, Optional, Sequence, Union

from ...monitoring.prometheus_metrics import prometheus_metrics
from .events import EventType, SignalEvent
from .transport import LiveTransport

logger = logging.getLogger(__name__)

EventName = Union[EventType, SignalEvent, str]


class FanoutRouter:
    """Dispatches `(channels, event, payload)` to a live transport."""

    def __init__(self, transport: Optional[LiveTransport] = None):
        self.transport = transport

    async def emit(self, channels: Sequence[str], event: EventName, payload: Dict[str, Any]) -> bool:
        """
        Send one event to every session on any of `channels`.

        Returns False (and does nothing) when no transport is attached or
        the channel set is empty.
        """
        event_name = event.value if isinstance(event, (EventType, SignalEvent)) else str(event)
        if self.transport is None or not channels:
            return False

        try:
            await self.transport.broadcast(list(channels), event_name, payload)
        except Exception as e:
            prometheus_metrics.record_realtime_event(event_name, status="error")
            logger.error(
                "[FANOUT] Transport failed to broadcast event",
                extra={"event": event_name, "channel_count": len(channels), "error": str(e)},
            )
            return False

        prometheus_metrics.record_realtime_event(event_name)
        logger.debug(
            "[FANOUT] Event emitted",
            extra={"event": event_name, "channels": list(channels)},
        )
        return True
