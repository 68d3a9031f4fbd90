# backend/chatapp/services/messaging/transport.py
"""
Live transports.

A transport takes `(channels, event, payload)` and gets the frame to every
subscribed session. Two implementations:

- LocalTransport: straight into this worker's SessionRegistry.
- BroadcastTransport: publishes through a shared Broadcaster connection
  (Redis, or memory:// for a single process). Every worker runs a
  listener that feeds received envelopes into its own registry, so a
  message sent to worker A reaches sessions connected to worker B.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Protocol, Sequence

from broadcaster import Broadcast

from .session_registry import SessionRegistry

logger = logging.getLogger(__name__)

RESUBSCRIBE_DELAY_SECONDS = 1.0


class LiveTransport(Protocol):
    async def broadcast(self, channels: Sequence[str], event: str, payload: Dict[str, Any]) -> None:
        ...


class LocalTransport:
    """Deliver to sessions connected to this process only."""

    def __init__(self, registry: SessionRegistry):
        self.registry = registry

    async def broadcast(self, channels: Sequence[str], event: str, payload: Dict[str, Any]) -> None:
        self.registry.deliver(channels, event, payload)


class BroadcastTransport:
    """
    Fan-out shared between workers through Broadcaster.

    All envelopes travel on a single backend channel; each carries the
    logical channel list and the listener resolves it locally.
    """

    def __init__(
        self,
        broadcast: Broadcast,
        registry: SessionRegistry,
        channel: str,
        resubscribe_delay: float = RESUBSCRIBE_DELAY_SECONDS,
    ):
        self._broadcast = broadcast
        self.registry = registry
        self.channel = channel
        self.resubscribe_delay = resubscribe_delay
        self._listener: Optional["asyncio.Task[None]"] = None
        self._ready = asyncio.Event()

    async def broadcast(self, channels: Sequence[str], event: str, payload: Dict[str, Any]) -> None:
        message = json.dumps({"channels": list(channels), "event": event, "payload": payload})
        await self._broadcast.publish(channel=self.channel, message=message)

    async def start(self) -> None:
        """Start the listener task and wait until it is subscribed."""
        if self._listener is not None:
            return
        self._listener = asyncio.create_task(self._listen())
        ready = asyncio.create_task(self._ready.wait())
        await asyncio.wait({self._listener, ready}, return_when=asyncio.FIRST_COMPLETED)
        if not self._ready.is_set():
            ready.cancel()
            listener, self._listener = self._listener, None
            # Surfaces the subscribe error to the caller
            await listener
            raise RuntimeError("Broadcast listener stopped before subscribing")
        logger.info("[BROADCAST] Listening for live events on %s", self.channel)

    async def stop(self) -> None:
        if self._listener is None:
            return
        listener, self._listener = self._listener, None
        listener.cancel()
        try:
            await listener
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"[BROADCAST] Listener on {self.channel} had already failed: {e}")
        self._ready.clear()

    async def _listen(self) -> None:
        """
        Consume the backend channel until cancelled.

        A failure before the first subscription propagates to `start()`.
        Once live, a dropped subscription is logged and re-established.
        """
        while True:
            try:
                await self._consume()
            except Exception:
                if not self._ready.is_set():
                    raise
                logger.exception("[BROADCAST] Subscription to %s failed, re-subscribing", self.channel)
            else:
                logger.warning("[BROADCAST] Subscription to %s ended, re-subscribing", self.channel)
            await asyncio.sleep(self.resubscribe_delay)

    async def _consume(self) -> None:
        async with self._broadcast.subscribe(channel=self.channel) as subscriber:
            self._ready.set()
            async for event in subscriber:
                self._dispatch(event.message)

    def _dispatch(self, raw: str) -> None:
        try:
            envelope = json.loads(raw)
            channels = envelope["channels"]
            event_name = envelope["event"]
            payload = envelope["payload"]
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning(f"[BROADCAST] Dropping malformed envelope: {e}")
            return
        self.registry.deliver(channels, event_name, payload)
