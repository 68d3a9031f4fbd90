# backend/chatapp/core/broadcast.py
"""
Shared Broadcaster connection for realtime fan-out.

One Broadcast instance per worker process, created in the application
lifespan and stored on `app.state`. Broadcaster keeps a single backend
connection (Redis, or in-process for memory://) and multiplexes every
subscription through asyncio queues.
"""

import logging

from broadcaster import Broadcast

logger = logging.getLogger(__name__)


async def connect_broadcast(url: str) -> Broadcast:
    """
    Connect to the broadcast backend.

    Call during application startup (in lifespan manager).
    """
    broadcast = Broadcast(url)
    await broadcast.connect()
    logger.info("[BROADCAST] Connected to broadcast backend: %s", url.split("@")[-1])
    return broadcast


async def disconnect_broadcast(broadcast: Broadcast) -> None:
    """
    Disconnect from the broadcast backend.

    Call during application shutdown.
    """
    await broadcast.disconnect()
    logger.info("[BROADCAST] Disconnected from broadcast backend")
