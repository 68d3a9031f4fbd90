# backend/chatapp/routes/realtime.py
"""
WebSocket endpoint for live delivery.

    ws://host/ws?userId=<id>

Client frames are JSON `{"event": str, "data": {...}}`:
    conversation:join / conversation:leave  {"conversationId": str}
    call:offer / call:answer / call:ice-candidate / call:end  {"toUserId": str, ...}

Server frames use the same shape. Unknown events and malformed frames are
ignored; the connection stays open.
"""

import asyncio
import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from ..services.messaging.events import ClientEvent, SignalEvent
from ..services.messaging.fanout import FanoutRouter
from ..services.messaging.session_registry import LiveSession, SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

SIGNAL_EVENTS = {event.value for event in SignalEvent}


async def handle_client_frame(
    session: LiveSession, raw: str, registry: SessionRegistry, fanout: FanoutRouter
) -> None:
    """Apply one inbound frame to the session."""
    try:
        frame = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return
    if not isinstance(frame, dict):
        return

    event = frame.get("event")
    data: Any = frame.get("data") or {}
    if not isinstance(data, dict):
        return

    if event == ClientEvent.CONVERSATION_JOIN.value:
        registry.join(session, data.get("conversationId"))
    elif event == ClientEvent.CONVERSATION_LEAVE.value:
        registry.leave(session, data.get("conversationId"))
    elif event in SIGNAL_EVENTS:
        await registry.relay_signal(session, event, data, fanout)


async def _pump_outbound(websocket: WebSocket, session: LiveSession) -> None:
    while True:
        frame = await session.queue.get()
        await websocket.send_json(frame)


@router.websocket("/ws")
async def live_socket(websocket: WebSocket, user_id: Optional[str] = Query(default=None, alias="userId")) -> None:
    registry: SessionRegistry = websocket.app.state.session_registry
    fanout: FanoutRouter = websocket.app.state.fanout

    await websocket.accept()
    session = registry.connect(user_id)
    sender = asyncio.create_task(_pump_outbound(websocket, session))
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            # Binary frames carry nothing we understand
            if raw is None:
                continue
            await handle_client_frame(session, raw, registry, fanout)
    except WebSocketDisconnect:
        pass
    finally:
        sender.cancel()
        await asyncio.gather(sender, return_exceptions=True)
        registry.disconnect(session)
