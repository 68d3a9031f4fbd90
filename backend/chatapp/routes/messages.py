# backend/chatapp/routes/messages.py
"""
Message routes.

Each write goes through the service (which commits), then the matching
realtime event is published. Publishing is fire-and-forget: a transport
problem is logged by the router and never changes the HTTP response.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from ..dependencies import get_fanout_router, get_message_service, get_reaction_ledger
from ..schemas.message import (
    ConversationActionRequest,
    ReactionRequest,
    RemoveReactionRequest,
    SendMessageRequest,
    message_to_wire,
)
from ..services.message_service import MessageService
from ..services.messaging.fanout import FanoutRouter
from ..services.messaging.publisher import (
    publish_conversation_cleared,
    publish_message_deleted,
    publish_message_read,
    publish_new_message,
    publish_reaction_update,
)
from ..services.reaction_ledger import ReactionLedger

logger = logging.getLogger(__name__)

router = APIRouter(tags=["messages"])


def _body_or_query(from_body: Optional[str], from_query: Optional[str]) -> Optional[str]:
    """Body fields win; the query string is the fallback for bodyless DELETEs."""
    return from_body or from_query


@router.post("/send")
async def send_message(
    payload: SendMessageRequest,
    service: MessageService = Depends(get_message_service),
    fanout: FanoutRouter = Depends(get_fanout_router),
) -> Dict[str, Any]:
    result = service.send_message(
        sender_id=payload.sender_user_id,
        target_id=payload.receiver_user_id_or_room_id,
        content=payload.message_content,
        message_type=payload.message_type,
        is_encrypted=payload.is_encrypted,
        encryption_method=payload.encryption_method,
        reply_to_id=payload.requested_reply_id,
    )
    data = message_to_wire(result.message)
    await publish_new_message(fanout, result.message, result.target, data)
    return {"message": "Message sent successfully", "data": data}


@router.delete("/conversation/clear")
async def clear_conversation(
    actor_user_id: Optional[str] = Query(default=None, alias="actorUserId"),
    target_id: Optional[str] = Query(default=None, alias="receiverUserIdOrRoomId"),
    body: Optional[ConversationActionRequest] = Body(default=None),
    service: MessageService = Depends(get_message_service),
    fanout: FanoutRouter = Depends(get_fanout_router),
) -> Dict[str, Any]:
    body = body or ConversationActionRequest()
    result = service.clear_conversation(
        _body_or_query(body.actor_user_id, actor_user_id),
        _body_or_query(body.receiver_user_id_or_room_id, target_id),
    )
    await publish_conversation_cleared(fanout, result.context, result.deleted_count)
    return {"message": "Conversation cleared successfully", "deletedCount": result.deleted_count}


@router.delete("/{message_id}")
async def delete_message(
    message_id: str,
    actor_user_id: Optional[str] = Query(default=None, alias="actorUserId"),
    body: Optional[ConversationActionRequest] = Body(default=None),
    service: MessageService = Depends(get_message_service),
    fanout: FanoutRouter = Depends(get_fanout_router),
) -> Dict[str, Any]:
    from_body = body.actor_user_id if body else None
    result = service.delete_message(message_id, _body_or_query(from_body, actor_user_id))
    await publish_message_deleted(fanout, result.message, result.target, result.actor_id)
    return {"message": "Message deleted successfully", "messageId": message_id}


@router.get("/between/{user_id_1}/{user_id_2}")
def get_messages_between(
    user_id_1: str, user_id_2: str, service: MessageService = Depends(get_message_service)
) -> list:
    return [message_to_wire(message) for message in service.list_between(user_id_1, user_id_2)]


@router.get("/{receiver_id}")
def get_messages_for_target(
    receiver_id: str, service: MessageService = Depends(get_message_service)
) -> list:
    return [message_to_wire(message) for message in service.list_for_target(receiver_id)]


@router.put("/{message_id}/reactions")
async def toggle_reaction(
    message_id: str,
    payload: ReactionRequest,
    ledger: ReactionLedger = Depends(get_reaction_ledger),
    fanout: FanoutRouter = Depends(get_fanout_router),
) -> Dict[str, Any]:
    result = ledger.toggle_reaction(message_id, payload.user_id, payload.emoji)
    await publish_reaction_update(fanout, result.message, result.target, result.action.value)
    return {
        "message": "Reaction updated",
        "action": result.action.value,
        "data": message_to_wire(result.message),
    }


@router.delete("/{message_id}/reactions")
async def remove_reaction(
    message_id: str,
    user_id: Optional[str] = Query(default=None, alias="userId"),
    body: Optional[RemoveReactionRequest] = Body(default=None),
    ledger: ReactionLedger = Depends(get_reaction_ledger),
    fanout: FanoutRouter = Depends(get_fanout_router),
) -> Dict[str, Any]:
    from_body = body.user_id if body else None
    result = ledger.remove_reaction(message_id, _body_or_query(from_body, user_id))
    await publish_reaction_update(fanout, result.message, result.target, result.action.value)
    return {"message": "Reaction removed", "data": message_to_wire(result.message)}


@router.put("/{message_id}/read")
async def mark_read(
    message_id: str,
    service: MessageService = Depends(get_message_service),
    fanout: FanoutRouter = Depends(get_fanout_router),
) -> Dict[str, Any]:
    result = service.mark_read(message_id)
    await publish_message_read(fanout, result.message, result.target)
    return {"message": "Message marked as read", "data": message_to_wire(result.message)}
