# backend/chatapp/routes/chat_rooms.py
"""
Chat room routes.

Membership changes are pushed to the members' personal channels after the
write commits: `room:membership_changed` to everyone still in the room and
`room:removed` to users who lost access.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from ..dependencies import get_fanout_router, get_room_service
from ..schemas.chat_room import AddMemberRequest, RoomCreateRequest, room_to_wire
from ..services.messaging.events import MembershipAction, RoomRemovedAction
from ..services.messaging.fanout import FanoutRouter
from ..services.messaging.publisher import publish_membership_changed, publish_room_removed
from ..services.room_service import MembershipResult, RoomService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat-rooms"])


@router.post("/create")
async def create_room(
    payload: RoomCreateRequest,
    service: RoomService = Depends(get_room_service),
    fanout: FanoutRouter = Depends(get_fanout_router),
) -> Dict[str, Any]:
    room = service.create_room(payload.room_name, payload.created_by)
    room_data = room_to_wire(room)
    await publish_membership_changed(
        fanout, room.id, room.member_ids, MembershipAction.CREATED.value, room_data
    )
    return {"message": "Room created successfully", "room": room_data}


@router.get("/")
def list_rooms(
    member_id: Optional[str] = Query(default=None, alias="memberId"),
    service: RoomService = Depends(get_room_service),
) -> list:
    return [room_to_wire(room) for room in service.list_rooms(member_id)]


async def _add_member(
    room_id: str, payload: AddMemberRequest, service: RoomService, fanout: FanoutRouter
) -> Dict[str, Any]:
    result: MembershipResult = service.add_member(room_id, payload.user_id, payload.actor_id)
    room_data = room_to_wire(result.room)
    if result.changed:
        await publish_membership_changed(
            fanout,
            result.room.id,
            result.room.member_ids,
            MembershipAction.MEMBER_ADDED.value,
            room_data,
        )
    return {
        "message": "Member added successfully" if result.changed else "Member already in room",
        "room": room_data,
        "changed": result.changed,
    }


@router.post("/{room_id}/members")
async def add_member(
    room_id: str,
    payload: AddMemberRequest,
    service: RoomService = Depends(get_room_service),
    fanout: FanoutRouter = Depends(get_fanout_router),
) -> Dict[str, Any]:
    return await _add_member(room_id, payload, service, fanout)


@router.post("/{room_id}/addMember")
async def add_member_legacy(
    room_id: str,
    payload: AddMemberRequest,
    service: RoomService = Depends(get_room_service),
    fanout: FanoutRouter = Depends(get_fanout_router),
) -> Dict[str, Any]:
    """Older clients still post here."""
    return await _add_member(room_id, payload, service, fanout)


@router.delete("/{room_id}/members/{member_id}")
async def remove_member(
    room_id: str,
    member_id: str,
    actor_id: Optional[str] = Query(default=None, alias="actorId"),
    body: Optional[Dict[str, Any]] = Body(default=None),
    service: RoomService = Depends(get_room_service),
    fanout: FanoutRouter = Depends(get_fanout_router),
) -> Dict[str, Any]:
    actor = (body or {}).get("actorId") or actor_id
    result = service.remove_member(room_id, member_id, actor)
    room_data = room_to_wire(result.room)
    await publish_membership_changed(
        fanout,
        result.room.id,
        result.room.member_ids,
        MembershipAction.MEMBER_REMOVED.value,
        room_data,
    )
    await publish_room_removed(
        fanout, result.room.id, [member_id], RoomRemovedAction.MEMBER_REMOVED.value
    )
    return {"message": "Member removed successfully", "room": room_data, "changed": result.changed}


@router.get("/{room_id}")
def get_room(room_id: str, service: RoomService = Depends(get_room_service)) -> Dict[str, Any]:
    return room_to_wire(service.get_room(room_id))


@router.delete("/{room_id}")
async def delete_room(
    room_id: str,
    service: RoomService = Depends(get_room_service),
    fanout: FanoutRouter = Depends(get_fanout_router),
) -> Dict[str, Any]:
    result = service.delete_room(room_id)
    await publish_room_removed(
        fanout, result.room_id, result.member_ids, RoomRemovedAction.DELETED.value
    )
    return {"message": "Room deleted successfully", "roomId": result.room_id}
