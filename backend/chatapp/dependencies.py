# backend/chatapp/dependencies.py
"""FastAPI dependencies shared by the routers."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .database import get_db
from .services.message_service import MessageService
from .services.messaging.fanout import FanoutRouter
from .services.reaction_ledger import ReactionLedger
from .services.room_service import RoomService
from .services.user_service import UserService


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def get_room_service(db: Session = Depends(get_db)) -> RoomService:
    return RoomService(db)


def get_message_service(db: Session = Depends(get_db)) -> MessageService:
    return MessageService(db)


def get_reaction_ledger(db: Session = Depends(get_db)) -> ReactionLedger:
    return ReactionLedger(db)


def get_fanout_router(request: Request) -> FanoutRouter:
    """Router built in the lifespan; a bare router (no transport) before startup."""
    router = getattr(request.app.state, "fanout", None)
    if router is None:
        return FanoutRouter()
    return router
