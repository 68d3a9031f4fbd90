"""Row factories shared by the service and route tests."""

from typing import Any

from sqlalchemy.orm import Session

from chatapp.models.chat_room import ChatRoom, RoomMember
from chatapp.models.message import Message
from chatapp.models.user import User, UserFollow

# Tests never check the hash of factory users; sign-up tests hash for real
FACTORY_PASSWORD_HASH = "$2b$12$KIXQJ0nW5oA1cQ0q3WmR4eYlF6pT8bq0k3a3a3a3a3a3a3a3a3a3a"


def make_user(db: Session, username: str, **overrides: Any) -> User:
    user = User(
        username=username,
        email=overrides.pop("email", f"{username}@example.com"),
        password_hash=overrides.pop("password_hash", FACTORY_PASSWORD_HASH),
        **overrides,
    )
    db.add(user)
    db.commit()
    return user


def follow(db: Session, follower: User, followed: User) -> None:
    db.add(UserFollow(follower_id=follower.id, followed_id=followed.id))
    db.commit()


def make_room(db: Session, creator: User, *members: User, name: str = "General") -> ChatRoom:
    room = ChatRoom(room_name=name, created_by=creator.id)
    db.add(room)
    db.flush()
    db.add(RoomMember(room_id=room.id, user_id=creator.id))
    for member in members:
        db.add(RoomMember(room_id=room.id, user_id=member.id))
    db.commit()
    db.refresh(room)
    return room


def make_message(
    db: Session, sender: User, target_id: str, content: str = "hello", **overrides: Any
) -> Message:
    message = Message(
        sender_user_id=sender.id,
        receiver_user_id_or_room_id=target_id,
        message_content=content,
        **overrides,
    )
    db.add(message)
    db.commit()
    return message
