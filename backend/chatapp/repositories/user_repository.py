# backend/chatapp/repositories/user_repository.py
"""
User Repository - identity directory data access.

Covers user lookups plus both social-edge tables (follows and pending
follow requests). All list reads are ordered by edge creation so clients
see edges in the order they were made.
"""

import logging
from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.user import FollowRequest, User, UserFollow
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for users and their follow graph."""

    def __init__(self, db: Session):
        super().__init__(db, User)

    # ------------------------------------------------------------------
    # User lookups
    # ------------------------------------------------------------------

    def find_by_email(self, email: str) -> Optional[User]:
        return self.find_one_by(email=email)

    def find_by_email_or_username(self, email: str, username: str) -> Optional[User]:
        """First user holding either the email or the handle."""
        try:
            return (
                self.db.query(User)
                .filter(or_(User.email == email, User.username == username))
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error looking up user by email/username: {str(e)}")
            raise RepositoryException(f"Failed to look up user: {str(e)}")

    def username_taken(self, username: str, exclude_user_id: Optional[str] = None) -> bool:
        query = self.db.query(User.id).filter(User.username == username)
        if exclude_user_id:
            query = query.filter(User.id != exclude_user_id)
        return query.first() is not None

    def list_users(self) -> List[User]:
        return self._execute_query(self.db.query(User).order_by(User.created_at, User.id))

    # ------------------------------------------------------------------
    # Follow edges
    # ------------------------------------------------------------------

    def is_following(self, follower_id: str, followed_id: str) -> bool:
        return (
            self.db.query(UserFollow.id)
            .filter(
                and_(UserFollow.follower_id == follower_id, UserFollow.followed_id == followed_id)
            )
            .first()
            is not None
        )

    def add_follow(self, follower_id: str, followed_id: str) -> bool:
        """Create the edge; returns False when it already existed."""
        if self.is_following(follower_id, followed_id):
            return False
        self.db.add(UserFollow(follower_id=follower_id, followed_id=followed_id))
        self.db.flush()
        return True

    def remove_follow(self, follower_id: str, followed_id: str) -> int:
        count = (
            self.db.query(UserFollow)
            .filter(
                and_(UserFollow.follower_id == follower_id, UserFollow.followed_id == followed_id)
            )
            .delete(synchronize_session=False)
        )
        return int(count or 0)

    def get_following(self, user_id: str) -> List[User]:
        """Users that `user_id` follows."""
        return self._execute_query(
            self.db.query(User)
            .join(UserFollow, UserFollow.followed_id == User.id)
            .filter(UserFollow.follower_id == user_id)
            .order_by(UserFollow.created_at, UserFollow.id)
        )

    def get_followers(self, user_id: str) -> List[User]:
        """Users that follow `user_id`."""
        return self._execute_query(
            self.db.query(User)
            .join(UserFollow, UserFollow.follower_id == User.id)
            .filter(UserFollow.followed_id == user_id)
            .order_by(UserFollow.created_at, UserFollow.id)
        )

    # ------------------------------------------------------------------
    # Follow requests
    # ------------------------------------------------------------------

    def has_follow_request(self, requester_id: str, target_id: str) -> bool:
        return (
            self.db.query(FollowRequest.id)
            .filter(
                and_(
                    FollowRequest.requester_id == requester_id,
                    FollowRequest.target_id == target_id,
                )
            )
            .first()
            is not None
        )

    def add_follow_request(self, requester_id: str, target_id: str) -> FollowRequest:
        request = FollowRequest(requester_id=requester_id, target_id=target_id)
        self.db.add(request)
        self.db.flush()
        return request

    def remove_follow_request(self, requester_id: str, target_id: str) -> int:
        count = (
            self.db.query(FollowRequest)
            .filter(
                and_(
                    FollowRequest.requester_id == requester_id,
                    FollowRequest.target_id == target_id,
                )
            )
            .delete(synchronize_session=False)
        )
        return int(count or 0)

    def get_received_requests(self, user_id: str) -> List[User]:
        """Users with a pending request to follow `user_id`."""
        return self._execute_query(
            self.db.query(User)
            .join(FollowRequest, FollowRequest.requester_id == User.id)
            .filter(FollowRequest.target_id == user_id)
            .order_by(FollowRequest.created_at, FollowRequest.id)
        )

    def get_sent_requests(self, user_id: str) -> List[User]:
        """Users that `user_id` has asked to follow and who have not answered."""
        return self._execute_query(
            self.db.query(User)
            .join(FollowRequest, FollowRequest.target_id == User.id)
            .filter(FollowRequest.requester_id == user_id)
            .order_by(FollowRequest.created_at, FollowRequest.id)
        )
