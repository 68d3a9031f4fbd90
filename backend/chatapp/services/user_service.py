# backend/chatapp/services/user_service.py
"""
User Service.

Account lifecycle (sign-up, login, presence, profile edits) and the follow
graph. A follow edge is what later allows direct messages, so the request
and accept flow here is the gate in front of the conversation resolver's
DM rule.
"""

from dataclasses import dataclass
import logging
import re
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..auth import DUMMY_HASH_FOR_TIMING_ATTACK, get_password_hash, verify_password
from ..core.config import settings
from ..core.enums import FollowStatus
from ..core.exceptions import (
    ConflictException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from ..core.ulid_helper import require_ulid
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..repositories.user_repository import UserRepository
from .base import BaseService

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

PROFILE_FIELDS = ("username", "bio", "avatar_url", "phone_number", "e2e_public_key")


@dataclass
class ProfileView:
    user: User
    followers: List[User]
    following: List[User]
    follow_requests: List[User]


@dataclass
class FollowInfo:
    received_requests: List[User]
    sent_requests: List[User]
    followers: List[User]
    following: List[User]


@dataclass
class FollowStatusView:
    is_following: bool
    has_pending_request: bool

    @property
    def status(self) -> FollowStatus:
        if self.is_following:
            return FollowStatus.FOLLOWING
        if self.has_pending_request:
            return FollowStatus.PENDING
        return FollowStatus.NOT_FOLLOWING


class UserService(BaseService):
    """Service for accounts, presence and follow relationships."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.repository: UserRepository = RepositoryFactory.create_user_repository(db)

    def _get_user_or_404(self, user_id: str) -> User:
        require_ulid(user_id, "Invalid userId")
        user = self.repository.get_by_id(user_id)
        if user is None:
            raise NotFoundException("User not found")
        return user

    def _validate_username(self, username: str) -> None:
        if len(username) < settings.username_min_length:
            raise ValidationException(
                f"Username must be at least {settings.username_min_length} characters"
            )

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    @BaseService.measure_operation("sign_up")
    def sign_up(
        self,
        username: Optional[str],
        email: Optional[str],
        password: Optional[str],
        name: Optional[str] = None,
    ) -> User:
        """
        Register a user. `name` is accepted in place of `username`.

        Raises:
            ValidationException: Missing field, short username or password, bad email
            ConflictException: Email or username already registered
        """
        final_username = (username or name or "").strip()
        if not final_username or not email or not password:
            raise ValidationException("All fields required")
        self._validate_username(final_username)
        if not EMAIL_PATTERN.match(email):
            raise ValidationException("Invalid email format")
        if len(password) < settings.password_min_length:
            raise ValidationException(
                f"Password must be at least {settings.password_min_length} characters"
            )

        if self.repository.find_by_email_or_username(email, final_username):
            raise ConflictException("Email or username already exists")

        with self.transaction():
            user = self.repository.create(
                username=final_username,
                email=email,
                password_hash=get_password_hash(password),
                online_status=False,
            )

        self.logger.info("User signed up", extra={"user_id": user.id})
        return user

    @BaseService.measure_operation("login")
    def login(self, email: Optional[str], password: Optional[str]) -> User:
        """Check credentials and mark the user online."""
        if not email or not password:
            raise ValidationException("Email and password required")

        user = self.repository.find_by_email(email)
        if user is None:
            verify_password(password, DUMMY_HASH_FOR_TIMING_ATTACK)
            raise UnauthorizedException("Invalid credentials")
        if not verify_password(password, user.password_hash):
            raise UnauthorizedException("Invalid credentials")

        with self.transaction():
            user.online_status = True

        self.logger.info("User logged in", extra={"user_id": user.id})
        return user

    @BaseService.measure_operation("logout")
    def logout(self, user_id: str) -> User:
        user = self._get_user_or_404(user_id)
        with self.transaction():
            user.online_status = False
        return user

    @BaseService.measure_operation("list_users")
    def list_users(self) -> List[User]:
        return self.repository.list_users()

    @BaseService.measure_operation("get_user")
    def get_user(self, user_id: str) -> User:
        return self._get_user_or_404(user_id)

    @BaseService.measure_operation("update_status")
    def update_status(self, user_id: str, online_status: Optional[bool]) -> User:
        if online_status is None:
            raise ValidationException("onlineStatus is required")
        user = self._get_user_or_404(user_id)
        with self.transaction():
            user.online_status = bool(online_status)
        return user

    @BaseService.measure_operation("update_profile")
    def update_profile(self, user_id: str, changes: Dict[str, Any]) -> User:
        """
        Apply profile edits. Only keys present in `changes` are written;
        a username change must stay unique.
        """
        user = self._get_user_or_404(user_id)
        updates = {key: value for key, value in changes.items() if key in PROFILE_FIELDS}

        if "username" in updates:
            new_username = (updates["username"] or "").strip()
            self._validate_username(new_username)
            if self.repository.username_taken(new_username, exclude_user_id=user.id):
                raise ConflictException("Username already taken")
            updates["username"] = new_username

        for key in ("bio", "avatar_url", "phone_number", "e2e_public_key"):
            if key in updates:
                updates[key] = str(updates[key] or "")

        with self.transaction():
            for key, value in updates.items():
                setattr(user, key, value)

        return user

    # ------------------------------------------------------------------
    # Follow graph
    # ------------------------------------------------------------------

    @BaseService.measure_operation("send_follow_request")
    def send_follow_request(self, user_id: str, target_id: str) -> List[User]:
        """
        Ask to follow `target_id`. Returns the target's pending requesters.
        """
        if user_id == target_id:
            raise ValidationException("Cannot follow yourself")
        self._get_user_or_404(user_id)
        target = self._get_user_or_404(target_id)

        if self.repository.is_following(user_id, target.id):
            raise ValidationException("Already following this user")
        if self.repository.has_follow_request(user_id, target.id):
            raise ValidationException("Follow request already sent")

        with self.transaction():
            self.repository.add_follow_request(user_id, target.id)

        self.logger.info(
            "Follow request sent", extra={"requester_id": user_id, "target_id": target.id}
        )
        return self.repository.get_received_requests(target.id)

    @BaseService.measure_operation("accept_follow_request")
    def accept_follow_request(self, user_id: str, requester_id: str) -> List[User]:
        """
        Accept `requester_id`'s request: the request row goes away and the
        requester now follows `user_id`. Returns `user_id`'s followers.

        The request removal and the edge insert are committed separately,
        request first, so a failure in between never leaves a pair both
        pending and following.
        """
        if user_id == requester_id:
            raise ValidationException("Cannot follow yourself")
        user = self._get_user_or_404(user_id)
        requester = self._get_user_or_404(requester_id)

        with self.transaction():
            self.repository.remove_follow_request(requester.id, user.id)
        with self.transaction():
            self.repository.add_follow(requester.id, user.id)

        self.logger.info(
            "Follow request accepted", extra={"user_id": user.id, "requester_id": requester.id}
        )
        return self.repository.get_followers(user.id)

    @BaseService.measure_operation("reject_follow_request")
    def reject_follow_request(self, user_id: str, requester_id: str) -> List[User]:
        """Drop the pending request. Returns the remaining requesters."""
        user = self._get_user_or_404(user_id)
        with self.transaction():
            self.repository.remove_follow_request(requester_id, user.id)
        return self.repository.get_received_requests(user.id)

    @BaseService.measure_operation("unfollow")
    def unfollow(self, user_id: str, target_id: str) -> List[User]:
        """Remove the follow edge. Returns who `user_id` still follows."""
        user = self._get_user_or_404(user_id)
        target = self._get_user_or_404(target_id)
        with self.transaction():
            self.repository.remove_follow(user.id, target.id)
        return self.repository.get_following(user.id)

    def get_follow_requests(self, user_id: str) -> List[User]:
        user = self._get_user_or_404(user_id)
        return self.repository.get_received_requests(user.id)

    def get_followers(self, user_id: str) -> List[User]:
        user = self._get_user_or_404(user_id)
        return self.repository.get_followers(user.id)

    def get_following(self, user_id: str) -> List[User]:
        user = self._get_user_or_404(user_id)
        return self.repository.get_following(user.id)

    def get_sent_follow_requests(self, user_id: str) -> List[User]:
        require_ulid(user_id, "Invalid userId")
        return self.repository.get_sent_requests(user_id)

    @BaseService.measure_operation("get_profile")
    def get_profile(self, user_id: str) -> ProfileView:
        user = self._get_user_or_404(user_id)
        return ProfileView(
            user=user,
            followers=self.repository.get_followers(user.id),
            following=self.repository.get_following(user.id),
            follow_requests=self.repository.get_received_requests(user.id),
        )

    def get_follow_status(self, user_id: str, target_id: str) -> FollowStatusView:
        """
        Relationship from `user_id` towards `target_id`: following, a
        request still waiting on the target, or nothing.
        """
        user = self._get_user_or_404(user_id)
        require_ulid(target_id, "Invalid targetId")
        return FollowStatusView(
            is_following=self.repository.is_following(user.id, target_id),
            has_pending_request=self.repository.has_follow_request(user.id, target_id),
        )

    @BaseService.measure_operation("get_follow_info")
    def get_follow_info(self, user_id: str) -> FollowInfo:
        user = self._get_user_or_404(user_id)
        return FollowInfo(
            received_requests=self.repository.get_received_requests(user.id),
            sent_requests=self.repository.get_sent_requests(user.id),
            followers=self.repository.get_followers(user.id),
            following=self.repository.get_following(user.id),
        )
