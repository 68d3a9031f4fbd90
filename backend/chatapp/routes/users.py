# backend/chatapp/routes/users.py
"""
User routes: accounts, presence and the follow graph.

No endpoint here emits realtime events, so they are plain sync handlers
that FastAPI runs in its threadpool.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from ..dependencies import get_user_service
from ..schemas.user import (
    FollowInfoStats,
    FollowStatusResponse,
    LoginRequest,
    ProfileStats,
    ProfileUpdateRequest,
    SignUpRequest,
    StatusUpdateRequest,
    UserResponse,
    summaries,
)
from ..services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


def _user(user) -> Dict[str, Any]:
    return UserResponse.model_validate(user).to_wire()


@router.post("/sign-up", status_code=status.HTTP_201_CREATED)
def sign_up(
    payload: SignUpRequest, service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    user = service.sign_up(
        username=payload.username,
        email=payload.email,
        password=payload.password,
        name=payload.name,
    )
    return {
        "message": "Sign-up successful",
        "userId": user.id,
        "username": user.username,
        "email": user.email,
    }


@router.post("/login")
def login(payload: LoginRequest, service: UserService = Depends(get_user_service)) -> Dict[str, Any]:
    user = service.login(payload.email, payload.password)
    return {"message": "Login successful", "user": _user(user)}


@router.get("/")
def list_users(service: UserService = Depends(get_user_service)) -> list:
    return [_user(user) for user in service.list_users()]


@router.get("/{user_id}")
def get_user(user_id: str, service: UserService = Depends(get_user_service)) -> Dict[str, Any]:
    return _user(service.get_user(user_id))


@router.put("/{user_id}/status")
def update_status(
    user_id: str,
    payload: StatusUpdateRequest,
    service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    user = service.update_status(user_id, payload.online_status)
    return {"message": "Status updated", "user": _user(user)}


@router.put("/{user_id}/update")
def update_profile(
    user_id: str,
    payload: ProfileUpdateRequest,
    service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    user = service.update_profile(user_id, payload.model_dump(exclude_unset=True))
    return {"message": "Profile updated successfully", "user": _user(user)}


@router.post("/{user_id}/logout")
def logout(user_id: str, service: UserService = Depends(get_user_service)) -> Dict[str, Any]:
    user = service.logout(user_id)
    return {"message": "Logout successful", "user": _user(user)}


@router.post("/{user_id}/follow-request/{target_id}")
def send_follow_request(
    user_id: str, target_id: str, service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    requests = service.send_follow_request(user_id, target_id)
    return {"message": "Follow request sent", "followRequests": summaries(requests)}


@router.post("/{user_id}/accept-follow/{requester_id}")
def accept_follow(
    user_id: str, requester_id: str, service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    followers = service.accept_follow_request(user_id, requester_id)
    return {
        "message": "Follow request accepted",
        "followers": summaries(followers),
        "followRequests": summaries(service.get_follow_requests(user_id)),
    }


@router.post("/{user_id}/reject-follow/{requester_id}")
def reject_follow(
    user_id: str, requester_id: str, service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    remaining = service.reject_follow_request(user_id, requester_id)
    return {"message": "Follow request rejected", "followRequests": summaries(remaining)}


@router.post("/{user_id}/unfollow/{target_id}")
def unfollow(
    user_id: str, target_id: str, service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    following = service.unfollow(user_id, target_id)
    return {"message": "Unfollowed successfully", "following": summaries(following)}


@router.get("/{user_id}/follow-requests")
def get_follow_requests(
    user_id: str, service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    return {"followRequests": summaries(service.get_follow_requests(user_id))}


@router.get("/{user_id}/followers")
def get_followers(user_id: str, service: UserService = Depends(get_user_service)) -> Dict[str, Any]:
    return {"followers": summaries(service.get_followers(user_id))}


@router.get("/{user_id}/following")
def get_following(user_id: str, service: UserService = Depends(get_user_service)) -> Dict[str, Any]:
    return {"following": summaries(service.get_following(user_id))}


@router.get("/{user_id}/profile")
def get_profile(user_id: str, service: UserService = Depends(get_user_service)) -> Dict[str, Any]:
    profile = service.get_profile(user_id)
    return {
        "user": {
            **_user(profile.user),
            "followers": summaries(profile.followers),
            "following": summaries(profile.following),
            "followRequests": summaries(profile.follow_requests),
        },
        "stats": ProfileStats(
            followers_count=len(profile.followers),
            following_count=len(profile.following),
            follow_requests_count=len(profile.follow_requests),
        ).to_wire(),
    }


@router.get("/{user_id}/follow-status/{target_id}")
def get_follow_status(
    user_id: str, target_id: str, service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    view = service.get_follow_status(user_id, target_id)
    return FollowStatusResponse(
        is_following=view.is_following,
        has_pending_request=view.has_pending_request,
        status=view.status.value,
    ).to_wire()


@router.get("/{user_id}/sent-follow-requests")
def get_sent_follow_requests(
    user_id: str, service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    return {"sentRequests": summaries(service.get_sent_follow_requests(user_id))}


@router.get("/{user_id}/follow-info")
def get_follow_info(user_id: str, service: UserService = Depends(get_user_service)) -> Dict[str, Any]:
    info = service.get_follow_info(user_id)
    return {
        "receivedRequests": summaries(info.received_requests),
        "sentRequests": summaries(info.sent_requests),
        "followers": summaries(info.followers),
        "following": summaries(info.following),
        "stats": FollowInfoStats(
            received_count=len(info.received_requests),
            sent_count=len(info.sent_requests),
            followers_count=len(info.followers),
            following_count=len(info.following),
        ).to_wire(),
    }
