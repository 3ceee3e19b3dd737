"""User directory and presence endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query

from huddle.schemas.common import OperationResult
from huddle.schemas.user import StatusUpdate, UnreadCount, UserResponse

from ..dependencies import AuthServiceDep, CurrentUserDep, MessagePolicyDep

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=list[UserResponse])
def search_users(
    current_user: CurrentUserDep,
    auth: AuthServiceDep,
    keyword: str = Query("", max_length=64),
) -> list[UserResponse]:
    """Find users whose username or display name contains ``keyword``."""
    return [UserResponse.model_validate(user) for user in auth.search(keyword)]


@router.put("/me/status", response_model=OperationResult)
def update_status(
    payload: StatusUpdate,
    current_user: CurrentUserDep,
    auth: AuthServiceDep,
) -> OperationResult:
    return OperationResult(success=auth.update_status(current_user.id, payload.status))


@router.get("/me/unread-count", response_model=UnreadCount)
def unread_count(current_user: CurrentUserDep, messages: MessagePolicyDep) -> UnreadCount:
    """Count unread direct messages addressed to the caller."""
    return UnreadCount(count=messages.unread_count(current_user.id))


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, current_user: CurrentUserDep, auth: AuthServiceDep) -> UserResponse:
    return UserResponse.model_validate(auth.get_user(user_id))
