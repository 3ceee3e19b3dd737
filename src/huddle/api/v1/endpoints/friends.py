"""Friend request, friendship and block endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from huddle.schemas.common import OperationResult
from huddle.schemas.friendship import (
    BlockStatus,
    BlockStatusResponse,
    FriendRequestCreate,
    FriendshipResponse,
)
from huddle.schemas.user import UserResponse

from ..dependencies import CurrentUserDep, FriendshipPolicyDep

router = APIRouter(prefix="/friends", tags=["friends"])


@router.post("/requests", response_model=OperationResult)
def send_friend_request(
    payload: FriendRequestCreate,
    current_user: CurrentUserDep,
    friendships: FriendshipPolicyDep,
) -> OperationResult:
    """Ask ``addressee_id`` to be friends; false if the pair already has a relation."""
    return OperationResult(
        success=friendships.send_request(current_user.id, payload.addressee_id)
    )


@router.get("/requests", response_model=list[FriendshipResponse])
def get_friend_requests(
    current_user: CurrentUserDep,
    friendships: FriendshipPolicyDep,
) -> list[FriendshipResponse]:
    """List pending requests addressed to the caller."""
    return [
        FriendshipResponse.model_validate(row)
        for row in friendships.get_friend_requests(current_user.id)
    ]


@router.post("/requests/{friendship_id}/accept", response_model=OperationResult)
def accept_friend_request(
    friendship_id: int,
    current_user: CurrentUserDep,
    friendships: FriendshipPolicyDep,
) -> OperationResult:
    return OperationResult(success=friendships.accept(friendship_id, current_user.id))


@router.post("/requests/{friendship_id}/reject", response_model=OperationResult)
def reject_friend_request(
    friendship_id: int,
    current_user: CurrentUserDep,
    friendships: FriendshipPolicyDep,
) -> OperationResult:
    return OperationResult(success=friendships.reject(friendship_id, current_user.id))


@router.get("", response_model=list[UserResponse])
def get_friends(
    current_user: CurrentUserDep,
    friendships: FriendshipPolicyDep,
) -> list[UserResponse]:
    return [UserResponse.model_validate(u) for u in friendships.get_friends(current_user.id)]


@router.delete("/{other_id}", response_model=OperationResult)
def remove_friend(
    other_id: int,
    current_user: CurrentUserDep,
    friendships: FriendshipPolicyDep,
) -> OperationResult:
    return OperationResult(success=friendships.remove_friend(current_user.id, other_id))


@router.post("/blocks/{other_id}", response_model=OperationResult)
def block_user(
    other_id: int,
    current_user: CurrentUserDep,
    friendships: FriendshipPolicyDep,
) -> OperationResult:
    return OperationResult(success=friendships.block(current_user.id, other_id))


@router.delete("/blocks/{other_id}", response_model=OperationResult)
def unblock_user(
    other_id: int,
    current_user: CurrentUserDep,
    friendships: FriendshipPolicyDep,
) -> OperationResult:
    """Lift a block the caller placed; lifting someone else's block is forbidden."""
    return OperationResult(success=friendships.unblock(current_user.id, other_id))


@router.get("/blocks/{other_id}", response_model=BlockStatusResponse)
def get_block_status(
    other_id: int,
    current_user: CurrentUserDep,
    friendships: FriendshipPolicyDep,
) -> BlockStatusResponse:
    block_status = friendships.get_block_status(current_user.id, other_id)
    return BlockStatusResponse(
        status=block_status,
        is_blocked=block_status is not BlockStatus.NONE,
    )
