"""Group management endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from huddle.schemas.common import OperationResult
from huddle.schemas.group import (
    GroupCreate,
    GroupResponse,
    GroupUpdate,
    MemberAdd,
    RoleResponse,
    RoleUpdate,
)
from huddle.schemas.user import UserResponse

from ..dependencies import CurrentUserDep, GroupPolicyDep

router = APIRouter(prefix="/groups", tags=["groups"])


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
def create_group(
    payload: GroupCreate,
    current_user: CurrentUserDep,
    groups: GroupPolicyDep,
) -> GroupResponse:
    """Create a group with the caller as its first Admin."""
    group = groups.create_group(
        payload.name, payload.description, current_user.id, payload.avatar_ref
    )
    return GroupResponse.model_validate(group)


@router.get("", response_model=list[GroupResponse])
def list_my_groups(current_user: CurrentUserDep, groups: GroupPolicyDep) -> list[GroupResponse]:
    return [GroupResponse.model_validate(g) for g in groups.list_user_groups(current_user.id)]


@router.get("/{group_id}", response_model=GroupResponse)
def get_group(group_id: int, current_user: CurrentUserDep, groups: GroupPolicyDep) -> GroupResponse:
    return GroupResponse.model_validate(groups.get_group(group_id))


@router.put("/{group_id}", response_model=GroupResponse)
def update_group(
    group_id: int,
    payload: GroupUpdate,
    current_user: CurrentUserDep,
    groups: GroupPolicyDep,
) -> GroupResponse:
    group = groups.update_details(
        group_id, payload.name, payload.description, payload.avatar_ref, current_user.id
    )
    return GroupResponse.model_validate(group)


@router.get("/{group_id}/role/{user_id}", response_model=RoleResponse)
def get_group_role(
    group_id: int,
    user_id: int,
    current_user: CurrentUserDep,
    groups: GroupPolicyDep,
) -> RoleResponse:
    """Return the role of ``user_id`` in the group, or null for non-members."""
    return RoleResponse(
        group_id=group_id, user_id=user_id, role=groups.get_role(group_id, user_id)
    )


@router.get("/{group_id}/members", response_model=list[UserResponse])
def list_group_members(
    group_id: int,
    current_user: CurrentUserDep,
    groups: GroupPolicyDep,
) -> list[UserResponse]:
    return [UserResponse.model_validate(u) for u in groups.list_members(group_id)]


@router.post("/{group_id}/members", response_model=OperationResult)
def add_member(
    group_id: int,
    payload: MemberAdd,
    current_user: CurrentUserDep,
    groups: GroupPolicyDep,
) -> OperationResult:
    return OperationResult(success=groups.add_member(group_id, payload.user_id, current_user.id))


@router.delete("/{group_id}/members/{user_id}", response_model=OperationResult)
def remove_member(
    group_id: int,
    user_id: int,
    current_user: CurrentUserDep,
    groups: GroupPolicyDep,
) -> OperationResult:
    """Remove a member; members may remove themselves to leave."""
    return OperationResult(success=groups.remove_member(group_id, user_id, current_user.id))


@router.put("/{group_id}/members/{user_id}/role", response_model=OperationResult)
def set_member_role(
    group_id: int,
    user_id: int,
    payload: RoleUpdate,
    current_user: CurrentUserDep,
    groups: GroupPolicyDep,
) -> OperationResult:
    return OperationResult(
        success=groups.set_member_role(group_id, user_id, payload.role, current_user.id)
    )


@router.delete("/{group_id}", response_model=OperationResult)
def delete_group(group_id: int, current_user: CurrentUserDep, groups: GroupPolicyDep) -> OperationResult:
    """Delete a group once the calling Admin is its only member."""
    return OperationResult(success=groups.delete_group(group_id, current_user.id))
