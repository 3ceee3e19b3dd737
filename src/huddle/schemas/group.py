"""Group-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from huddle.models.group import GroupRole


class GroupCreate(BaseModel):
    """Schema for creating a group."""

    name: str = Field(..., max_length=128)
    description: str | None = None
    avatar_ref: str | None = None


class GroupUpdate(BaseModel):
    """Schema for replacing a group's details."""

    name: str = Field(..., max_length=128)
    description: str | None = None
    avatar_ref: str | None = None


class GroupResponse(BaseModel):
    id: int
    name: str
    description: str | None
    avatar_ref: str | None
    creator_user_id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MemberAdd(BaseModel):
    user_id: int


class RoleUpdate(BaseModel):
    role: GroupRole


class RoleResponse(BaseModel):
    """Role of a user in a group; ``None`` when not a member."""

    group_id: int
    user_id: int
    role: GroupRole | None
