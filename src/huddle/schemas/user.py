"""User-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from huddle.models.user import UserStatus


class UserCreate(BaseModel):
    """Schema for registering a new account."""

    username: str = Field(..., max_length=64)
    password: str
    email: str = Field(..., max_length=255)
    display_name: str | None = Field(None, max_length=128)
    avatar_ref: str | None = None


class LoginRequest(BaseModel):
    """Credentials presented at login."""

    username: str
    password: str


class UserResponse(BaseModel):
    """Public view of a user; the password hash never leaves the server."""

    id: int
    username: str
    email: str
    display_name: str | None
    avatar_ref: str | None
    status: UserStatus
    last_seen: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RegisterResponse(BaseModel):
    """Outcome of a registration attempt."""

    created: bool
    outcome: str
    user: UserResponse | None = None


class TokenResponse(BaseModel):
    """Session token issued at login."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class StatusUpdate(BaseModel):
    """Schema for an explicit presence change."""

    status: UserStatus


class UnreadCount(BaseModel):
    count: int
