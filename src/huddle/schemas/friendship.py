"""Friendship and block Pydantic schemas."""
from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from huddle.models.friendship import FriendshipState


class BlockStatus(str, enum.Enum):
    """Block relation as seen from one side of a pair."""

    NONE = "NONE"
    BLOCKED_BY_ME = "BLOCKED_BY_ME"
    BLOCKED_BY_OTHER = "BLOCKED_BY_OTHER"


class FriendRequestCreate(BaseModel):
    addressee_id: int


class FriendshipResponse(BaseModel):
    """A friendship row; ``initiator_id`` is the requester or the blocker."""

    id: int
    user_low: int
    user_high: int
    initiator_id: int
    state: FriendshipState
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BlockStatusResponse(BaseModel):
    status: BlockStatus
    is_blocked: bool
