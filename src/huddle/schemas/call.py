"""Call signaling Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from huddle.services.calls import CallKind, CallState


class CallCreate(BaseModel):
    """Schema for starting a call to one user."""

    receiver_id: int
    kind: CallKind = CallKind.VIDEO


class CallResponse(BaseModel):
    call_id: str
    caller_id: int
    receiver_id: int
    group_id: int | None
    kind: CallKind
    state: CallState
    created_at: datetime
    answered_at: datetime | None
    ended_at: datetime | None
