"""Message-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from huddle.db.time import as_utc
from huddle.models.message import MessageKind


class MessageCreate(BaseModel):
    """Schema for sending a direct or group message.

    Exactly one of ``receiver_id`` and ``group_id`` must be set; the service
    layer enforces this so the failure maps to ``invalid_argument``.
    """

    receiver_id: int | None = None
    group_id: int | None = None
    body: str = ""
    kind: MessageKind = MessageKind.TEXT
    file_ref: str | None = None


class MessageEdit(BaseModel):
    body: str = Field(..., description="Replacement text for the message.")


class MessageResponse(BaseModel):
    """Message as delivered to clients, enriched with sender details."""

    id: int
    sender_id: int
    receiver_id: int | None
    group_id: int | None
    body: str
    kind: MessageKind
    file_ref: str | None
    read: bool
    edited: bool
    deleted: bool
    created_at: datetime
    sender_name: str | None = None
    sender_avatar_ref: str | None = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at")
    @classmethod
    def _aware_created_at(cls, value: datetime) -> datetime:
        return as_utc(value)
