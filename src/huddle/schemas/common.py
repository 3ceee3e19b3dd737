"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body returned for every mapped domain failure."""

    detail: str = Field(..., description="Human readable failure message.")
    code: str = Field(..., description="Stable machine readable error code.")


class OperationResult(BaseModel):
    """Boolean outcome for operations that report success or a no-op."""

    success: bool


class PushEnvelope(BaseModel):
    """Frame written to a subscriber's callback channel."""

    event: str
    payload: dict[str, Any] = Field(default_factory=dict)
