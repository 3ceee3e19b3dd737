"""Banking Pydantic schemas."""
from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class AmountRequest(BaseModel):
    amount: Decimal = Field(..., description="Positive amount to move.")


class TransferRequest(BaseModel):
    """Schema for moving funds between two accounts."""

    from_account: str
    to_account: str
    amount: Decimal


class BalanceResponse(BaseModel):
    account_id: str
    balance: Decimal
