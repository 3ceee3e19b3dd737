"""Banking endpoints.

Accounts are addressed by id only and carry no session check.
"""

from __future__ import annotations

from fastapi import APIRouter

from huddle.schemas.account import AmountRequest, BalanceResponse, TransferRequest
from huddle.schemas.common import OperationResult

from ..dependencies import BankingServiceDep

router = APIRouter(prefix="/accounts", tags=["banking"])


@router.get("/{account_id}/balance", response_model=BalanceResponse)
def check_balance(account_id: str, banking: BankingServiceDep) -> BalanceResponse:
    return BalanceResponse(account_id=account_id, balance=banking.check_balance(account_id))


@router.post("/{account_id}/deposit", response_model=BalanceResponse)
def deposit(account_id: str, payload: AmountRequest, banking: BankingServiceDep) -> BalanceResponse:
    return BalanceResponse(
        account_id=account_id, balance=banking.deposit(account_id, payload.amount)
    )


@router.post("/{account_id}/withdraw", response_model=BalanceResponse)
def withdraw(account_id: str, payload: AmountRequest, banking: BankingServiceDep) -> BalanceResponse:
    return BalanceResponse(
        account_id=account_id, balance=banking.withdraw(account_id, payload.amount)
    )


@router.post("/transfer", response_model=OperationResult)
def transfer(payload: TransferRequest, banking: BankingServiceDep) -> OperationResult:
    """Move funds atomically; the recipient is notified if subscribed."""
    return OperationResult(
        success=banking.transfer(payload.from_account, payload.to_account, payload.amount)
    )
