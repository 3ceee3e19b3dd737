"""Call signaling endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, status

from huddle.schemas.call import CallCreate, CallResponse
from huddle.schemas.common import OperationResult

from ..dependencies import AuthServiceDep, CallSignalingDep, CurrentUserDep

router = APIRouter(prefix="/calls", tags=["calls"])


@router.post("", response_model=CallResponse, status_code=status.HTTP_201_CREATED)
def initiate_call(
    payload: CallCreate,
    current_user: CurrentUserDep,
    auth: AuthServiceDep,
    signaling: CallSignalingDep,
) -> dict[str, Any]:
    """Ring ``receiver_id``; the call stays PENDING until answered or missed."""
    receiver = auth.get_user(payload.receiver_id)
    call = signaling.initiate(current_user.id, receiver.id, payload.kind)
    return call.snapshot()


@router.get("/{call_id}", response_model=CallResponse)
def get_call(
    call_id: str,
    current_user: CurrentUserDep,
    signaling: CallSignalingDep,
) -> dict[str, Any]:
    return signaling.get(call_id, current_user.id).snapshot()


@router.post("/{call_id}/accept", response_model=OperationResult)
def accept_call(
    call_id: str,
    current_user: CurrentUserDep,
    signaling: CallSignalingDep,
) -> OperationResult:
    return OperationResult(success=signaling.accept(call_id, current_user.id))


@router.post("/{call_id}/reject", response_model=OperationResult)
def reject_call(
    call_id: str,
    current_user: CurrentUserDep,
    signaling: CallSignalingDep,
) -> OperationResult:
    return OperationResult(success=signaling.reject(call_id, current_user.id))


@router.post("/{call_id}/end", response_model=OperationResult)
def end_call(
    call_id: str,
    current_user: CurrentUserDep,
    signaling: CallSignalingDep,
) -> OperationResult:
    return OperationResult(success=signaling.end(call_id, current_user.id))
