"""Direct and group message endpoints for the Huddle API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, status

from huddle.schemas.common import OperationResult
from huddle.schemas.message import MessageCreate, MessageEdit, MessageResponse
from huddle.services.messages import MAX_PAGE_SIZE

from ..dependencies import CurrentUserDep, MessagePolicyDep

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def send_message(
    payload: MessageCreate,
    current_user: CurrentUserDep,
    messages: MessagePolicyDep,
) -> dict[str, Any]:
    """Send a message to one user or one group; the stored message is returned."""
    return messages.send_message(current_user.id, payload)


@router.get("/direct/{other_id}", response_model=list[MessageResponse])
def list_direct_messages(
    other_id: int,
    current_user: CurrentUserDep,
    messages: MessagePolicyDep,
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
) -> list[dict[str, Any]]:
    """Return one page of the conversation with ``other_id``, oldest first."""
    return messages.list_direct_messages(current_user.id, other_id, limit, offset)


@router.get("/groups/{group_id}", response_model=list[MessageResponse])
def list_group_messages(
    group_id: int,
    current_user: CurrentUserDep,
    messages: MessagePolicyDep,
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
) -> list[dict[str, Any]]:
    return messages.list_group_messages(current_user.id, group_id, limit, offset)


@router.post("/read/{sender_id}", response_model=OperationResult)
def mark_as_read(
    sender_id: int,
    current_user: CurrentUserDep,
    messages: MessagePolicyDep,
) -> OperationResult:
    """Mark everything ``sender_id`` sent to the caller as read."""
    return OperationResult(success=messages.mark_as_read(current_user.id, sender_id))


@router.put("/{message_id}", response_model=OperationResult)
def edit_message(
    message_id: int,
    payload: MessageEdit,
    current_user: CurrentUserDep,
    messages: MessagePolicyDep,
) -> OperationResult:
    return OperationResult(
        success=messages.edit_message(message_id, current_user.id, payload.body)
    )


@router.delete("/{message_id}", response_model=OperationResult)
def delete_message(
    message_id: int,
    current_user: CurrentUserDep,
    messages: MessagePolicyDep,
) -> OperationResult:
    return OperationResult(success=messages.delete_message(message_id, current_user.id))
