"""WebSocket callback channels and explicit unsubscription.

Opening a socket registers it as the subscriber's callback handle; closing it
unregisters that handle. Chat and call channels authenticate with the session
token in the ``token`` query parameter.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Hashable

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from huddle.core.errors import HuddleError
from huddle.core.settings import settings
from huddle.schemas.common import OperationResult
from huddle.services.callbacks import PushEvent, WebSocketPushHandle
from huddle.services.registry import SubscriptionRegistry

from ..dependencies import (
    BankingServiceDep,
    CurrentUserDep,
    FanoutDep,
    SessionFactoryDep,
    user_from_token,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


async def _serve(websocket: WebSocket, registry: SubscriptionRegistry, subject_id: Hashable) -> None:
    await websocket.accept()
    handle = WebSocketPushHandle(
        websocket,
        asyncio.get_running_loop(),
        settings.push_timeout_seconds,
        on_failure=lambda: registry.unregister(subject_id, handle),
    )
    registry.register(subject_id, handle)
    try:
        await websocket.send_json(
            PushEvent("subscribed", {"channel": registry.name, "subject": subject_id}).envelope()
        )
        while True:
            text = await websocket.receive_text()
            if text == "ping":
                await websocket.send_json(PushEvent("pong").envelope())
    except WebSocketDisconnect:
        logger.debug("%s subscriber %s disconnected", registry.name, subject_id)
    finally:
        handle.close()
        registry.unregister(subject_id, handle)


def _user_id_for(token: str, session_factory: sessionmaker) -> int:
    # Closed before serving: a subscriber must not pin a pooled connection.
    with session_factory() as db:
        return user_from_token(token, db).id


async def _authenticate(
    websocket: WebSocket, token: str, session_factory: sessionmaker
) -> int | None:
    try:
        user_id = await run_in_threadpool(_user_id_for, token, session_factory)
    except HuddleError as exc:
        logger.warning("Rejected callback channel: %s", exc.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return None
    return user_id


@router.websocket("/ws/chat")
async def chat_channel(
    websocket: WebSocket,
    session_factory: SessionFactoryDep,
    fanout: FanoutDep,
    token: str = Query(""),
) -> None:
    """Receive chat pushes: messages, presence, group and friendship events."""
    user_id = await _authenticate(websocket, token, session_factory)
    if user_id is not None:
        await _serve(websocket, fanout.chat, user_id)


@router.websocket("/ws/calls")
async def call_channel(
    websocket: WebSocket,
    session_factory: SessionFactoryDep,
    fanout: FanoutDep,
    token: str = Query(""),
) -> None:
    """Receive call signaling pushes."""
    user_id = await _authenticate(websocket, token, session_factory)
    if user_id is not None:
        await _serve(websocket, fanout.video, user_id)


@router.websocket("/ws/accounts/{account_id}")
async def account_channel(
    websocket: WebSocket,
    account_id: str,
    fanout: FanoutDep,
    banking: BankingServiceDep,
) -> None:
    """Receive ``funds_received`` pushes for one account."""
    try:
        banking.check_balance(account_id)
    except HuddleError as exc:
        logger.warning("Rejected account channel for %r: %s", account_id, exc.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    await _serve(websocket, fanout.accounts, account_id.strip())


@router.post("/clients/unregister", response_model=OperationResult)
def unregister_client(current_user: CurrentUserDep, fanout: FanoutDep) -> OperationResult:
    """Drop the caller's chat and call subscriptions."""
    removed_chat = fanout.chat.unregister(current_user.id)
    removed_video = fanout.video.unregister(current_user.id)
    return OperationResult(success=removed_chat or removed_video)
