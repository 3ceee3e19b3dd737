"""Server-to-client callback interfaces and the WebSocket push handle.

A callback is anything the subscription registry can push a :class:`PushEvent`
into. The typed interfaces (:class:`ChatClientCallback`,
:class:`VideoClientCallback`, :class:`AccountCallback`) turn an event into a
method call such as ``on_message(message)``; :class:`WebSocketPushHandle`
writes the event as a JSON envelope to a live socket instead.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any

from fastapi import WebSocket

from huddle.schemas.common import PushEnvelope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PushEvent:
    """One notification addressed to a subscriber.

    ``payload`` holds JSON-ready values keyed by the callback argument names.
    """

    name: str
    payload: dict[str, Any] = field(default_factory=dict)

    def envelope(self) -> dict[str, Any]:
        return PushEnvelope(event=self.name, payload=self.payload).model_dump(mode="json")


class ClientCallback(ABC):
    """Anything that can receive pushes from the server."""

    @abstractmethod
    def deliver(self, event: PushEvent) -> None:
        """Deliver ``event``; raising marks the handle as dead."""

    def close(self) -> None:
        """Release the handle after it has been replaced or evicted."""


class _TypedCallback(ClientCallback):
    """Dispatch events to ``on_<name>`` methods with the payload as keyword arguments."""

    handlers: dict[str, str] = {}

    def deliver(self, event: PushEvent) -> None:
        method = self.handlers.get(event.name)
        if method is None:
            raise ValueError(f"{type(self).__name__} cannot handle event {event.name!r}")
        getattr(self, method)(**event.payload)


class ChatClientCallback(_TypedCallback):
    """Chat notifications pushed to a logged-in user."""

    handlers = {
        "message": "on_message",
        "status": "on_status",
        "joined_group": "on_joined_group",
        "left_group": "on_left_group",
        "read": "on_read",
        "message_edited": "on_message_edited",
        "message_deleted": "on_message_deleted",
        "friend_request": "on_friend_request",
    }

    @abstractmethod
    def on_message(self, message: dict[str, Any]) -> None: ...

    @abstractmethod
    def on_status(self, user_id: int, status: str) -> None: ...

    @abstractmethod
    def on_joined_group(self, group_id: int, user: dict[str, Any]) -> None: ...

    @abstractmethod
    def on_left_group(self, group_id: int, user_id: int) -> None: ...

    @abstractmethod
    def on_read(self, reader_id: int, sender_id: int) -> None: ...

    @abstractmethod
    def on_message_edited(self, message: dict[str, Any]) -> None: ...

    @abstractmethod
    def on_message_deleted(self, message_id: int) -> None: ...

    @abstractmethod
    def on_friend_request(self, friendship: dict[str, Any]) -> None: ...


class VideoClientCallback(_TypedCallback):
    """Call signaling notifications."""

    handlers = {
        "incoming_call": "on_incoming_call",
        "call_accepted": "on_accepted",
        "call_rejected": "on_rejected",
        "call_ended": "on_ended",
        "call_missed": "on_missed",
    }

    @abstractmethod
    def on_incoming_call(self, call: dict[str, Any]) -> None: ...

    @abstractmethod
    def on_accepted(self, call: dict[str, Any]) -> None: ...

    @abstractmethod
    def on_rejected(self, call: dict[str, Any]) -> None: ...

    @abstractmethod
    def on_ended(self, call: dict[str, Any]) -> None: ...

    @abstractmethod
    def on_missed(self, call: dict[str, Any]) -> None: ...


class AccountCallback(_TypedCallback):
    """Banking notifications for one account."""

    handlers = {"funds_received": "on_funds_received"}

    @abstractmethod
    def on_funds_received(self, amount: str, from_account: str) -> None: ...


class WebSocketPushHandle(ClientCallback):
    """Push events over an accepted WebSocket owned by ``loop``.

    Pushes normally come from request worker threads; they are scheduled on
    the socket's event loop and waited for at most ``timeout`` seconds so a
    stalled client cannot hold a worker forever. A push issued on the loop
    itself is sent as a task; if that send fails the handle closes and
    ``on_failure`` runs so the owner can drop it.
    """

    def __init__(
        self,
        websocket: WebSocket,
        loop: asyncio.AbstractEventLoop,
        timeout: float,
        on_failure: Callable[[], None] | None = None,
    ) -> None:
        self._websocket = websocket
        self._loop = loop
        self._timeout = timeout
        self._on_failure = on_failure
        self._closed = False
        self._pending: set[asyncio.Task] = set()

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, event: PushEvent) -> None:
        if self._closed or self._loop.is_closed():
            raise ConnectionError("callback channel is closed")
        frame = event.envelope()
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            # Already on the socket's loop; blocking here would deadlock.
            task = self._loop.create_task(self._websocket.send_json(frame))
            self._pending.add(task)
            task.add_done_callback(self._sent)
            return
        future = asyncio.run_coroutine_threadsafe(self._websocket.send_json(frame), self._loop)
        try:
            future.result(timeout=self._timeout)
        except FutureTimeoutError as exc:
            future.cancel()
            raise TimeoutError(f"push of {event.name!r} timed out") from exc
        logger.debug("Pushed %s over WebSocket", event.name)

    def _sent(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled() or task.exception() is None:
            return
        logger.warning("WebSocket push failed: %s", task.exception())
        self._closed = True
        if self._on_failure is not None:
            self._on_failure()

    def close(self) -> None:
        self._closed = True
