"""Tests for the WebSocket push handle."""

import asyncio

import pytest

from huddle.services.callbacks import PushEvent, WebSocketPushHandle
from huddle.services.registry import SubscriptionRegistry


class BrokenSocket:
    async def send_json(self, data):
        raise ConnectionResetError("peer reset")


class RecordingSocket:
    def __init__(self) -> None:
        self.frames = []

    async def send_json(self, data):
        self.frames.append(data)


def test_failed_send_on_loop_evicts_handle() -> None:
    registry = SubscriptionRegistry("chat")

    async def scenario() -> WebSocketPushHandle:
        handle = WebSocketPushHandle(
            BrokenSocket(),
            asyncio.get_running_loop(),
            timeout=1,
            on_failure=lambda: registry.unregister(5, handle),
        )
        registry.register(5, handle)
        registry.push(5, PushEvent("status", {"user_id": 1, "status": "AWAY"}))
        for _ in range(3):
            await asyncio.sleep(0)
        return handle

    handle = asyncio.run(scenario())

    assert handle.closed is True
    assert registry.is_registered(5) is False
    with pytest.raises(ConnectionError):
        handle.deliver(PushEvent("status", {"user_id": 1, "status": "AWAY"}))


def test_send_on_loop_delivers_frame() -> None:
    socket = RecordingSocket()

    async def scenario() -> WebSocketPushHandle:
        handle = WebSocketPushHandle(socket, asyncio.get_running_loop(), timeout=1)
        handle.deliver(PushEvent("pong"))
        for _ in range(3):
            await asyncio.sleep(0)
        return handle

    handle = asyncio.run(scenario())

    assert socket.frames == [{"event": "pong", "payload": {}}]
    assert handle.closed is False
