"""Tests for WebSocket callback channels."""

import pytest
from fastapi import status
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool
from starlette.websockets import WebSocketDisconnect

from huddle.api.v1 import dependencies as deps
from huddle.core.security import create_access_token
from huddle.db.session import create_tables, get_db
from huddle.models import User


def test_chat_channel_receives_direct_message(client, alice, bob, auth_headers, fanout) -> None:
    token = create_access_token(bob.id)
    with client.websocket_connect(f"/api/v1/ws/chat?token={token}") as ws:
        hello = ws.receive_json()
        assert hello == {
            "event": "subscribed",
            "payload": {"channel": "chat", "subject": bob.id},
        }
        assert fanout.chat.is_registered(bob.id)

        client.post(
            "/api/v1/messages", json={"receiver_id": bob.id, "body": "over the wire"},
            headers=auth_headers(alice),
        )

        push = ws.receive_json()
        assert push["event"] == "message"
        assert push["payload"]["message"]["body"] == "over the wire"
        assert push["payload"]["message"]["sender_id"] == alice.id

        ws.send_text("ping")
        assert ws.receive_json()["event"] == "pong"

    assert not fanout.chat.is_registered(bob.id)


def test_call_channel_rings_receiver(client, alice, bob, auth_headers) -> None:
    token = create_access_token(bob.id)
    with client.websocket_connect(f"/api/v1/ws/calls?token={token}") as ws:
        assert ws.receive_json()["payload"]["channel"] == "video"

        call = client.post(
            "/api/v1/calls", json={"receiver_id": bob.id}, headers=auth_headers(alice)
        ).json()

        push = ws.receive_json()
        assert push["event"] == "incoming_call"
        assert push["payload"]["call"]["call_id"] == call["call_id"]


def test_bad_token_closes_with_policy_violation(client) -> None:
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/api/v1/ws/chat?token=garbage") as ws:
            ws.receive_json()

    assert excinfo.value.code == status.WS_1008_POLICY_VIOLATION


def test_account_channel_receives_funds(client) -> None:
    with client.websocket_connect("/api/v1/ws/accounts/B") as ws:
        assert ws.receive_json()["payload"] == {"channel": "accounts", "subject": "B"}

        client.post(
            "/api/v1/accounts/transfer",
            json={"from_account": "A", "to_account": "B", "amount": "300"},
        )

        push = ws.receive_json()
        assert push == {
            "event": "funds_received",
            "payload": {"amount": "300", "from_account": "A"},
        }


def test_unknown_account_channel_is_refused(client) -> None:
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/api/v1/ws/accounts/nope") as ws:
            ws.receive_json()

    assert excinfo.value.code == status.WS_1008_POLICY_VIOLATION


def test_unregister_drops_subscriptions(client, alice, auth_headers, fanout, chat_callback) -> None:
    fanout.chat.register(alice.id, chat_callback())

    removed = client.post("/api/v1/clients/unregister", headers=auth_headers(alice))
    again = client.post("/api/v1/clients/unregister", headers=auth_headers(alice))

    assert removed.json() == {"success": True}
    assert again.json() == {"success": False}
    assert not fanout.chat.is_registered(alice.id)


@pytest.fixture()
def single_connection_engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'pool.db'}",
        connect_args={"check_same_thread": False},
        poolclass=QueuePool,
        pool_size=1,
        max_overflow=0,
        pool_timeout=1,
    )
    create_tables(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


def test_open_socket_does_not_hold_a_connection(client, app, single_connection_engine) -> None:
    factory = sessionmaker(bind=single_connection_engine, autoflush=False)
    with factory() as db:
        user = User(
            username="dana",
            email="dana@example.test",
            hashed_password="unused",
            display_name="Dana",
        )
        db.add(user)
        db.commit()
        user_id = user.id

    def _pooled_session():
        db = factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _pooled_session
    app.dependency_overrides[deps.get_session_factory] = lambda: factory
    token = create_access_token(user_id)

    with client.websocket_connect(f"/api/v1/ws/chat?token={token}") as ws:
        assert ws.receive_json()["event"] == "subscribed"
        assert single_connection_engine.pool.checkedout() == 0

        response = client.get(
            f"/api/v1/users/{user_id}", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["username"] == "dana"
