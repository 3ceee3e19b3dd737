"""End-to-end flows across the HTTP surface and the push registries."""

from decimal import Decimal

from fastapi import status
from sqlalchemy import func, select

from huddle.models.user import User


def test_duplicate_registration(client, db_session) -> None:
    payload = {"username": "alice", "password": "pw", "email": "alice@x", "display_name": "Alice"}

    first = client.post("/api/v1/auth/register", json=payload)
    second = client.post("/api/v1/auth/register", json=payload)

    assert first.json()["created"] is True
    assert second.json()["created"] is False
    assert db_session.scalar(select(func.count()).select_from(User)) == 1


def test_transfer_notifies_recipient(client, fanout, account_callback) -> None:
    recipient = account_callback()
    fanout.accounts.register("B", recipient)

    response = client.post(
        "/api/v1/accounts/transfer",
        json={"from_account": "A", "to_account": "B", "amount": "300"},
    )

    assert response.json() == {"success": True}
    balances = {
        account: Decimal(str(client.get(f"/api/v1/accounts/{account}/balance").json()["balance"]))
        for account in ("A", "B")
    }
    assert balances == {"A": Decimal("700"), "B": Decimal("800")}
    assert recipient.received == [("300", "A")]


def test_block_hides_history(client, alice, bob, auth_headers) -> None:
    for sender, receiver in ((alice, bob), (bob, alice), (alice, bob)):
        sent = client.post(
            "/api/v1/messages",
            json={"receiver_id": receiver.id, "body": f"from {sender.username}"},
            headers=auth_headers(sender),
        )
        assert sent.status_code == status.HTTP_201_CREATED

    client.post(f"/api/v1/friends/blocks/{alice.id}", headers=auth_headers(bob))

    history = client.get(f"/api/v1/messages/direct/{bob.id}", headers=auth_headers(alice))
    blocked = client.post(
        "/api/v1/messages", json={"receiver_id": bob.id, "body": "hi"}, headers=auth_headers(alice)
    )

    assert history.json() == []
    assert blocked.status_code == status.HTTP_403_FORBIDDEN
    assert blocked.json()["code"] == "blocked_by_other"


def test_group_fanout_includes_sender(
    client, alice, bob, carol, auth_headers, fanout, chat_callback
) -> None:
    gid = client.post("/api/v1/groups", json={"name": "G"}, headers=auth_headers(alice)).json()["id"]
    for member in (bob, carol):
        client.post(
            f"/api/v1/groups/{gid}/members", json={"user_id": member.id}, headers=auth_headers(alice)
        )
    callbacks = {user.id: chat_callback() for user in (alice, bob, carol)}
    for user_id, callback in callbacks.items():
        fanout.chat.register(user_id, callback)

    client.post(
        "/api/v1/messages", json={"group_id": gid, "body": "hello"}, headers=auth_headers(alice)
    )

    for callback in callbacks.values():
        received = callback.named("on_message")
        assert len(received) == 1
        assert received[0]["message"]["body"] == "hello"


def test_call_lifecycle_pushes(client, alice, bob, auth_headers, fanout, video_callback) -> None:
    caller, receiver = video_callback(), video_callback()
    fanout.video.register(alice.id, caller)
    fanout.video.register(bob.id, receiver)

    call = client.post(
        "/api/v1/calls", json={"receiver_id": bob.id, "kind": "VIDEO"}, headers=auth_headers(alice)
    ).json()
    assert call["state"] == "PENDING"
    assert len(receiver.named("on_incoming_call")) == 1
    assert caller.named("on_incoming_call") == []

    call_url = f"/api/v1/calls/{call['call_id']}"
    assert client.post(f"{call_url}/accept", headers=auth_headers(bob)).json() == {"success": True}
    assert client.post(f"{call_url}/end", headers=auth_headers(alice)).json() == {"success": True}

    for callback in (caller, receiver):
        assert [c["call"]["state"] for c in callback.named("on_accepted")] == ["ACCEPTED"]
        assert [c["call"]["state"] for c in callback.named("on_ended")] == ["ENDED"]

    late = client.post(f"{call_url}/accept", headers=auth_headers(bob))
    assert late.status_code == status.HTTP_409_CONFLICT


def test_admin_guard_on_delete(client, alice, bob, auth_headers) -> None:
    gid = client.post("/api/v1/groups", json={"name": "G"}, headers=auth_headers(alice)).json()["id"]
    client.post(f"/api/v1/groups/{gid}/members", json={"user_id": bob.id}, headers=auth_headers(alice))

    refused = client.delete(f"/api/v1/groups/{gid}", headers=auth_headers(alice))
    assert refused.status_code == status.HTTP_409_CONFLICT

    client.delete(f"/api/v1/groups/{gid}/members/{bob.id}", headers=auth_headers(alice))
    deleted = client.delete(f"/api/v1/groups/{gid}", headers=auth_headers(alice))
    missing = client.get(f"/api/v1/groups/{gid}", headers=auth_headers(alice))

    assert deleted.json() == {"success": True}
    assert missing.status_code == status.HTTP_404_NOT_FOUND
