"""Tests for message endpoints."""

from fastapi import status


def _send(client, headers, **payload):
    return client.post("/api/v1/messages", json=payload, headers=headers)


def test_send_and_list_direct(client, alice, bob, auth_headers) -> None:
    sent = _send(client, auth_headers(alice), receiver_id=bob.id, body="hi bob")
    assert sent.status_code == status.HTTP_201_CREATED
    message = sent.json()
    assert message["sender_name"] == "Alice"

    history = client.get(f"/api/v1/messages/direct/{alice.id}", headers=auth_headers(bob))

    assert history.status_code == status.HTTP_200_OK
    assert [m["id"] for m in history.json()] == [message["id"]]


def test_empty_text_is_bad_request(client, alice, bob, auth_headers) -> None:
    response = _send(client, auth_headers(alice), receiver_id=bob.id, body="")
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_page_limit_is_validated(client, alice, bob, auth_headers) -> None:
    response = client.get(
        f"/api/v1/messages/direct/{bob.id}", params={"limit": 0}, headers=auth_headers(alice)
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_mark_read_edit_and_delete(client, alice, bob, auth_headers) -> None:
    message = _send(client, auth_headers(alice), receiver_id=bob.id, body="draft").json()

    read = client.post(f"/api/v1/messages/read/{alice.id}", headers=auth_headers(bob))
    assert read.json() == {"success": True}

    forbidden = client.put(
        f"/api/v1/messages/{message['id']}", json={"body": "mine now"}, headers=auth_headers(bob)
    )
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN

    edited = client.put(
        f"/api/v1/messages/{message['id']}", json={"body": "final"}, headers=auth_headers(alice)
    )
    assert edited.json() == {"success": True}

    deleted = client.delete(f"/api/v1/messages/{message['id']}", headers=auth_headers(alice))
    assert deleted.json() == {"success": True}

    history = client.get(f"/api/v1/messages/direct/{bob.id}", headers=auth_headers(alice)).json()
    assert history[0]["deleted"] is True
    assert history[0]["edited"] is True
    assert history[0]["body"] == "[message deleted]"


def test_edit_missing_message(client, alice, auth_headers) -> None:
    response = client.put("/api/v1/messages/424242", json={"body": "x"}, headers=auth_headers(alice))
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_group_history_requires_membership(client, alice, bob, auth_headers) -> None:
    group = client.post("/api/v1/groups", json={"name": "G"}, headers=auth_headers(alice)).json()
    _send(client, auth_headers(alice), group_id=group["id"], body="welcome")

    mine = client.get(f"/api/v1/messages/groups/{group['id']}", headers=auth_headers(alice))
    assert [m["body"] for m in mine.json()] == ["welcome"]

    outsider = client.get(f"/api/v1/messages/groups/{group['id']}", headers=auth_headers(bob))
    assert outsider.status_code == status.HTTP_403_FORBIDDEN
