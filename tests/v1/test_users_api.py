"""Tests for user directory and presence endpoints."""

from fastapi import status


def test_update_status_round_trip(client, alice, bob, auth_headers) -> None:
    response = client.put(
        "/api/v1/users/me/status", json={"status": "BUSY"}, headers=auth_headers(alice)
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True}

    seen_by_bob = client.get(f"/api/v1/users/{alice.id}", headers=auth_headers(bob))
    assert seen_by_bob.json()["status"] == "BUSY"


def test_unknown_status_is_rejected(client, alice, auth_headers) -> None:
    response = client.put(
        "/api/v1/users/me/status", json={"status": "SLEEPING"}, headers=auth_headers(alice)
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_search_users(client, alice, bob, carol, auth_headers) -> None:
    response = client.get(
        "/api/v1/users/search", params={"keyword": "o"}, headers=auth_headers(alice)
    )
    assert [u["username"] for u in response.json()] == ["bob", "carol"]


def test_get_unknown_user(client, alice, auth_headers) -> None:
    response = client.get("/api/v1/users/9999", headers=auth_headers(alice))
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["code"] == "not_found"


def test_unread_count(client, alice, bob, auth_headers) -> None:
    for body in ("a", "b"):
        client.post(
            "/api/v1/messages", json={"receiver_id": bob.id, "body": body}, headers=auth_headers(alice)
        )

    response = client.get("/api/v1/users/me/unread-count", headers=auth_headers(bob))
    assert response.json() == {"count": 2}
