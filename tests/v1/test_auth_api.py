"""Tests for authentication endpoints."""

from fastapi import status

from huddle.core.security import decode_access_token

REGISTER = {
    "username": "alice",
    "password": "pw",
    "email": "alice@x",
    "display_name": "Alice",
}


def test_register_and_login(client) -> None:
    response = client.post("/api/v1/auth/register", json=REGISTER)
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["created"] is True
    assert "hashed_password" not in body["user"]

    login = client.post("/api/v1/auth/login", json={"username": "alice", "password": "pw"})

    assert login.status_code == status.HTTP_200_OK
    data = login.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["id"] == body["user"]["id"]
    assert data["user"]["status"] == "ONLINE"
    assert decode_access_token(data["access_token"]) == body["user"]["id"]


def test_duplicate_registration_conflicts(client) -> None:
    client.post("/api/v1/auth/register", json=REGISTER)

    again = client.post("/api/v1/auth/register", json=REGISTER)

    assert again.status_code == status.HTTP_409_CONFLICT
    assert again.json() == {"created": False, "outcome": "NAME_TAKEN", "user": None}


def test_bad_credentials_are_unauthorized(client, alice) -> None:
    response = client.post("/api/v1/auth/login", json={"username": "alice", "password": "wrong"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["code"] == "auth_failed"


def test_empty_username_is_bad_request(client) -> None:
    response = client.post("/api/v1/auth/register", json={**REGISTER, "username": ""})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "invalid_argument"


def test_logout_sets_offline(client, alice, auth_headers) -> None:
    response = client.post("/api/v1/auth/logout", headers=auth_headers(alice))
    assert response.status_code == status.HTTP_200_OK

    me = client.get(f"/api/v1/users/{alice.id}", headers=auth_headers(alice))
    assert me.json()["status"] == "OFFLINE"


def test_requests_without_token_are_unauthorized(client) -> None:
    response = client.get("/api/v1/users/search", params={"keyword": "a"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_garbage_token_is_unauthorized(client) -> None:
    response = client.get("/api/v1/groups", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
