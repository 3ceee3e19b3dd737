"""Password hashing and session token utilities."""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from passlib.exc import UnknownHashError

from huddle.core.errors import AuthFailed
from huddle.core.settings import settings


class HashAlgorithm(ABC):
    """Port for one-way password hashing."""

    @abstractmethod
    def hash(self, password: str) -> str:
        """Return an encoded hash for ``password``."""

    @abstractmethod
    def verify(self, password: str, hashed: str) -> bool:
        """Return True if ``password`` matches ``hashed``."""


class PasslibHashAlgorithm(HashAlgorithm):
    """HashAlgorithm backed by a passlib ``CryptContext``."""

    def __init__(self, schemes: list[str] | None = None) -> None:
        self._context = CryptContext(
            schemes=schemes or settings.password_schemes,
            deprecated="auto",
        )

    def hash(self, password: str) -> str:
        if not password:
            raise ValueError("Password cannot be empty")
        return self._context.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        if not password or not hashed:
            return False
        try:
            return bool(self._context.verify(password, hashed))
        except (UnknownHashError, ValueError):
            return False


def create_access_token(subject: int | str, extra_claims: dict[str, str] | None = None) -> str:
    """Create a signed session token for ``subject``."""
    to_encode: dict[str, object] = {"sub": str(subject)}
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> int:
    """Return the user id carried by a session token.

    Raises:
        AuthFailed: If the token is invalid, expired or carries no subject.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as err:
        raise AuthFailed("Could not validate credentials") from err
    subject = payload.get("sub")
    if subject is None:
        raise AuthFailed("Could not validate credentials")
    try:
        return int(subject)
    except (TypeError, ValueError) as err:
        raise AuthFailed("Could not validate credentials") from err
