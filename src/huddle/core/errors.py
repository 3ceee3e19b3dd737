"""Error taxonomy surfaced to clients.

Domain services raise these exceptions; the request surface maps each class to
a transport status in one place (see ``huddle.api.errors``).
"""

from __future__ import annotations


class HuddleError(RuntimeError):
    """Base exception for every failure reported back to a client."""

    code = "error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = str(self.args[0])


class AuthFailed(HuddleError):
    """Invalid username or password."""

    code = "auth_failed"


class DuplicateIdentity(HuddleError):
    """Username or email already exists."""

    code = "duplicate_identity"


class NameTaken(DuplicateIdentity):
    """Username already exists."""

    code = "name_taken"


class EmailTaken(DuplicateIdentity):
    """Email already exists."""

    code = "email_taken"


class NotFound(HuddleError):
    """Entity not found."""

    code = "not_found"


class Forbidden(HuddleError):
    """Caller is not allowed to perform this operation."""

    code = "forbidden"


class BlockedBySelf(Forbidden):
    """You have blocked this user. Unblock them to continue the conversation."""

    code = "blocked_by_self"


class BlockedByOther(Forbidden):
    """Message could not be delivered."""

    code = "blocked_by_other"


class Conflict(HuddleError):
    """Operation is not valid in the current state."""

    code = "conflict"


class InsufficientFunds(Conflict):
    """Insufficient balance."""

    code = "insufficient_funds"


class InvalidArgument(HuddleError):
    """Empty or malformed input."""

    code = "invalid_argument"


class Unavailable(HuddleError):
    """Storage is temporarily unavailable."""

    code = "unavailable"
