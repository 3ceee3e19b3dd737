"""Domain events emitted by services after a successful commit.

Each event carries JSON-ready snapshots and the audience resolved while the
data was still consistent, so fan-out never touches the database.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class MessageCommitted:
    message: dict[str, Any]
    audience: tuple[int, ...]


@dataclass(frozen=True)
class MessageEdited:
    message: dict[str, Any]
    audience: tuple[int, ...]


@dataclass(frozen=True)
class MessageDeleted:
    message_id: int
    audience: tuple[int, ...]


@dataclass(frozen=True)
class MessagesRead:
    reader_id: int
    sender_id: int


@dataclass(frozen=True)
class UserStatusChanged:
    """Presence change; broadcast to every connected chat subscriber."""

    user_id: int
    status: str


@dataclass(frozen=True)
class GroupMembershipChanged:
    """A user joined or left a group.

    ``user`` is the joining user's public view; it is ``None`` for departures.
    """

    group_id: int
    user_id: int
    joined: bool
    audience: tuple[int, ...]
    user: dict[str, Any] | None = None


@dataclass(frozen=True)
class FriendRequestCreated:
    friendship: dict[str, Any]
    addressee_id: int


@dataclass(frozen=True)
class CallTransitioned:
    """A call entered ``call['state']``; ``audience`` lists who hears about it."""

    call: dict[str, Any]
    audience: tuple[int, ...]


@dataclass(frozen=True)
class TransferSettled:
    from_account: str
    to_account: str
    amount: str


DomainEvent = (
    MessageCommitted
    | MessageEdited
    | MessageDeleted
    | MessagesRead
    | UserStatusChanged
    | GroupMembershipChanged
    | FriendRequestCreated
    | CallTransitioned
    | TransferSettled
)
