"""Persistence ports over SQLAlchemy sessions."""

from .base import transaction
from .friendship_repo import FriendshipRepository
from .group_repo import GroupRepository
from .message_repo import MessageRepository
from .user_repo import UserRepository

__all__ = [
    "FriendshipRepository",
    "GroupRepository",
    "MessageRepository",
    "UserRepository",
    "transaction",
]
