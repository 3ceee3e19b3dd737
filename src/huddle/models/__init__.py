"""SQLAlchemy models for the Huddle server."""

from .friendship import Friendship, FriendshipState
from .group import ChatGroup, GroupMember, GroupRole
from .message import Message, MessageKind
from .user import User, UserStatus

__all__ = [
    "ChatGroup", "GroupMember", "GroupRole",
    "Friendship", "FriendshipState",
    "Message", "MessageKind",
    "User", "UserStatus",
]
