"""Domain services, callback plumbing and in-memory cores."""

from .auth import AuthService, RegisterOutcome
from .banking import BankingService, FlatFileAccountStore, get_banking_service
from .callbacks import (
    AccountCallback,
    ChatClientCallback,
    ClientCallback,
    PushEvent,
    VideoClientCallback,
    WebSocketPushHandle,
)
from .calls import CallKind, CallRequest, CallSignaling, CallState, get_call_signaling
from .fanout import EventFanout, get_event_fanout
from .friendship import FriendshipPolicy
from .groups import GroupPolicy
from .messages import MessagePolicy
from .registry import (
    SubscriptionRegistry,
    get_account_registry,
    get_chat_registry,
    get_video_registry,
)

__all__ = [
    "AccountCallback",
    "AuthService",
    "BankingService",
    "CallKind",
    "CallRequest",
    "CallSignaling",
    "CallState",
    "ChatClientCallback",
    "ClientCallback",
    "EventFanout",
    "FlatFileAccountStore",
    "FriendshipPolicy",
    "GroupPolicy",
    "MessagePolicy",
    "PushEvent",
    "RegisterOutcome",
    "SubscriptionRegistry",
    "VideoClientCallback",
    "WebSocketPushHandle",
    "get_account_registry",
    "get_banking_service",
    "get_call_signaling",
    "get_chat_registry",
    "get_event_fanout",
    "get_video_registry",
]
