"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    banking_router,
    calls_router,
    friends_router,
    groups_router,
    messages_router,
    realtime_router,
    users_router,
)

__all__ = [
    "auth_router",
    "banking_router",
    "calls_router",
    "friends_router",
    "groups_router",
    "messages_router",
    "realtime_router",
    "users_router",
]
