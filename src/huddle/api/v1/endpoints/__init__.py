"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .banking import router as banking_router
from .calls import router as calls_router
from .friends import router as friends_router
from .groups import router as groups_router
from .messages import router as messages_router
from .realtime import router as realtime_router
from .users import router as users_router

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
