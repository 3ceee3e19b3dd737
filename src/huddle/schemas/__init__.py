"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .account import AmountRequest, BalanceResponse, TransferRequest
from .common import ErrorResponse, OperationResult, PushEnvelope
from .friendship import (
    BlockStatus,
    BlockStatusResponse,
    FriendRequestCreate,
    FriendshipResponse,
)
from .group import GroupCreate, GroupResponse, GroupUpdate, MemberAdd, RoleResponse, RoleUpdate
from .message import MessageCreate, MessageEdit, MessageResponse
from .user import (
    LoginRequest,
    RegisterResponse,
    StatusUpdate,
    TokenResponse,
    UnreadCount,
    UserCreate,
    UserResponse,
)

__all__ = [
    "AmountRequest", "BalanceResponse", "TransferRequest",
    "ErrorResponse", "OperationResult", "PushEnvelope",
    "BlockStatus", "BlockStatusResponse", "FriendRequestCreate", "FriendshipResponse",
    "GroupCreate", "GroupResponse", "GroupUpdate", "MemberAdd", "RoleResponse", "RoleUpdate",
    "MessageCreate", "MessageEdit", "MessageResponse",
    "LoginRequest", "RegisterResponse", "StatusUpdate", "TokenResponse", "UnreadCount",
    "UserCreate", "UserResponse",
]
