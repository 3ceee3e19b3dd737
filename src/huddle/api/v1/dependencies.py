"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, sessionmaker

from huddle.core.errors import AuthFailed
from huddle.core.security import decode_access_token
from huddle.db.session import SessionLocal, get_db
from huddle.models import User
from huddle.repositories import UserRepository
from huddle.services.auth import AuthService
from huddle.services.banking import BankingService, get_banking_service
from huddle.services.calls import CallSignaling, get_call_signaling
from huddle.services.fanout import EventFanout, get_event_fanout
from huddle.services.friendship import FriendshipPolicy
from huddle.services.groups import GroupPolicy
from huddle.services.messages import MessagePolicy

# Missing credentials are reported through AuthFailed rather than a bare 403.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_session_factory() -> sessionmaker:
    """Return the factory used for short-lived sessions outside a request."""
    return SessionLocal


SessionFactoryDep = Annotated[sessionmaker, Depends(get_session_factory)]


def get_fanout_dep() -> EventFanout:
    """Return the process-wide event fan-out."""
    return get_event_fanout()


FanoutDep = Annotated[EventFanout, Depends(get_fanout_dep)]


def user_from_token(token: str, db: Session) -> User:
    """Resolve a session token to its user.

    Raises:
        AuthFailed: If the token is invalid or the user no longer exists
    """
    user = UserRepository(db).get_by_id(decode_access_token(token))
    if user is None:
        raise AuthFailed("User not found")
    return user


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from the Bearer token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        AuthFailed: If the token is missing or invalid, or the user is gone
    """
    if credentials is None:
        raise AuthFailed("Not authenticated")
    return user_from_token(credentials.credentials, db)


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]


def get_auth_service(db: SessionDep, fanout: FanoutDep) -> AuthService:
    return AuthService(db, fanout)


def get_friendship_policy(db: SessionDep, fanout: FanoutDep) -> FriendshipPolicy:
    return FriendshipPolicy(db, fanout)


def get_group_policy(db: SessionDep, fanout: FanoutDep) -> GroupPolicy:
    return GroupPolicy(db, fanout)


def get_message_policy(db: SessionDep, fanout: FanoutDep) -> MessagePolicy:
    return MessagePolicy(db, fanout)


def get_call_signaling_dep() -> CallSignaling:
    return get_call_signaling()


def get_banking_service_dep() -> BankingService:
    return get_banking_service()


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
FriendshipPolicyDep = Annotated[FriendshipPolicy, Depends(get_friendship_policy)]
GroupPolicyDep = Annotated[GroupPolicy, Depends(get_group_policy)]
MessagePolicyDep = Annotated[MessagePolicy, Depends(get_message_policy)]
CallSignalingDep = Annotated[CallSignaling, Depends(get_call_signaling_dep)]
BankingServiceDep = Annotated[BankingService, Depends(get_banking_service_dep)]
