"""Login, registration and presence."""
from __future__ import annotations

import enum
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from huddle.core.errors import AuthFailed, InvalidArgument, NotFound
from huddle.core.security import HashAlgorithm, PasslibHashAlgorithm
from huddle.models.user import User, UserStatus
from huddle.repositories import UserRepository, transaction
from huddle.schemas.user import UserCreate, UserResponse

from .events import UserStatusChanged
from .fanout import EventFanout

logger = logging.getLogger(__name__)

_hash_algorithm: HashAlgorithm | None = None


def get_hash_algorithm() -> HashAlgorithm:
    """Return the process-wide password hashing port."""
    global _hash_algorithm
    if _hash_algorithm is None:
        _hash_algorithm = PasslibHashAlgorithm()
    return _hash_algorithm


class RegisterOutcome(str, enum.Enum):
    CREATED = "CREATED"
    NAME_TAKEN = "NAME_TAKEN"
    EMAIL_TAKEN = "EMAIL_TAKEN"


def user_view(user: User) -> dict:
    """Return the JSON-ready public view of ``user``."""
    return UserResponse.model_validate(user).model_dump(mode="json")


class AuthService:
    """Account lifecycle and presence for chat users."""

    def __init__(
        self,
        db: Session,
        fanout: EventFanout,
        hasher: HashAlgorithm | None = None,
    ) -> None:
        self.db = db
        self.fanout = fanout
        self.hasher = hasher or get_hash_algorithm()
        self.users = UserRepository(db)

    def login(self, username: str, password: str) -> User:
        """Verify credentials and mark the user Online.

        Unknown users and wrong passwords raise the same ``AuthFailed``.
        """
        user = self.users.get_by_username(username)
        if user is None or not self.hasher.verify(password, user.hashed_password):
            logger.warning("Login rejected for %r", username)
            raise AuthFailed("Invalid username or password")
        with transaction(self.db):
            self.users.update_status(user.id, UserStatus.ONLINE)
        self.db.refresh(user)
        logger.info("User %s logged in", user.id)
        self.fanout.publish(UserStatusChanged(user.id, UserStatus.ONLINE.value))
        return user

    def register(self, data: UserCreate) -> tuple[RegisterOutcome, User | None]:
        """Create an account; the unique indexes decide name and email clashes."""
        username = data.username.strip()
        email = data.email.strip()
        if not username or not email or not data.password:
            raise InvalidArgument("Username, email and password are required")
        hashed = self.hasher.hash(data.password)
        try:
            with transaction(self.db):
                user = self.users.create(
                    username=username,
                    email=email,
                    hashed_password=hashed,
                    display_name=data.display_name or username,
                    avatar_ref=data.avatar_ref,
                )
        except IntegrityError:
            if self.users.get_by_username(username) is not None:
                outcome = RegisterOutcome.NAME_TAKEN
            elif self.users.get_by_email(email) is not None:
                outcome = RegisterOutcome.EMAIL_TAKEN
            else:
                raise
            logger.warning("Registration of %r refused: %s", username, outcome.value)
            return outcome, None
        logger.info("Registered user %s (%s)", user.id, username)
        return RegisterOutcome.CREATED, user

    def update_status(self, user_id: int, status: UserStatus) -> bool:
        with transaction(self.db):
            updated = self.users.update_status(user_id, status)
        if not updated:
            raise NotFound("User not found")
        self.fanout.publish(UserStatusChanged(user_id, status.value))
        return True

    def logout(self, user_id: int) -> bool:
        """Mark the user Offline and drop their chat subscription."""
        self.update_status(user_id, UserStatus.OFFLINE)
        self.fanout.chat.unregister(user_id)
        logger.info("User %s logged out", user_id)
        return True

    def get_user(self, user_id: int) -> User:
        user = self.users.get_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def search(self, keyword: str) -> list[User]:
        keyword = keyword.strip()
        if not keyword:
            return []
        return self.users.search(keyword)
