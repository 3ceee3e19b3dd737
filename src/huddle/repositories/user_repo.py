"""Data access helpers for users."""
from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from huddle.db.time import utcnow
from huddle.models.user import User, UserStatus

__all__ = ["UserRepository"]


class UserRepository:
    """Thin wrapper around database access for user entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_id(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def get_by_username(self, username: str) -> User | None:
        return self.session.scalars(select(User).where(User.username == username)).first()

    def get_by_email(self, email: str) -> User | None:
        return self.session.scalars(select(User).where(User.email == email)).first()

    def get_many(self, user_ids: Iterable[int]) -> list[User]:
        """Return the users with the given ids, ordered by username."""
        ids = list(set(user_ids))
        if not ids:
            return []
        stmt = select(User).where(User.id.in_(ids)).order_by(User.username)
        return list(self.session.scalars(stmt))

    def search(self, keyword: str, limit: int = 50) -> list[User]:
        """Return users whose username or display name contains ``keyword``."""
        stmt = (
            select(User)
            .where(
                or_(
                    User.username.contains(keyword, autoescape=True),
                    User.display_name.contains(keyword, autoescape=True),
                )
            )
            .order_by(User.username)
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def create(
        self,
        *,
        username: str,
        email: str,
        hashed_password: str,
        display_name: str | None = None,
        avatar_ref: str | None = None,
    ) -> User:
        """Insert a new user; the unique indexes reject duplicates on flush."""
        user = User(
            username=username,
            email=email,
            hashed_password=hashed_password,
            display_name=display_name,
            avatar_ref=avatar_ref,
            status=UserStatus.OFFLINE,
        )
        self.session.add(user)
        self.session.flush()
        return user

    def update_status(self, user_id: int, status: UserStatus) -> bool:
        """Persist a presence change and bump ``last_seen``."""
        result = self.session.execute(
            update(User)
            .where(User.id == user_id)
            .values(status=status, last_seen=utcnow())
            .execution_options(synchronize_session="fetch")
        )
        return bool(result.rowcount)
