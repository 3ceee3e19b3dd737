"""Data access helpers for friendships and blocks."""
from __future__ import annotations

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from huddle.models.friendship import Friendship, FriendshipState

__all__ = ["FriendshipRepository"]


def _pair(user_a: int, user_b: int) -> tuple[int, int]:
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


class FriendshipRepository:
    """Thin wrapper around database access for friendship rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_id(self, friendship_id: int) -> Friendship | None:
        return self.session.get(Friendship, friendship_id)

    def get_pair(self, user_a: int, user_b: int, *, for_update: bool = False) -> Friendship | None:
        """Return the row for the unordered pair, if any."""
        low, high = _pair(user_a, user_b)
        stmt = select(Friendship).where(Friendship.user_low == low, Friendship.user_high == high)
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.scalars(stmt).first()

    def create(self, initiator_id: int, other_id: int, state: FriendshipState) -> Friendship:
        low, high = _pair(initiator_id, other_id)
        friendship = Friendship(
            user_low=low,
            user_high=high,
            initiator_id=initiator_id,
            state=state,
        )
        self.session.add(friendship)
        self.session.flush()
        return friendship

    def delete(self, friendship: Friendship) -> None:
        self.session.delete(friendship)
        self.session.flush()

    def list_pending_for(self, user_id: int) -> list[Friendship]:
        """Return pending requests addressed to ``user_id``."""
        stmt = (
            select(Friendship)
            .where(
                Friendship.state == FriendshipState.PENDING,
                Friendship.initiator_id != user_id,
                or_(Friendship.user_low == user_id, Friendship.user_high == user_id),
            )
            .order_by(Friendship.created_at, Friendship.id)
        )
        return list(self.session.scalars(stmt))

    def list_accepted_for(self, user_id: int) -> list[Friendship]:
        stmt = select(Friendship).where(
            Friendship.state == FriendshipState.ACCEPTED,
            or_(Friendship.user_low == user_id, Friendship.user_high == user_id),
        )
        return list(self.session.scalars(stmt))

    def blocked_between(self, user_a: int, user_b: int) -> Friendship | None:
        low, high = _pair(user_a, user_b)
        stmt = select(Friendship).where(
            and_(
                Friendship.user_low == low,
                Friendship.user_high == high,
                Friendship.state == FriendshipState.BLOCKED,
            )
        )
        return self.session.scalars(stmt).first()
