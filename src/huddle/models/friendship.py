"""Friendship and block relations between two users."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from huddle.db.session import Base
from huddle.db.time import utcnow


class FriendshipState(str, enum.Enum):
    """Lifecycle state of a friendship row."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    BLOCKED = "BLOCKED"


class Friendship(Base):
    """At most one row per unordered pair of users.

    ``user_low``/``user_high`` hold the pair sorted by id so the unique
    constraint covers both directions. ``initiator_id`` is the requester
    while pending and the blocker once blocked.
    """

    __tablename__ = "friendships"
    __table_args__ = (UniqueConstraint("user_low", "user_high", name="uq_friendship_pair"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_low: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    user_high: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    initiator_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    state: Mapped[FriendshipState] = mapped_column(
        Enum(FriendshipState, native_enum=False, length=16),
        nullable=False,
        default=FriendshipState.PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    @property
    def other_party(self) -> int:
        """Return the member of the pair who did not initiate the row."""
        return self.user_high if self.initiator_id == self.user_low else self.user_low

    def involves(self, user_id: int) -> bool:
        """Return True if ``user_id`` is one of the two parties."""
        return user_id in (self.user_low, self.user_high)
