"""Direct and group chat messages."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from huddle.db.session import Base
from huddle.db.time import utcnow

from .user import User


class MessageKind(str, enum.Enum):
    """Payload type of a message."""

    TEXT = "TEXT"
    IMAGE = "IMAGE"
    FILE = "FILE"
    VIDEO = "VIDEO"
    AUDIO = "AUDIO"


class Message(Base):
    """A message addressed to exactly one user or exactly one group.

    Messages are never hard-deleted by their sender; ``deleted`` hides the
    body from readers while keeping the id and history position.
    """

    __tablename__ = "messages"
    __table_args__ = (
        CheckConstraint(
            "(receiver_id IS NULL) <> (group_id IS NULL)",
            name="ck_message_single_target",
        ),
        Index("ix_messages_direct", "sender_id", "receiver_id", "created_at"),
        Index("ix_messages_group", "group_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sender_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    receiver_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    group_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("chat_groups.id", ondelete="CASCADE"), nullable=True
    )
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    kind: Mapped[MessageKind] = mapped_column(
        Enum(MessageKind, native_enum=False, length=16),
        nullable=False,
        default=MessageKind.TEXT,
    )
    file_ref: Mapped[str | None] = mapped_column(Text, nullable=True)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    edited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    sender: Mapped[User] = relationship("User", foreign_keys=[sender_id], lazy="joined")

    @property
    def is_group_message(self) -> bool:
        """Return True if the message targets a group."""
        return self.group_id is not None
