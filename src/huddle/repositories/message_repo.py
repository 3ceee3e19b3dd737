"""Data access helpers for chat messages."""
from __future__ import annotations

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session

from huddle.models.message import Message, MessageKind

__all__ = ["MessageRepository"]


class MessageRepository:
    """Thin wrapper around database access for message entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_id(self, message_id: int) -> Message | None:
        return self.session.get(Message, message_id)

    def create(
        self,
        *,
        sender_id: int,
        receiver_id: int | None,
        group_id: int | None,
        body: str,
        kind: MessageKind,
        file_ref: str | None,
    ) -> Message:
        """Insert a message and return it with ``id`` and ``created_at`` populated."""
        message = Message(
            sender_id=sender_id,
            receiver_id=receiver_id,
            group_id=group_id,
            body=body,
            kind=kind,
            file_ref=file_ref,
        )
        self.session.add(message)
        self.session.flush()
        self.session.refresh(message)
        return message

    def list_direct(self, user_a: int, user_b: int, limit: int, offset: int = 0) -> list[Message]:
        """Return one page of a direct conversation, oldest first.

        The page is the ``offset..offset+limit`` newest messages, reversed.
        """
        stmt = (
            select(Message)
            .where(
                Message.group_id.is_(None),
                or_(
                    and_(Message.sender_id == user_a, Message.receiver_id == user_b),
                    and_(Message.sender_id == user_b, Message.receiver_id == user_a),
                ),
            )
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit)
            .offset(offset)
        )
        page = list(self.session.scalars(stmt))
        page.reverse()
        return page

    def list_group(self, group_id: int, limit: int, offset: int = 0) -> list[Message]:
        """Return one page of a group conversation, oldest first."""
        stmt = (
            select(Message)
            .where(Message.group_id == group_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit)
            .offset(offset)
        )
        page = list(self.session.scalars(stmt))
        page.reverse()
        return page

    def mark_read(self, reader_id: int, sender_id: int) -> int:
        """Flag every unread direct message from ``sender_id`` to ``reader_id`` as read."""
        result = self.session.execute(
            update(Message)
            .where(
                Message.receiver_id == reader_id,
                Message.sender_id == sender_id,
                Message.read.is_(False),
            )
            .values(read=True)
            .execution_options(synchronize_session="fetch")
        )
        return int(result.rowcount or 0)

    def unread_count(self, user_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(Message)
            .where(
                Message.receiver_id == user_id,
                Message.read.is_(False),
                Message.deleted.is_(False),
            )
        )
        return int(self.session.scalar(stmt) or 0)

    def update_body(self, message: Message, body: str) -> Message:
        message.body = body
        message.edited = True
        self.session.flush()
        return message

    def soft_delete(self, message: Message) -> Message:
        message.deleted = True
        self.session.flush()
        return message
