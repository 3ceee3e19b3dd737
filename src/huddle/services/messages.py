"""Messaging pipeline: validate, gate, persist, enrich and fan out."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from huddle.core.concurrency import KeyedLocks, conversation_key
from huddle.core.errors import (
    BlockedByOther,
    BlockedBySelf,
    Conflict,
    Forbidden,
    InvalidArgument,
    NotFound,
)
from huddle.models.message import Message, MessageKind
from huddle.repositories import (
    FriendshipRepository,
    GroupRepository,
    MessageRepository,
    UserRepository,
    transaction,
)
from huddle.schemas.message import MessageCreate, MessageResponse

from .events import MessageCommitted, MessageDeleted, MessageEdited, MessagesRead
from .fanout import EventFanout

logger = logging.getLogger(__name__)

DELETED_PLACEHOLDER = "[message deleted]"
MAX_PAGE_SIZE = 200

_conversation_locks = KeyedLocks()


def get_conversation_locks() -> KeyedLocks:
    """Return the process-wide per-conversation locks."""
    return _conversation_locks


def message_view(message: Message) -> dict:
    """Return the client view of ``message`` enriched with sender details.

    Deleted messages keep their id and position but hide body and attachment.
    """
    view = MessageResponse.model_validate(message)
    sender = message.sender
    if sender is not None:
        view.sender_name = sender.display_name or sender.username
        view.sender_avatar_ref = sender.avatar_ref
    if message.deleted:
        view.body = DELETED_PLACEHOLDER
        view.file_ref = None
    return view.model_dump(mode="json")


class MessagePolicy:
    """Send, read, page, edit and soft-delete direct and group messages.

    Writes to one conversation are serialised by a per-conversation lock.
    Fan-out runs after the lock is released, so a slow subscriber never
    stalls other senders.
    """

    def __init__(
        self,
        db: Session,
        fanout: EventFanout,
        locks: KeyedLocks | None = None,
    ) -> None:
        self.db = db
        self.fanout = fanout
        self.locks = locks or get_conversation_locks()
        self.messages = MessageRepository(db)
        self.groups = GroupRepository(db)
        self.users = UserRepository(db)
        self.friendships = FriendshipRepository(db)

    @staticmethod
    def _validate(data: MessageCreate) -> None:
        if (data.receiver_id is None) == (data.group_id is None):
            raise InvalidArgument("A message needs exactly one of receiver_id or group_id")
        if data.kind is MessageKind.TEXT:
            if not data.body or not data.body.strip():
                raise InvalidArgument("Message body must not be empty")
        elif not data.file_ref:
            raise InvalidArgument(f"{data.kind.value} messages need a file_ref")

    def _check_block(self, sender_id: int, receiver_id: int) -> None:
        block = self.friendships.blocked_between(sender_id, receiver_id)
        if block is None:
            return
        logger.warning("Blocked send from %s to %s", sender_id, receiver_id)
        if block.initiator_id == sender_id:
            raise BlockedBySelf()
        raise BlockedByOther()

    def _require_member(self, group_id: int, user_id: int) -> None:
        if self.groups.get_by_id(group_id) is None:
            raise NotFound("Group not found")
        if self.groups.get_membership(group_id, user_id) is None:
            logger.warning("User %s is not a member of group %s", user_id, group_id)
            raise Forbidden("You are not a member of this group")

    def _audience(self, message: Message) -> tuple[int, ...]:
        if message.is_group_message:
            return tuple(self.groups.member_ids(message.group_id))
        return (message.receiver_id, message.sender_id)

    def send_message(self, sender_id: int, data: MessageCreate) -> dict:
        """Store a message and push it to its audience; returns the stored view."""
        self._validate(data)
        if data.receiver_id is not None:
            if self.users.get_by_id(data.receiver_id) is None:
                raise NotFound("Recipient not found")
            self._check_block(sender_id, data.receiver_id)
        else:
            self._require_member(data.group_id, sender_id)

        key = conversation_key(sender_id, data.receiver_id, data.group_id)
        with self.locks.hold(key):
            with transaction(self.db):
                message = self.messages.create(
                    sender_id=sender_id,
                    receiver_id=data.receiver_id,
                    group_id=data.group_id,
                    body=data.body,
                    kind=data.kind,
                    file_ref=data.file_ref,
                )
                audience = self._audience(message)
            view = message_view(message)
        self.fanout.publish(MessageCommitted(view, audience))
        logger.info("Message %s sent by %s", view["id"], sender_id)
        return view

    @staticmethod
    def _check_page(limit: int, offset: int) -> None:
        if limit <= 0 or limit > MAX_PAGE_SIZE:
            raise InvalidArgument(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if offset < 0:
            raise InvalidArgument("offset must not be negative")

    def list_direct_messages(
        self, user_id: int, other_id: int, limit: int = 50, offset: int = 0
    ) -> list[dict]:
        """Return one page of a direct conversation, oldest first.

        The page is empty while either user blocks the other.
        """
        self._check_page(limit, offset)
        if self.friendships.blocked_between(user_id, other_id) is not None:
            return []
        return [message_view(m) for m in self.messages.list_direct(user_id, other_id, limit, offset)]

    def list_group_messages(
        self, user_id: int, group_id: int, limit: int = 50, offset: int = 0
    ) -> list[dict]:
        self._check_page(limit, offset)
        self._require_member(group_id, user_id)
        return [message_view(m) for m in self.messages.list_group(group_id, limit, offset)]

    def mark_as_read(self, reader_id: int, sender_id: int) -> bool:
        """Mark everything ``sender_id`` sent to ``reader_id`` as read."""
        with transaction(self.db):
            updated = self.messages.mark_read(reader_id, sender_id)
        if updated:
            self.fanout.publish(MessagesRead(reader_id, sender_id))
        return updated > 0

    def unread_count(self, user_id: int) -> int:
        return self.messages.unread_count(user_id)

    def _own_message(self, message_id: int, actor_id: int) -> Message:
        message = self.messages.get_by_id(message_id)
        if message is None:
            raise NotFound("Message not found")
        if message.sender_id != actor_id:
            logger.warning("User %s may not change message %s", actor_id, message_id)
            raise Forbidden("Only the sender can change this message")
        return message

    def edit_message(self, message_id: int, editor_id: int, new_body: str) -> bool:
        message = self._own_message(message_id, editor_id)
        if message.deleted:
            raise Conflict("A deleted message cannot be edited")
        if message.kind is MessageKind.TEXT and not (new_body or "").strip():
            raise InvalidArgument("Message body must not be empty")
        key = conversation_key(message.sender_id, message.receiver_id, message.group_id)
        with self.locks.hold(key):
            with transaction(self.db):
                self.messages.update_body(message, new_body)
                audience = self._audience(message)
            view = message_view(message)
        self.fanout.publish(MessageEdited(view, audience))
        return True

    def delete_message(self, message_id: int, requester_id: int) -> bool:
        """Soft-delete a message; returns False if it was already deleted."""
        message = self._own_message(message_id, requester_id)
        if message.deleted:
            return False
        key = conversation_key(message.sender_id, message.receiver_id, message.group_id)
        with self.locks.hold(key):
            with transaction(self.db):
                self.messages.soft_delete(message)
                audience = self._audience(message)
        self.fanout.publish(MessageDeleted(message_id, audience))
        logger.info("Message %s deleted by %s", message_id, requester_id)
        return True
