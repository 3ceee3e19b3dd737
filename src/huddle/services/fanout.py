"""Translate domain events into pushes through the subscription registries."""
from __future__ import annotations

import logging
from collections.abc import Callable

from .callbacks import PushEvent
from .events import (
    CallTransitioned,
    DomainEvent,
    FriendRequestCreated,
    GroupMembershipChanged,
    MessageCommitted,
    MessageDeleted,
    MessageEdited,
    MessagesRead,
    TransferSettled,
    UserStatusChanged,
)
from .registry import (
    SubscriptionRegistry,
    get_account_registry,
    get_chat_registry,
    get_video_registry,
)

logger = logging.getLogger(__name__)

CALL_EVENT_NAMES = {
    "PENDING": "incoming_call",
    "ACCEPTED": "call_accepted",
    "REJECTED": "call_rejected",
    "ENDED": "call_ended",
    "MISSED": "call_missed",
}


class EventFanout:
    """Deliver each domain event to its interested subscribers.

    Pushes for one event run sequentially on the calling thread, so two events
    published in order reach a given subscriber in that order. ``publish``
    never raises because of a push; failed handles are evicted by the registry.
    """

    def __init__(
        self,
        chat: SubscriptionRegistry,
        video: SubscriptionRegistry,
        accounts: SubscriptionRegistry,
    ) -> None:
        self.chat = chat
        self.video = video
        self.accounts = accounts
        self._handlers: dict[type, Callable[[DomainEvent], int]] = {
            MessageCommitted: self._message_committed,
            MessageEdited: self._message_edited,
            MessageDeleted: self._message_deleted,
            MessagesRead: self._messages_read,
            UserStatusChanged: self._status_changed,
            GroupMembershipChanged: self._membership_changed,
            FriendRequestCreated: self._friend_request,
            CallTransitioned: self._call_transitioned,
            TransferSettled: self._transfer_settled,
        }

    def publish(self, event: DomainEvent) -> int:
        """Fan ``event`` out and return how many subscribers received it."""
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"No fan-out rule for {type(event).__name__}")
        delivered = handler(event)
        logger.debug("%s delivered to %d subscriber(s)", type(event).__name__, delivered)
        return delivered

    def _message_committed(self, event: MessageCommitted) -> int:
        return self.chat.push_many(
            event.audience, PushEvent("message", {"message": event.message})
        )

    def _message_edited(self, event: MessageEdited) -> int:
        return self.chat.push_many(
            event.audience, PushEvent("message_edited", {"message": event.message})
        )

    def _message_deleted(self, event: MessageDeleted) -> int:
        return self.chat.push_many(
            event.audience, PushEvent("message_deleted", {"message_id": event.message_id})
        )

    def _messages_read(self, event: MessagesRead) -> int:
        pushed = self.chat.push(
            event.sender_id,
            PushEvent("read", {"reader_id": event.reader_id, "sender_id": event.sender_id}),
        )
        return int(pushed)

    def _status_changed(self, event: UserStatusChanged) -> int:
        return self.chat.broadcast(
            PushEvent("status", {"user_id": event.user_id, "status": event.status})
        )

    def _membership_changed(self, event: GroupMembershipChanged) -> int:
        if event.joined:
            push = PushEvent("joined_group", {"group_id": event.group_id, "user": event.user})
        else:
            push = PushEvent("left_group", {"group_id": event.group_id, "user_id": event.user_id})
        return self.chat.push_many(event.audience, push)

    def _friend_request(self, event: FriendRequestCreated) -> int:
        pushed = self.chat.push(
            event.addressee_id, PushEvent("friend_request", {"friendship": event.friendship})
        )
        return int(pushed)

    def _call_transitioned(self, event: CallTransitioned) -> int:
        name = CALL_EVENT_NAMES[event.call["state"]]
        return self.video.push_many(event.audience, PushEvent(name, {"call": event.call}))

    def _transfer_settled(self, event: TransferSettled) -> int:
        pushed = self.accounts.push(
            event.to_account,
            PushEvent(
                "funds_received",
                {"amount": event.amount, "from_account": event.from_account},
            ),
        )
        return int(pushed)


class _EventFanoutSingleton:
    """Singleton wrapper for EventFanout."""

    _instance: EventFanout | None = None

    @classmethod
    def get_instance(cls) -> EventFanout:
        if cls._instance is None:
            cls._instance = EventFanout(
                get_chat_registry(), get_video_registry(), get_account_registry()
            )
        return cls._instance


def get_event_fanout() -> EventFanout:
    """Return the process-wide fan-out over the singleton registries."""
    return _EventFanoutSingleton.get_instance()
