"""In-memory call signaling state machine.

::

    PENDING  --accept-->  ACCEPTED --end--> ENDED    (dropped at once)
                          ACCEPTED --limit-> ENDED   (max duration reached)
    PENDING  --reject-->  REJECTED                   (kept for a grace window)
    PENDING  --timeout--> MISSED                     (kept for a grace window)

Only the caller and the receiver may move a call. No media passes through
the server; both parties are told about every transition.
"""
from __future__ import annotations

import enum
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime
from threading import Lock, Timer
from typing import Any

from huddle.core.errors import Conflict, Forbidden, InvalidArgument, NotFound
from huddle.core.settings import settings
from huddle.db.time import utcnow

from .events import CallTransitioned
from .fanout import EventFanout, get_event_fanout

logger = logging.getLogger(__name__)


class CallKind(str, enum.Enum):
    VOICE = "VOICE"
    VIDEO = "VIDEO"


class CallState(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    ENDED = "ENDED"
    MISSED = "MISSED"


TERMINAL_STATES = frozenset({CallState.REJECTED, CallState.ENDED, CallState.MISSED})


@dataclass
class CallRequest:
    """A call between two users.

    ``group_id`` is carried for clients that start a call from a group view;
    signaling always addresses ``receiver_id``.
    """

    call_id: str
    caller_id: int
    receiver_id: int
    kind: CallKind
    group_id: int | None = None
    state: CallState = CallState.PENDING
    created_at: datetime = field(default_factory=utcnow)
    answered_at: datetime | None = None
    ended_at: datetime | None = None

    def involves(self, user_id: int) -> bool:
        return user_id in (self.caller_id, self.receiver_id)

    @property
    def parties(self) -> tuple[int, int]:
        return (self.caller_id, self.receiver_id)

    def snapshot(self) -> dict[str, Any]:
        """Return a JSON-ready copy safe to hand out after the lock is released."""
        return {
            "call_id": self.call_id,
            "caller_id": self.caller_id,
            "receiver_id": self.receiver_id,
            "group_id": self.group_id,
            "kind": self.kind.value,
            "state": self.state.value,
            "created_at": self.created_at.isoformat(),
            "answered_at": self.answered_at.isoformat() if self.answered_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
        }


class CallSignaling:
    """Owns every live ``CallRequest`` and drives its transitions.

    State is guarded by one lock; pushes are made after it is released. Each
    call has at most one timer: the ring watchdog while PENDING, the duration
    limit while ACCEPTED, then the eviction timer once terminal.
    """

    def __init__(
        self,
        fanout: EventFanout,
        ring_timeout: float | None = None,
        grace_period: float | None = None,
        max_duration: float | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.fanout = fanout
        self.ring_timeout = (
            settings.call_ring_timeout_seconds if ring_timeout is None else ring_timeout
        )
        self.grace_period = (
            settings.call_terminal_grace_seconds if grace_period is None else grace_period
        )
        self.max_duration = (
            settings.call_max_duration_seconds if max_duration is None else max_duration
        )
        self._clock = clock
        self._lock = Lock()
        self._calls: dict[str, CallRequest] = {}
        self._ended: set[str] = set()
        self._timers: dict[str, Timer] = {}

    def initiate(
        self,
        caller_id: int,
        receiver_id: int,
        kind: CallKind = CallKind.VIDEO,
        group_id: int | None = None,
    ) -> CallRequest:
        """Create a PENDING call and ring the receiver."""
        if caller_id == receiver_id:
            raise InvalidArgument("Cannot call yourself")
        call = CallRequest(
            call_id=uuid.uuid4().hex,
            caller_id=caller_id,
            receiver_id=receiver_id,
            kind=kind,
            group_id=group_id,
            created_at=self._clock(),
        )
        with self._lock:
            self._calls[call.call_id] = call
            if self.ring_timeout > 0:
                self._schedule(call.call_id, self.ring_timeout, self.expire_pending)
            snapshot = call.snapshot()
            created = replace(call)
        logger.info("Call %s: %s -> %s (%s)", call.call_id, caller_id, receiver_id, kind.value)
        self.fanout.publish(CallTransitioned(snapshot, (receiver_id,)))
        return created

    def get(self, call_id: str, user_id: int | None = None) -> CallRequest:
        with self._lock:
            call = self._calls.get(call_id)
            if call is None:
                raise NotFound("Call not found")
            if user_id is not None and not call.involves(user_id):
                raise Forbidden("You are not part of this call")
            return replace(call)

    def accept(self, call_id: str, user_id: int) -> bool:
        self._transition(call_id, user_id, CallState.PENDING, CallState.ACCEPTED)
        return True

    def reject(self, call_id: str, user_id: int) -> bool:
        self._transition(call_id, user_id, CallState.PENDING, CallState.REJECTED)
        return True

    def end(self, call_id: str, user_id: int) -> bool:
        self._transition(call_id, user_id, CallState.ACCEPTED, CallState.ENDED)
        return True

    def expire_pending(self, call_id: str) -> bool:
        """Move a still-ringing call to MISSED; returns False if it was answered."""
        with self._lock:
            call = self._calls.get(call_id)
            if call is None or call.state is not CallState.PENDING:
                return False
            self._timers.pop(call_id, None)
            call.state = CallState.MISSED
            call.ended_at = self._clock()
            self._retire(call)
            snapshot = call.snapshot()
        logger.info("Call %s missed", call_id)
        self.fanout.publish(CallTransitioned(snapshot, call.parties))
        return True

    def expire_accepted(self, call_id: str) -> bool:
        """End a call that outlived the duration limit; False if already over."""
        with self._lock:
            call = self._calls.get(call_id)
            if call is None or call.state is not CallState.ACCEPTED:
                return False
            self._timers.pop(call_id, None)
            call.state = CallState.ENDED
            call.ended_at = self._clock()
            self._retire(call)
            snapshot = call.snapshot()
        logger.info("Call %s reached its duration limit", call_id)
        self.fanout.publish(CallTransitioned(snapshot, call.parties))
        return True

    def _transition(
        self,
        call_id: str,
        user_id: int,
        expected: CallState,
        target: CallState,
    ) -> None:
        with self._lock:
            call = self._calls.get(call_id)
            if call is None:
                if call_id in self._ended:
                    raise Conflict("Call has already ended")
                raise NotFound("Call not found")
            if not call.involves(user_id):
                logger.warning("User %s tried to %s call %s", user_id, target.value, call_id)
                raise Forbidden("You are not part of this call")
            if call.state is not expected:
                raise Conflict(f"Call is {call.state.value}")
            self._cancel_timer(call_id)
            call.state = target
            now = self._clock()
            if target is CallState.ACCEPTED:
                call.answered_at = now
                if self.max_duration > 0:
                    self._schedule(call_id, self.max_duration, self.expire_accepted)
            else:
                call.ended_at = now
                self._retire(call)
            snapshot = call.snapshot()
        logger.info("Call %s %s by %s", call_id, target.value, user_id)
        self.fanout.publish(CallTransitioned(snapshot, call.parties))

    def _retire(self, call: CallRequest) -> None:
        # Caller holds the lock.
        if call.state is CallState.ENDED:
            del self._calls[call.call_id]
            self._ended.add(call.call_id)
        self._schedule(call.call_id, self.grace_period, self._evict)

    def _evict(self, call_id: str) -> None:
        with self._lock:
            self._timers.pop(call_id, None)
            call = self._calls.get(call_id)
            if call is not None and call.state in TERMINAL_STATES:
                del self._calls[call_id]
            self._ended.discard(call_id)
        logger.debug("Call %s evicted", call_id)

    def _schedule(self, call_id: str, delay: float, action: Callable[[str], object]) -> None:
        self._cancel_timer(call_id)
        timer = Timer(delay, action, args=(call_id,))
        timer.daemon = True
        self._timers[call_id] = timer
        timer.start()

    def _cancel_timer(self, call_id: str) -> None:
        timer = self._timers.pop(call_id, None)
        if timer is not None:
            timer.cancel()

    def active_calls(self) -> list[CallRequest]:
        with self._lock:
            return [c for c in self._calls.values() if c.state not in TERMINAL_STATES]

    def shutdown(self) -> None:
        """Cancel every timer and forget all calls."""
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
            self._calls.clear()
            self._ended.clear()
        for timer in timers:
            timer.cancel()


class _CallSignalingSingleton:
    _instance: CallSignaling | None = None

    @classmethod
    def get_instance(cls) -> CallSignaling:
        if cls._instance is None:
            cls._instance = CallSignaling(get_event_fanout())
        return cls._instance

    @classmethod
    def peek(cls) -> CallSignaling | None:
        return cls._instance


def get_call_signaling() -> CallSignaling:
    """Return the process-wide call signaling core."""
    return _CallSignalingSingleton.get_instance()


def shutdown_call_signaling() -> None:
    """Stop timers of the process-wide core if it was ever created."""
    signaling = _CallSignalingSingleton.peek()
    if signaling is not None:
        signaling.shutdown()
