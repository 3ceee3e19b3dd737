"""In-memory mapping from subscriber identity to a live callback handle."""
from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable
from threading import Lock

from .callbacks import ClientCallback, PushEvent

logger = logging.getLogger(__name__)


class SubscriptionRegistry:
    """Thread-safe subject -> callback map with eviction on push failure.

    The lock only guards the mapping. Handles are looked up under the lock and
    invoked after it is released, and eviction removes an entry only if it
    still holds the handle that failed.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = Lock()
        self._handles: dict[Hashable, ClientCallback] = {}

    def register(self, subject_id: Hashable, callback: ClientCallback) -> None:
        """Bind ``callback`` to ``subject_id``, replacing any previous handle."""
        with self._lock:
            previous = self._handles.get(subject_id)
            self._handles[subject_id] = callback
        logger.info("Registered %s subscriber %s", self.name, subject_id)
        if previous is not None and previous is not callback:
            self._release(subject_id, previous)

    def unregister(self, subject_id: Hashable, callback: ClientCallback | None = None) -> bool:
        """Remove the entry for ``subject_id``.

        When ``callback`` is given the entry is removed only if it is still
        that handle, so a socket closing late cannot drop its replacement.
        """
        with self._lock:
            current = self._handles.get(subject_id)
            if current is None or (callback is not None and current is not callback):
                return False
            del self._handles[subject_id]
        logger.info("Unregistered %s subscriber %s", self.name, subject_id)
        self._release(subject_id, current)
        return True

    def get(self, subject_id: Hashable) -> ClientCallback | None:
        with self._lock:
            return self._handles.get(subject_id)

    def is_registered(self, subject_id: Hashable) -> bool:
        return self.get(subject_id) is not None

    def subjects(self) -> list[Hashable]:
        with self._lock:
            return list(self._handles)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def push(self, subject_id: Hashable, event: PushEvent) -> bool:
        """Deliver ``event`` to one subscriber; returns False if nobody received it."""
        handle = self.get(subject_id)
        if handle is None:
            return False
        try:
            handle.deliver(event)
        except Exception as exc:  # any failure marks the handle dead
            logger.warning(
                "Push of %s to %s subscriber %s failed (%s); evicting",
                event.name,
                self.name,
                subject_id,
                exc,
            )
            self._evict(subject_id, handle)
            return False
        logger.debug("Delivered %s to %s subscriber %s", event.name, self.name, subject_id)
        return True

    def push_many(self, subject_ids: Iterable[Hashable], event: PushEvent) -> int:
        """Push to each subject in order, skipping duplicates; returns deliveries."""
        delivered = 0
        seen: set[Hashable] = set()
        for subject_id in subject_ids:
            if subject_id in seen:
                continue
            seen.add(subject_id)
            if self.push(subject_id, event):
                delivered += 1
        return delivered

    def broadcast(
        self,
        event: PushEvent,
        predicate: Callable[[Hashable], bool] | None = None,
    ) -> int:
        """Push to every registered subject matching ``predicate``."""
        with self._lock:
            targets = [
                subject_id
                for subject_id in self._handles
                if predicate is None or predicate(subject_id)
            ]
        return self.push_many(targets, event)

    def clear(self) -> None:
        with self._lock:
            handles = list(self._handles.items())
            self._handles.clear()
        for subject_id, handle in handles:
            self._release(subject_id, handle)

    def _evict(self, subject_id: Hashable, handle: ClientCallback) -> None:
        with self._lock:
            if self._handles.get(subject_id) is not handle:
                return
            del self._handles[subject_id]
        self._release(subject_id, handle)

    def _release(self, subject_id: Hashable, handle: ClientCallback) -> None:
        try:
            handle.close()
        except Exception as exc:
            logger.debug("Releasing %s handle for %s failed: %s", self.name, subject_id, exc)


class _RegistrySingletons:
    """Process-wide registries, one per callback channel."""

    chat: SubscriptionRegistry | None = None
    video: SubscriptionRegistry | None = None
    accounts: SubscriptionRegistry | None = None

    @classmethod
    def get(cls, name: str) -> SubscriptionRegistry:
        registry = getattr(cls, name)
        if registry is None:
            registry = SubscriptionRegistry(name)
            setattr(cls, name, registry)
        return registry


def get_chat_registry() -> SubscriptionRegistry:
    """Return the singleton registry of chat subscribers keyed by user id."""
    return _RegistrySingletons.get("chat")


def get_video_registry() -> SubscriptionRegistry:
    """Return the singleton registry of call subscribers keyed by user id."""
    return _RegistrySingletons.get("video")


def get_account_registry() -> SubscriptionRegistry:
    """Return the singleton registry of banking subscribers keyed by account id."""
    return _RegistrySingletons.get("accounts")
