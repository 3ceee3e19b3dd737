"""Fine-grained locking keyed by conversation or subject."""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from contextlib import contextmanager
from threading import Lock


class KeyedLocks:
    """Hand out one lock per key, dropping idle locks once released.

    Used to serialise work that must stay ordered for a single key (for
    example message appends within one conversation) without a global lock.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: dict[Hashable, list] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1
        lock: Lock = entry[0]
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    self._locks.pop(key, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


def conversation_key(sender_id: int, receiver_id: int | None, group_id: int | None) -> tuple:
    """Return a stable key for the conversation a message belongs to."""
    if group_id is not None:
        return ("group", group_id)
    low, high = sorted((sender_id, receiver_id or 0))
    return ("direct", low, high)
