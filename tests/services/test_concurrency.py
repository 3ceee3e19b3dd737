"""Tests for per-key locking helpers."""

import threading
import time

from huddle.core.concurrency import KeyedLocks, conversation_key


def test_conversation_key_is_symmetric_for_direct_messages() -> None:
    assert conversation_key(3, 7, None) == conversation_key(7, 3, None) == ("direct", 3, 7)
    assert conversation_key(3, None, 9) == ("group", 9)


def test_same_key_is_serialised() -> None:
    locks = KeyedLocks()
    active = []
    overlaps = []

    def _work() -> None:
        with locks.hold("k"):
            active.append(1)
            if len(active) > 1:
                overlaps.append(True)
            time.sleep(0.01)
            active.pop()

    threads = [threading.Thread(target=_work) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert overlaps == []
    assert len(locks) == 0


def test_different_keys_do_not_block_each_other() -> None:
    locks = KeyedLocks()
    inner_done = threading.Event()

    def _other() -> None:
        with locks.hold("b"):
            inner_done.set()

    with locks.hold("a"):
        worker = threading.Thread(target=_other)
        worker.start()
        assert inner_done.wait(timeout=2)
        worker.join(timeout=2)
