"""Tests for the per-key lock map."""

from __future__ import annotations

import threading
import time

from quotagate.limiter.locks import KeyedLock


class TestKeyedLock:
    def test_reentrant_for_same_thread(self):
        locks = KeyedLock()
        with locks.hold("k"):
            with locks.hold("k"):
                assert locks.active_keys == 1
        assert locks.active_keys == 0

    def test_entries_released_after_use(self):
        locks = KeyedLock()
        for key in ("a", "b", "c"):
            with locks.hold(key):
                pass
        assert locks.active_keys == 0

    def test_same_key_serializes(self):
        locks = KeyedLock()
        inside = []
        overlap = []

        def worker():
            with locks.hold("k"):
                inside.append(1)
                if len(inside) > 1:
                    overlap.append(True)
                time.sleep(0.01)
                inside.pop()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert overlap == []

    def test_different_keys_do_not_block(self):
        locks = KeyedLock()
        holding_a = threading.Event()
        release_a = threading.Event()
        got_b = threading.Event()

        def hold_a():
            with locks.hold("a"):
                holding_a.set()
                release_a.wait(timeout=5)

        def take_b():
            with locks.hold("b"):
                got_b.set()

        ta = threading.Thread(target=hold_a)
        ta.start()
        holding_a.wait(timeout=5)

        tb = threading.Thread(target=take_b)
        tb.start()
        assert got_b.wait(timeout=2)

        release_a.set()
        ta.join()
        tb.join()
