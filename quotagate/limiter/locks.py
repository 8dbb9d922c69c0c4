"""Per-key mutual exclusion."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator


@dataclass
class _Entry:
    lock: threading.RLock = field(default_factory=threading.RLock)
    # Threads holding or waiting on the lock
    users: int = 0


class KeyedLock:
    """
    A map of re-entrant locks, one per key.

    Holders of different keys never contend. An entry lives only while
    some thread holds or waits on it, so the map stays bounded by the
    number of keys in flight rather than the number of keys ever seen.

    Re-entrant so a component that locks a key (the sliding window
    limiter) can be called by another that already holds it (the gate).
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Block until the key's lock is acquired; release on exit."""
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = _Entry()
                self._entries[key] = entry
            entry.users += 1

        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[key]

    @property
    def active_keys(self) -> int:
        """Number of keys currently held or awaited (for monitoring)."""
        with self._guard:
            return len(self._entries)
