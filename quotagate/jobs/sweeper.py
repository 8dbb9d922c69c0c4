"""
Background sweeper for expired sliding window buckets.

Runs in its own thread and, every ``interval`` seconds, deletes each
key's buckets that fell out of that key's window. Keys whose policy is
no longer SLIDING_WINDOW lose all their buckets. Admission never depends
on this job: expired buckets are excluded from window sums whether or
not they were deleted.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from quotagate.config.settings import SweepSettings, get_settings
from quotagate.limiter.gate import epoch_millis
from quotagate.limiter.locks import KeyedLock
from quotagate.limiter.resolver import PolicyResolver
from quotagate.limiter.sliding_window import window_bounds
from quotagate.storage.bucket_store import BucketStore
from quotagate.storage.models import AlgorithmKind

logger = logging.getLogger(__name__)


class BucketSweeper:
    """Periodic cleanup of expired window buckets."""

    def __init__(
        self,
        bucket_store: BucketStore,
        resolver: PolicyResolver,
        locks: Optional[KeyedLock] = None,
        settings: Optional[SweepSettings] = None,
        clock: Optional[Callable[[], int]] = None,
        name: str = "bucket-sweeper",
    ) -> None:
        self._buckets = bucket_store
        self._resolver = resolver
        self._locks = locks or KeyedLock()
        self._settings = settings or get_settings().sweep
        self._clock = clock or epoch_millis
        self._name = name
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the sweeper in a background thread."""
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop, name=self._name, daemon=True
        )
        self._thread.start()
        logger.info("Sweeper '%s' started (interval=%.1fs)", self._name, self._settings.interval)

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the sweeper to stop and wait for the thread to finish."""
        self._stop.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("Sweeper '%s' stopped", self._name)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("Unhandled error in sweeper '%s'", self._name)
            self._stop.wait(self._settings.interval)

    def run_once(self) -> int:
        """
        Sweep every key once, synchronously (also used by tests and the CLI).
        Returns the number of buckets deleted.
        """
        now_ms = self._clock()
        total = 0
        for key in self._buckets.keys():
            with self._locks.hold(key):
                # Same lock as policy updates: the kind cannot change mid-decision
                policy = self._resolver.resolve(key)
                if policy.kind is AlgorithmKind.SLIDING_WINDOW:
                    window_start, _ = window_bounds(policy, now_ms)
                    total += self._buckets.delete_buckets_before(key, window_start)
                else:
                    total += self._buckets.delete_all(key)
        if total:
            logger.info("Sweeper '%s' removed %d expired buckets", self._name, total)
        return total
