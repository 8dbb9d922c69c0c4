"""
Sliding window admission over per-second counters.

The window for a call at second ``now_s`` is the inclusive range
``[now_s - window_seconds + 1, now_s]``. A request is admitted when the
counters in that range sum to less than the policy capacity, and is then
recorded in the ``now_s`` bucket. Memory per key is bounded by
``window_seconds`` rows once expired buckets are pruned.
"""

from __future__ import annotations

import logging
from typing import Optional

from quotagate.limiter.locks import KeyedLock
from quotagate.storage.bucket_store import BucketStore
from quotagate.storage.models import Policy

logger = logging.getLogger(__name__)


def window_bounds(policy: Policy, now_ms: int) -> tuple[int, int]:
    """(first, last) epoch second of the window ending at now_ms, both inclusive."""
    now_s = now_ms // 1000
    return now_s - policy.window_seconds + 1, now_s


class SlidingWindowLimiter:
    """
    Stateless sliding window algorithm backed by a BucketStore.

    The read-sum / conditional-increment sequence runs under the key's
    lock, so concurrent callers of the same key cannot both see room for
    the last slot.
    """

    def __init__(
        self,
        bucket_store: BucketStore,
        locks: Optional[KeyedLock] = None,
        prune_on_write: bool = True,
    ) -> None:
        self._buckets = bucket_store
        self._locks = locks or KeyedLock()
        self._prune_on_write = prune_on_write

    def admit(self, key: str, policy: Policy, now_ms: int) -> bool:
        """Admit and record one request for `key`, or deny without recording it."""
        window_start, now_s = window_bounds(policy, now_ms)

        with self._locks.hold(key):
            used = self._buckets.sum_buckets(key, window_start, now_s)
            if used >= policy.capacity:
                logger.debug(
                    "Window full for %s: %d/%d in %ds",
                    key, used, policy.capacity, policy.window_seconds,
                )
                return False

            self._buckets.increment_bucket(key, now_s)

            if self._prune_on_write:
                self._buckets.delete_buckets_before(key, window_start)

        return True

    def used(self, key: str, policy: Policy, now_ms: int) -> int:
        """Requests counted in the window ending at now_ms."""
        window_start, now_s = window_bounds(policy, now_ms)
        return self._buckets.sum_buckets(key, window_start, now_s)
