"""
Admission gate: the one operation the request path calls.

``check(key)`` resolves the key's policy, loads (or seeds) its usage
state, runs the policy's algorithm and persists the result. The whole
resolve, load, decide, save cycle for a key runs under that key's lock,
the same lock policy updates and the sweeper take;
different keys never wait on each other.

Outcomes:
- True / False: admitted / denied.
- InvalidPolicy reaching the gate: denied (fail closed), logged.
- UnknownAlgorithm, StorageUnavailable: raised to the caller. The caller
  decides between fail-open and fail-closed; nothing is retried here.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from quotagate.config.settings import Settings, get_settings
from quotagate.exceptions import InvalidPolicy, StateCorruption
from quotagate.limiter.dispatcher import LimiterDispatcher
from quotagate.limiter.locks import KeyedLock
from quotagate.limiter.policies import validate_policy
from quotagate.limiter.resolver import PolicyResolver
from quotagate.limiter.sliding_window import SlidingWindowLimiter
from quotagate.limiter.token_bucket import TokenBucketLimiter
from quotagate.storage.bucket_store import BucketStore
from quotagate.storage.models import AlgorithmKind, Policy, UsageState
from quotagate.storage.policy_store import PolicyStore
from quotagate.storage.usage_store import UsageStore

logger = logging.getLogger(__name__)

# Returns "now" in epoch milliseconds
Clock = Callable[[], int]


def epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def verify_state(state: UsageState, policy: Policy) -> None:
    """Raise StateCorruption if the stored counters are impossible for `policy`."""
    if state.tokens < 0:
        raise StateCorruption(state.key, f"negative tokens ({state.tokens})")
    if state.tokens > policy.capacity:
        raise StateCorruption(
            state.key, f"tokens {state.tokens} exceed capacity {policy.capacity}"
        )


@dataclass
class UsageSnapshot:
    """Read-only view of one key's usage, for admin metrics."""

    key: str
    algorithm: str
    tokens: int
    capacity: int
    window_seconds: int
    window_request_count: int
    status: str  # "OK" or "THROTTLED"


class AdmissionGate:
    """Per-key rate limit decisions backed by the SQLite stores."""

    def __init__(
        self,
        resolver: PolicyResolver,
        usage_store: UsageStore,
        bucket_store: BucketStore,
        dispatcher: Optional[LimiterDispatcher] = None,
        locks: Optional[KeyedLock] = None,
        clock: Optional[Clock] = None,
        prune_on_write: bool = True,
    ) -> None:
        self._resolver = resolver
        self._usage = usage_store
        self._buckets = bucket_store
        self._locks = locks or KeyedLock()
        self._clock = clock or epoch_millis
        self._dispatcher = dispatcher or LimiterDispatcher(
            token_bucket=TokenBucketLimiter(),
            sliding_window=SlidingWindowLimiter(
                bucket_store, locks=self._locks, prune_on_write=prune_on_write
            ),
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
        locks: Optional[KeyedLock] = None,
    ) -> AdmissionGate:
        """Wire a gate against the database configured in `settings`."""
        settings = settings or get_settings()
        db_path = settings.db_path
        return cls(
            resolver=PolicyResolver(PolicyStore(db_path), settings.default_policy),
            usage_store=UsageStore(db_path),
            bucket_store=BucketStore(db_path),
            locks=locks,
            clock=clock,
            prune_on_write=settings.gate.prune_on_write,
        )

    @property
    def locks(self) -> KeyedLock:
        return self._locks

    @property
    def resolver(self) -> PolicyResolver:
        return self._resolver

    # ----- Request path -----

    def check(self, key: str) -> bool:
        """Admit or deny one request for `key`. May block on the key's lock or on I/O."""
        with self._locks.hold(key):
            # No policy update for this key can land between resolve and save
            policy = self._resolver.resolve(key)
            try:
                policy = validate_policy(policy)
            except InvalidPolicy as exc:
                logger.warning("Denying request, %s", exc)
                return False

            now_ms = self._clock()
            state = self._load_or_seed(key, policy, now_ms)
            allowed = self._dispatcher.admit(state, policy, now_ms)
            # Refill bookkeeping may have moved even on deny. A fresh seed
            # is first written here, after the decision
            self._usage.save(state)

        if not allowed:
            logger.debug("Denied %s (%s)", key, policy.kind.value)
        return allowed

    def _load_or_seed(self, key: str, policy: Policy, now_ms: int) -> UsageState:
        state = self._usage.load(key)
        if state is not None:
            try:
                verify_state(state, policy)
                return state
            except StateCorruption as exc:
                logger.warning("%s; re-seeding", exc)

        return UsageState.seed(key, policy.capacity, now_ms)

    # ----- Administration -----

    def reset(self, key: str) -> None:
        """
        Refill the key's bucket and wipe its window history.

        Idempotent. Keys with no usage state are left without one.
        """
        with self._locks.hold(key):
            policy = self._resolver.resolve(key)
            self._buckets.delete_all(key)
            if self._usage.load(key) is None:
                return
            self._usage.save(UsageState.seed(key, policy.capacity, self._clock()))
        logger.info("Reset usage for %s", key)

    def snapshot(self, key: str) -> Optional[UsageSnapshot]:
        """Current usage for `key`, or None if the key was never checked."""
        state = self._usage.load(key)
        if state is None:
            return None
        return self._snapshot(state)

    def snapshots(self) -> list[UsageSnapshot]:
        return [self._snapshot(s) for s in self._usage.list_all()]

    def _snapshot(self, state: UsageState) -> UsageSnapshot:
        policy = self._resolver.resolve(state.key)
        now_ms = self._clock()

        if policy.kind is AlgorithmKind.SLIDING_WINDOW:
            used = self._dispatcher.sliding_window.used(state.key, policy, now_ms)
            tokens = max(0, policy.capacity - used)
        else:
            tokens = self._dispatcher.token_bucket.available(state, policy, now_ms)
            used = policy.capacity - tokens

        return UsageSnapshot(
            key=state.key,
            algorithm=policy.kind.value,
            tokens=tokens,
            capacity=policy.capacity,
            window_seconds=policy.window_seconds,
            window_request_count=used,
            status="OK" if tokens > 0 else "THROTTLED",
        )
