"""Routes an admission request to the algorithm its policy selects."""

from __future__ import annotations

from typing import Callable

from quotagate.exceptions import UnknownAlgorithm
from quotagate.limiter.sliding_window import SlidingWindowLimiter
from quotagate.limiter.token_bucket import TokenBucketLimiter
from quotagate.storage.models import AlgorithmKind, Policy, UsageState

_Admit = Callable[[UsageState, Policy, int], bool]


class LimiterDispatcher:
    """
    Single entry point for the admission algorithms.

    Selection is a lookup in a closed table keyed by AlgorithmKind. A
    policy whose kind is not in the table raises UnknownAlgorithm; it
    is never mapped to a default.
    """

    def __init__(
        self,
        token_bucket: TokenBucketLimiter,
        sliding_window: SlidingWindowLimiter,
    ) -> None:
        self.token_bucket = token_bucket
        self.sliding_window = sliding_window
        self._routes: dict[AlgorithmKind, _Admit] = {
            AlgorithmKind.TOKEN_BUCKET: self._admit_token_bucket,
            AlgorithmKind.SLIDING_WINDOW: self._admit_sliding_window,
        }

    def admit(self, state: UsageState, policy: Policy, now_ms: int) -> bool:
        """
        Evaluate one request against `policy`.

        Token bucket mutates `state` in place; sliding window records
        into its bucket store and leaves `state` untouched.

        Raises:
            UnknownAlgorithm: policy.kind is not a supported algorithm.
        """
        try:
            route = self._routes[policy.kind]
        except (KeyError, TypeError):
            raise UnknownAlgorithm(policy.kind) from None
        return route(state, policy, now_ms)

    def _admit_token_bucket(self, state: UsageState, policy: Policy, now_ms: int) -> bool:
        allowed, _ = self.token_bucket.admit(state, policy, now_ms)
        return allowed

    def _admit_sliding_window(self, state: UsageState, policy: Policy, now_ms: int) -> bool:
        return self.sliding_window.admit(state.key, policy, now_ms)
