"""Token bucket admission with lazy, drift-free refill."""

from __future__ import annotations

from quotagate.storage.models import Policy, UsageState


class TokenBucketLimiter:
    """
    Stateless token bucket algorithm.

    Refill happens lazily on each call from the time elapsed since
    ``last_refill_ms``. The refill clock advances by the time converted
    into whole tokens, rounded up to the millisecond, so the remainder
    carries over to the next call and the same span of time is never
    credited twice. All arithmetic is integer.
    """

    def admit(
        self, state: UsageState, policy: Policy, now_ms: int
    ) -> tuple[bool, UsageState]:
        """
        Refill `state`, then try to take one token.

        Mutates and returns `state`. On deny the only change is the refill
        bookkeeping, which callers must still persist. Tokens above
        `policy.capacity` (state saved under a larger policy) are clamped.
        """
        capacity = policy.capacity
        rate = policy.refill_rate

        # Clock skew: treat time going backwards as no time passing
        elapsed_ms = max(0, now_ms - state.last_refill_ms)

        tokens_to_add = elapsed_ms * rate // 1000 if rate > 0 else 0
        if tokens_to_add > 0:
            state.tokens = min(capacity, state.tokens + tokens_to_add)
            # Ceiling: never leave behind time that would mint the same
            # tokens again (rate > 1000 can add a token in under 1 ms)
            state.last_refill_ms += -(-tokens_to_add * 1000 // rate)

        # Direct callers may pass state from before a capacity shrink;
        # AdmissionGate re-seeds such state before it gets here
        state.tokens = min(state.tokens, capacity)

        if state.tokens >= 1:
            state.tokens -= 1
            return True, state
        return False, state

    def available(self, state: UsageState, policy: Policy, now_ms: int) -> int:
        """Tokens a call at `now_ms` would see after refill. Does not mutate `state`."""
        rate = policy.refill_rate
        elapsed_ms = max(0, now_ms - state.last_refill_ms)
        tokens_to_add = elapsed_ms * rate // 1000 if rate > 0 else 0
        return max(0, min(policy.capacity, state.tokens + tokens_to_add))
