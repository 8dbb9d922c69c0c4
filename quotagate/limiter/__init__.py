"""Rate limiting decision engine: algorithms, dispatch, policy resolution and the gate."""

from quotagate.limiter.dispatcher import LimiterDispatcher
from quotagate.limiter.gate import AdmissionGate, UsageSnapshot, epoch_millis
from quotagate.limiter.locks import KeyedLock
from quotagate.limiter.policies import PolicyService, validate_policy
from quotagate.limiter.resolver import PolicyResolver
from quotagate.limiter.sliding_window import SlidingWindowLimiter
from quotagate.limiter.token_bucket import TokenBucketLimiter

__all__ = [
    "AdmissionGate",
    "UsageSnapshot",
    "epoch_millis",
    "KeyedLock",
    "LimiterDispatcher",
    "PolicyResolver",
    "PolicyService",
    "validate_policy",
    "SlidingWindowLimiter",
    "TokenBucketLimiter",
]
