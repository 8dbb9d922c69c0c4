"""
Data models for the QuotaGate storage layer.

Plain dataclasses, no ORM. They represent rows in SQLite tables and are
the transport format between storage and the limiter modules.

Every field maps 1:1 to a database column.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from quotagate.exceptions import UnknownAlgorithm


def _utc_now_iso() -> str:
    """ISO 8601 timestamp in UTC, used as default for created/updated timestamps."""
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Algorithm kinds
# ---------------------------------------------------------------------------


class AlgorithmKind(str, Enum):
    """Admission algorithms a policy can select."""

    TOKEN_BUCKET = "TOKEN_BUCKET"
    SLIDING_WINDOW = "SLIDING_WINDOW"

    @classmethod
    def parse(cls, raw: object) -> AlgorithmKind:
        """
        Normalize an externally supplied kind.

        Accepts any casing and either '-' or '_' as separator
        ("token-bucket", "Sliding_Window", ...). Raises UnknownAlgorithm
        for anything else.
        """
        if isinstance(raw, cls):
            return raw
        normalized = str(raw).strip().upper().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            raise UnknownAlgorithm(raw) from None


# ---------------------------------------------------------------------------
# Policies: the limiting rule per key, written by the admin layer
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Policy:
    """
    Limiting rule for one key.

    Stored in the `policies` table. Read-only to the limiter core.
    Only one of refill_rate / window_seconds is meaningful, picked by kind.
    """

    # Identity the quota is tracked against, e.g. a client address
    key: str

    # Which admission algorithm applies
    kind: AlgorithmKind = AlgorithmKind.TOKEN_BUCKET

    # Bucket size (token bucket) or max requests per window (sliding window)
    capacity: int = 1

    # Tokens added per second (token bucket only)
    refill_rate: int = 0

    # Window length in seconds (sliding window only)
    window_seconds: int = 60

    created_at: str = field(default_factory=_utc_now_iso, compare=False)
    updated_at: str = field(default_factory=_utc_now_iso, compare=False)


# ---------------------------------------------------------------------------
# Usage state: token bucket counters per key
# ---------------------------------------------------------------------------


@dataclass
class UsageState:
    """
    Mutable token-bucket counters for one key.

    Stored in the `usage_state` table. Created on the first request for a
    key, rewritten on every check, re-seeded by reset.
    """

    key: str

    # Tokens currently available, 0 <= tokens <= capacity
    tokens: int

    # Epoch milliseconds up to which elapsed time has been turned into tokens
    last_refill_ms: int

    updated_at: str = field(default_factory=_utc_now_iso, compare=False)

    @classmethod
    def seed(cls, key: str, capacity: int, now_ms: int) -> UsageState:
        """Fresh state: a full bucket, refill clock starting now."""
        return cls(key=key, tokens=capacity, last_refill_ms=now_ms)


# ---------------------------------------------------------------------------
# Usage buckets: per-second sliding window counters
# ---------------------------------------------------------------------------


@dataclass
class UsageBucket:
    """
    Admitted-request count for one key within one second.

    Stored in the `usage_buckets` table, primary key (key, bucket_ts).
    """

    key: str

    # Epoch second this bucket covers
    bucket_ts: int

    count: int = 0
