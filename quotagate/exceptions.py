"""Exceptions raised by the QuotaGate core and its stores.

Every exception carries the HTTP ``status_code`` the API layer answers
with. "Denied" is never an exception: ``AdmissionGate.check`` returns
False for that.
"""

from __future__ import annotations


class QuotaGateError(Exception):
    """Base class for all QuotaGate errors."""

    status_code: int = 500

    def __init__(self, message: str = "QuotaGate error"):
        self.message = message
        super().__init__(message)


class UnknownAlgorithm(QuotaGateError):
    """A policy names an algorithm the dispatcher does not implement.

    Indicates misconfiguration. Never silently mapped to a default.
    """

    status_code = 500

    def __init__(self, kind: object):
        self.kind = kind
        super().__init__(
            f"Unknown limiter algorithm: {kind!r}. "
            f"Supported: TOKEN_BUCKET, SLIDING_WINDOW"
        )


# Older name kept for callers that catch the dispatcher error by it.
UnsupportedAlgorithm = UnknownAlgorithm


class InvalidPolicy(QuotaGateError):
    """A policy's parameters are out of range (capacity < 1, negative rate, ...)."""

    status_code = 400

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid policy for key {key!r}: {reason}")


class StorageUnavailable(QuotaGateError):
    """The SQLite store could not be opened or stayed locked too long.

    Distinct from a deny: an outage must not look like throttling.
    """

    status_code = 503

    def __init__(self, detail: str = "Rate limit storage unavailable"):
        self.detail = detail
        super().__init__(detail)


class StateCorruption(QuotaGateError):
    """Persisted usage state violates its invariants (negative tokens, over capacity)."""

    status_code = 500

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Corrupt usage state for key {key!r}: {reason}")


class PolicyNotFound(QuotaGateError):
    status_code = 404

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No policy found for key: {key}")


class PolicyAlreadyExists(QuotaGateError):
    status_code = 409

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Policy already exists for key: {key}. Use PUT to update.")
