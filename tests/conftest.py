"""
Shared test fixtures for the QuotaGate test suite.

Every test gets a fresh SQLite database in pytest's tmp_path with the
schema already initialized, plus a controllable clock so time-based
behaviour is deterministic.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from quotagate.config.settings import DefaultPolicySettings
from quotagate.limiter.gate import AdmissionGate
from quotagate.limiter.locks import KeyedLock
from quotagate.limiter.resolver import PolicyResolver
from quotagate.storage.bucket_store import BucketStore
from quotagate.storage.connection import close_connection, get_connection
from quotagate.storage.models import AlgorithmKind, Policy
from quotagate.storage.policy_store import PolicyStore
from quotagate.storage.schema import initialize_database
from quotagate.storage.usage_store import UsageStore

# 2025-01-01T00:00:00Z, on a whole second so window math is easy to read
T0_MS = 1_735_689_600_000


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start_ms: int = T0_MS) -> None:
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float = 0.0, ms: int = 0) -> None:
        self.now_ms += int(seconds * 1000) + ms

    def set(self, now_ms: int) -> None:
        self.now_ms = now_ms


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Temporary SQLite database path, cleaned up by tmp_path."""
    return tmp_path / "test_quotagate.db"


@pytest.fixture
def db(db_path: Path):
    """Initialized database connection; closed after the test."""
    initialize_database(db_path)
    conn = get_connection(db_path)
    yield conn
    close_connection(db_path)


@pytest.fixture
def policy_store(db, db_path: Path) -> PolicyStore:
    return PolicyStore(db_path)


@pytest.fixture
def usage_store(db, db_path: Path) -> UsageStore:
    return UsageStore(db_path)


@pytest.fixture
def bucket_store(db, db_path: Path) -> BucketStore:
    return BucketStore(db_path)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def defaults() -> DefaultPolicySettings:
    return DefaultPolicySettings(
        kind="TOKEN_BUCKET", capacity=100, refill_rate=10, window_seconds=60
    )


@pytest.fixture
def resolver(policy_store: PolicyStore, defaults: DefaultPolicySettings) -> PolicyResolver:
    return PolicyResolver(policy_store, defaults)


@pytest.fixture
def gate(resolver, usage_store, bucket_store, clock) -> AdmissionGate:
    """Gate over the test database, driven by the fake clock."""
    return AdmissionGate(
        resolver=resolver,
        usage_store=usage_store,
        bucket_store=bucket_store,
        locks=KeyedLock(),
        clock=clock,
    )


# ---------------------------------------------------------------------------
# Sample data factories
# ---------------------------------------------------------------------------


def make_policy(
    key: str = "10.0.0.1",
    kind: AlgorithmKind = AlgorithmKind.TOKEN_BUCKET,
    capacity: int = 5,
    **kwargs,
) -> Policy:
    """Create a Policy with sensible defaults. Override any field via kwargs."""
    defaults = dict(refill_rate=1, window_seconds=60)
    defaults.update(kwargs)
    return Policy(key=key, kind=kind, capacity=capacity, **defaults)


@pytest.fixture
def policy_factory():
    """Expose make_policy to tests without importing from conftest."""
    return make_policy
