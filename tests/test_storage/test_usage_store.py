"""Tests for the UsageStore and for storage error translation."""

import pytest

from quotagate.exceptions import StorageUnavailable
from quotagate.storage.models import UsageState
from quotagate.storage.usage_store import UsageStore


class TestUsageStore:
    def test_load_missing_returns_none(self, usage_store):
        assert usage_store.load("k") is None

    def test_save_inserts(self, usage_store):
        usage_store.save(UsageState(key="k", tokens=3, last_refill_ms=1000))
        state = usage_store.load("k")
        assert state.tokens == 3
        assert state.last_refill_ms == 1000

    def test_save_overwrites(self, usage_store):
        usage_store.save(UsageState(key="k", tokens=3, last_refill_ms=1000))
        usage_store.save(UsageState(key="k", tokens=1, last_refill_ms=2500))
        state = usage_store.load("k")
        assert state.tokens == 1
        assert state.last_refill_ms == 2500
        assert usage_store.count() == 1

    def test_seed_is_full_bucket(self):
        state = UsageState.seed("k", capacity=8, now_ms=42)
        assert state.tokens == 8
        assert state.last_refill_ms == 42

    def test_delete(self, usage_store):
        usage_store.save(UsageState(key="k", tokens=3, last_refill_ms=1000))
        assert usage_store.delete("k") is True
        assert usage_store.load("k") is None

    def test_list_all(self, usage_store):
        usage_store.save(UsageState(key="b", tokens=1, last_refill_ms=0))
        usage_store.save(UsageState(key="a", tokens=2, last_refill_ms=0))
        assert [s.key for s in usage_store.list_all()] == ["a", "b"]


class TestStorageUnavailable:
    def test_unopenable_database_raises(self, tmp_path):
        # A directory cannot be opened as a database file
        bad_path = tmp_path / "not_a_db"
        bad_path.mkdir()
        store = UsageStore(bad_path)

        with pytest.raises(StorageUnavailable):
            store.load("k")
