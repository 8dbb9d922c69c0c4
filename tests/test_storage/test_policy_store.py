"""Tests for the PolicyStore CRUD operations."""

import pytest

from quotagate.exceptions import UnknownAlgorithm
from quotagate.storage.models import AlgorithmKind, Policy


class TestPolicyInsert:
    def test_insert_and_get(self, policy_store, policy_factory):
        policy = policy_factory(key="a", capacity=7, refill_rate=2)
        assert policy_store.insert(policy) is True

        loaded = policy_store.get("a")
        assert loaded == policy
        assert loaded.kind is AlgorithmKind.TOKEN_BUCKET

    def test_insert_duplicate_returns_false(self, policy_store, policy_factory):
        policy_store.insert(policy_factory(key="a"))
        assert policy_store.insert(policy_factory(key="a", capacity=99)) is False
        assert policy_store.get("a").capacity == 5

    def test_get_missing_returns_none(self, policy_store):
        assert policy_store.get("nobody") is None

    def test_kind_stored_canonically(self, policy_store, db):
        policy_store.insert(Policy(key="w", kind="sliding-window", capacity=3))
        row = db.execute("SELECT kind FROM policies WHERE key = 'w'").fetchone()
        assert row["kind"] == "SLIDING_WINDOW"

    def test_unknown_kind_rejected(self, policy_store):
        with pytest.raises(UnknownAlgorithm):
            policy_store.insert(Policy(key="x", kind="LEAKY_BUCKET", capacity=3))


class TestPolicyUpdateDelete:
    def test_update_changes_parameters(self, policy_store, policy_factory):
        policy_store.insert(policy_factory(key="a"))
        changed = policy_factory(
            key="a", kind=AlgorithmKind.SLIDING_WINDOW, capacity=10, window_seconds=30
        )
        assert policy_store.update(changed) is True

        loaded = policy_store.get("a")
        assert loaded.kind is AlgorithmKind.SLIDING_WINDOW
        assert loaded.capacity == 10
        assert loaded.window_seconds == 30

    def test_update_missing_returns_false(self, policy_store, policy_factory):
        assert policy_store.update(policy_factory(key="ghost")) is False

    def test_delete(self, policy_store, policy_factory):
        policy_store.insert(policy_factory(key="a"))
        assert policy_store.delete("a") is True
        assert policy_store.get("a") is None
        assert policy_store.delete("a") is False


class TestPolicyQueries:
    def test_list_all_sorted(self, policy_store, policy_factory):
        for key in ("c", "a", "b"):
            policy_store.insert(policy_factory(key=key))
        assert [p.key for p in policy_store.list_all()] == ["a", "b", "c"]

    def test_exists_and_count(self, policy_store, policy_factory):
        assert policy_store.count() == 0
        policy_store.insert(policy_factory(key="a"))
        assert policy_store.exists("a")
        assert not policy_store.exists("b")
        assert policy_store.count() == 1
