"""
Policy administration: validation and CRUD.

This is the boundary where externally supplied policies are checked.
Anything that passes validate_policy() is safe for the limiter core.
Updates and deletes take the key's lock so they never land in the
middle of a check for the same key.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from quotagate.exceptions import InvalidPolicy, PolicyAlreadyExists, PolicyNotFound
from quotagate.limiter.locks import KeyedLock
from quotagate.storage.models import AlgorithmKind, Policy
from quotagate.storage.policy_store import PolicyStore

logger = logging.getLogger(__name__)


def validate_policy(policy: Policy) -> Policy:
    """
    Check a policy's parameters and normalize its kind.

    Returns the policy with kind parsed into AlgorithmKind.

    Raises:
        InvalidPolicy: empty key, capacity < 1, refill_rate < 0 or
            window_seconds < 1.
        UnknownAlgorithm: kind is not a supported algorithm.
    """
    if not policy.key or not policy.key.strip():
        raise InvalidPolicy(policy.key, "key must not be empty")
    if policy.capacity < 1:
        raise InvalidPolicy(policy.key, f"capacity must be >= 1, got {policy.capacity}")
    if policy.refill_rate < 0:
        raise InvalidPolicy(policy.key, f"refill_rate must be >= 0, got {policy.refill_rate}")
    if policy.window_seconds < 1:
        raise InvalidPolicy(
            policy.key, f"window_seconds must be >= 1, got {policy.window_seconds}"
        )
    kind = AlgorithmKind.parse(policy.kind)
    if kind is not policy.kind:
        policy = replace(policy, kind=kind)
    return policy


class PolicyService:
    """Create, read, update and delete persisted policies."""

    def __init__(
        self,
        policy_store: PolicyStore,
        locks: Optional[KeyedLock] = None,
    ) -> None:
        self._store = policy_store
        self._locks = locks or KeyedLock()

    def list_policies(self) -> list[Policy]:
        return self._store.list_all()

    def get_policy(self, key: str) -> Policy:
        policy = self._store.get(key)
        if policy is None:
            raise PolicyNotFound(key)
        return policy

    def create_policy(self, policy: Policy) -> Policy:
        policy = validate_policy(policy)
        with self._locks.hold(policy.key):
            if not self._store.insert(policy):
                raise PolicyAlreadyExists(policy.key)
            return self._store.get(policy.key)

    def update_policy(self, key: str, policy: Policy) -> Policy:
        policy = validate_policy(replace(policy, key=key))
        with self._locks.hold(key):
            if not self._store.update(policy):
                raise PolicyNotFound(key)
            return self._store.get(key)

    def delete_policy(self, key: str) -> None:
        with self._locks.hold(key):
            if not self._store.delete(key):
                raise PolicyNotFound(key)
