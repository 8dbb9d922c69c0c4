"""Policy lookup with fallback to the process-wide default."""

from __future__ import annotations

import logging
from typing import Optional

from quotagate.config.settings import DefaultPolicySettings, get_settings
from quotagate.storage.models import AlgorithmKind, Policy
from quotagate.storage.policy_store import PolicyStore

logger = logging.getLogger(__name__)


def default_policy_for(key: str, defaults: DefaultPolicySettings) -> Policy:
    """The configured default policy, bound to `key`."""
    return Policy(
        key=key,
        kind=AlgorithmKind.parse(defaults.kind),
        capacity=defaults.capacity,
        refill_rate=defaults.refill_rate,
        window_seconds=defaults.window_seconds,
    )


class PolicyResolver:
    """
    Read-only policy lookup.

    Returns the persisted policy for a key, otherwise the default policy
    from settings bound to that key. Never writes.
    """

    def __init__(
        self,
        policy_store: PolicyStore,
        defaults: Optional[DefaultPolicySettings] = None,
    ) -> None:
        self._store = policy_store
        self._defaults = defaults or get_settings().default_policy

    @property
    def defaults(self) -> DefaultPolicySettings:
        return self._defaults

    def resolve(self, key: str) -> Policy:
        policy = self._store.get(key)
        if policy is None:
            return default_policy_for(key, self._defaults)
        return policy
