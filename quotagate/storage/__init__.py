from quotagate.storage.models import AlgorithmKind, Policy, UsageState, UsageBucket
from quotagate.storage.connection import get_connection, close_connection, transaction
from quotagate.storage.schema import initialize_database
from quotagate.storage.policy_store import PolicyStore
from quotagate.storage.usage_store import UsageStore
from quotagate.storage.bucket_store import BucketStore

__all__ = [
    "AlgorithmKind",
    "Policy",
    "UsageState",
    "UsageBucket",
    "get_connection",
    "close_connection",
    "transaction",
    "initialize_database",
    "PolicyStore",
    "UsageStore",
    "BucketStore",
]
