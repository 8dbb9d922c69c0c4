"""
CRUD operations for the policies table.

Policies are written by the admin layer and only read by the limiter.
Kinds are stored as the canonical enum value ("TOKEN_BUCKET",
"SLIDING_WINDOW") and parsed back into AlgorithmKind on load.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from quotagate.storage.connection import transaction
from quotagate.storage.models import AlgorithmKind, Policy

logger = logging.getLogger(__name__)


class PolicyStore:
    """CRUD interface for the policies table."""

    def __init__(self, db_path: Optional[Path] = None) -> None:
        self._db_path = db_path

    def _row_to_policy(self, row) -> Policy:
        return Policy(
            key=row["key"],
            kind=AlgorithmKind.parse(row["kind"]),
            capacity=row["capacity"],
            refill_rate=row["refill_rate"],
            window_seconds=row["window_seconds"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    # ----- Write operations -----

    def insert(self, policy: Policy) -> bool:
        """
        Insert a policy. Returns True if inserted, False if a policy
        for the key already exists.
        """
        sql = """
            INSERT OR IGNORE INTO policies
                (key, kind, capacity, refill_rate, window_seconds, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """
        with transaction(self._db_path) as conn:
            cursor = conn.execute(
                sql,
                (
                    policy.key,
                    AlgorithmKind.parse(policy.kind).value,
                    policy.capacity,
                    policy.refill_rate,
                    policy.window_seconds,
                    policy.created_at,
                    policy.updated_at,
                ),
            )
            inserted = cursor.rowcount > 0
        if inserted:
            logger.info("Created policy for %s (%s)", policy.key, policy.kind)
        return inserted

    def update(self, policy: Policy) -> bool:
        """
        Overwrite the parameters of an existing policy.
        Returns False if no policy exists for the key.
        """
        now = datetime.now(timezone.utc).isoformat()
        sql = """
            UPDATE policies
            SET kind = ?, capacity = ?, refill_rate = ?, window_seconds = ?, updated_at = ?
            WHERE key = ?
        """
        with transaction(self._db_path) as conn:
            cursor = conn.execute(
                sql,
                (
                    AlgorithmKind.parse(policy.kind).value,
                    policy.capacity,
                    policy.refill_rate,
                    policy.window_seconds,
                    now,
                    policy.key,
                ),
            )
            updated = cursor.rowcount > 0
        if updated:
            logger.info("Updated policy for %s (%s)", policy.key, policy.kind)
        return updated

    def delete(self, key: str) -> bool:
        """Delete the policy for a key. Returns True if a row was removed."""
        with transaction(self._db_path) as conn:
            cursor = conn.execute("DELETE FROM policies WHERE key = ?", (key,))
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Deleted policy for %s", key)
        return deleted

    # ----- Read operations -----

    def get(self, key: str) -> Optional[Policy]:
        """Fetch the policy for a key, or None."""
        with transaction(self._db_path) as conn:
            row = conn.execute(
                "SELECT * FROM policies WHERE key = ?", (key,)
            ).fetchone()
        return self._row_to_policy(row) if row else None

    def exists(self, key: str) -> bool:
        with transaction(self._db_path) as conn:
            row = conn.execute(
                "SELECT 1 FROM policies WHERE key = ?", (key,)
            ).fetchone()
        return row is not None

    def list_all(self) -> list[Policy]:
        """All policies, ordered by key."""
        with transaction(self._db_path) as conn:
            rows = conn.execute("SELECT * FROM policies ORDER BY key").fetchall()
        return [self._row_to_policy(r) for r in rows]

    def count(self) -> int:
        with transaction(self._db_path) as conn:
            row = conn.execute("SELECT COUNT(*) AS cnt FROM policies").fetchone()
        return row["cnt"]
