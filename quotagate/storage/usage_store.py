"""
CRUD operations for the usage_state table.

Holds the token bucket counters per key. Rows are upserted after every
check, so a save is always a full overwrite of the key's counters.
Callers that read-modify-write a row must hold the key's lock
(see quotagate.limiter.locks).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from quotagate.storage.connection import transaction
from quotagate.storage.models import UsageState

logger = logging.getLogger(__name__)


class UsageStore:
    """CRUD interface for the usage_state table."""

    def __init__(self, db_path: Optional[Path] = None) -> None:
        self._db_path = db_path

    def _row_to_state(self, row) -> UsageState:
        return UsageState(
            key=row["key"],
            tokens=row["tokens"],
            last_refill_ms=row["last_refill_ms"],
            updated_at=row["updated_at"],
        )

    def load(self, key: str) -> Optional[UsageState]:
        """Fetch the counters for a key, or None if the key was never seen."""
        with transaction(self._db_path) as conn:
            row = conn.execute(
                "SELECT * FROM usage_state WHERE key = ?", (key,)
            ).fetchone()
        return self._row_to_state(row) if row else None

    def save(self, state: UsageState) -> None:
        """Insert or overwrite the counters for state.key."""
        state.updated_at = datetime.now(timezone.utc).isoformat()
        sql = """
            INSERT INTO usage_state (key, tokens, last_refill_ms, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                tokens = excluded.tokens,
                last_refill_ms = excluded.last_refill_ms,
                updated_at = excluded.updated_at
        """
        with transaction(self._db_path) as conn:
            conn.execute(
                sql, (state.key, state.tokens, state.last_refill_ms, state.updated_at)
            )

    def delete(self, key: str) -> bool:
        with transaction(self._db_path) as conn:
            cursor = conn.execute("DELETE FROM usage_state WHERE key = ?", (key,))
            return cursor.rowcount > 0

    def list_all(self) -> list[UsageState]:
        """All usage rows, ordered by key (admin metrics)."""
        with transaction(self._db_path) as conn:
            rows = conn.execute("SELECT * FROM usage_state ORDER BY key").fetchall()
        return [self._row_to_state(r) for r in rows]

    def count(self) -> int:
        with transaction(self._db_path) as conn:
            row = conn.execute("SELECT COUNT(*) AS cnt FROM usage_state").fetchone()
        return row["cnt"]
