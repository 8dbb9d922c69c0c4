"""
CRUD operations for the usage_buckets table.

One row per (key, epoch second) holding the number of admitted
requests in that second. The sliding window limiter sums a contiguous
range of rows; rows older than a key's window are dead weight and may
be deleted at any time.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from quotagate.storage.connection import transaction
from quotagate.storage.models import UsageBucket

logger = logging.getLogger(__name__)


class BucketStore:
    """CRUD interface for the usage_buckets table."""

    def __init__(self, db_path: Optional[Path] = None) -> None:
        self._db_path = db_path

    # ----- Write operations -----

    def increment_bucket(self, key: str, second: int) -> int:
        """
        Add one to the bucket for (key, second), creating it if absent.
        Returns the bucket's new count.
        """
        sql = """
            INSERT INTO usage_buckets (key, bucket_ts, count) VALUES (?, ?, 1)
            ON CONFLICT(key, bucket_ts) DO UPDATE SET count = count + 1
        """
        with transaction(self._db_path) as conn:
            conn.execute(sql, (key, second))
            row = conn.execute(
                "SELECT count FROM usage_buckets WHERE key = ? AND bucket_ts = ?",
                (key, second),
            ).fetchone()
        return row["count"]

    def delete_buckets_before(self, key: str, second: int) -> int:
        """Delete the key's buckets strictly older than `second`. Returns rows removed."""
        with transaction(self._db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM usage_buckets WHERE key = ? AND bucket_ts < ?",
                (key, second),
            )
            count = cursor.rowcount
        if count > 0:
            logger.debug("Pruned %d expired buckets for %s", count, key)
        return count

    def delete_all(self, key: str) -> int:
        """Wipe the window history of a key."""
        with transaction(self._db_path) as conn:
            cursor = conn.execute("DELETE FROM usage_buckets WHERE key = ?", (key,))
            return cursor.rowcount

    # ----- Read operations -----

    def sum_buckets(self, key: str, from_second: int, to_second: int) -> int:
        """Total count for the key over [from_second, to_second], both inclusive."""
        with transaction(self._db_path) as conn:
            row = conn.execute(
                """
                SELECT COALESCE(SUM(count), 0) AS total FROM usage_buckets
                WHERE key = ? AND bucket_ts >= ? AND bucket_ts <= ?
                """,
                (key, from_second, to_second),
            ).fetchone()
        return row["total"]

    def get_buckets(self, key: str) -> list[UsageBucket]:
        """All buckets of a key, oldest first."""
        with transaction(self._db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM usage_buckets WHERE key = ? ORDER BY bucket_ts",
                (key,),
            ).fetchall()
        return [
            UsageBucket(key=r["key"], bucket_ts=r["bucket_ts"], count=r["count"])
            for r in rows
        ]

    def keys(self) -> list[str]:
        """Distinct keys that currently own at least one bucket."""
        with transaction(self._db_path) as conn:
            rows = conn.execute(
                "SELECT DISTINCT key FROM usage_buckets ORDER BY key"
            ).fetchall()
        return [r["key"] for r in rows]
