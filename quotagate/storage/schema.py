"""
SQLite schema definitions (DDL).

All table creation lives here. The schema is versioned via the
`user_version` pragma so migrations can be added later without
breaking existing databases.

Tables:
    policies: limiting rule per key (admin-owned)
    usage_state: token bucket counters per key
    usage_buckets: per-second sliding window counters per key
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from quotagate.storage.connection import get_connection, transaction

logger = logging.getLogger(__name__)

# Current schema version. Bump when adding migrations.
SCHEMA_VERSION = 1

# ---------------------------------------------------------------------------
# Table DDL
# ---------------------------------------------------------------------------

_POLICIES_DDL = """
CREATE TABLE IF NOT EXISTS policies (
    key             TEXT PRIMARY KEY,
    kind            TEXT NOT NULL,
    capacity        INTEGER NOT NULL,
    refill_rate     INTEGER NOT NULL DEFAULT 0,
    window_seconds  INTEGER NOT NULL DEFAULT 60,
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL
);
"""

_USAGE_STATE_DDL = """
CREATE TABLE IF NOT EXISTS usage_state (
    key             TEXT PRIMARY KEY,
    tokens          INTEGER NOT NULL,
    last_refill_ms  INTEGER NOT NULL,
    updated_at      TEXT NOT NULL
);
"""

_USAGE_BUCKETS_DDL = """
CREATE TABLE IF NOT EXISTS usage_buckets (
    key         TEXT NOT NULL,
    bucket_ts   INTEGER NOT NULL,
    count       INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (key, bucket_ts)
);
"""

_USAGE_BUCKETS_INDEXES = [
    # Global sweeps scan by age across keys
    "CREATE INDEX IF NOT EXISTS idx_usage_buckets_ts ON usage_buckets(bucket_ts);",
]


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------


def initialize_database(db_path: Optional[Path] = None) -> None:
    """
    Create all tables and indexes if they don't exist.

    Safe to call multiple times; all statements use IF NOT EXISTS.

    Args:
        db_path: Path to SQLite file. If None, uses default from settings.
    """
    logger.info("Initializing database schema (version %d)...", SCHEMA_VERSION)

    with transaction(db_path) as conn:
        conn.execute(_POLICIES_DDL)
        conn.execute(_USAGE_STATE_DDL)
        conn.execute(_USAGE_BUCKETS_DDL)

        for idx_sql in _USAGE_BUCKETS_INDEXES:
            conn.execute(idx_sql)

        conn.execute(f"PRAGMA user_version={SCHEMA_VERSION}")

    logger.info("Database schema initialized successfully.")


def get_schema_version(db_path: Optional[Path] = None) -> int:
    """Return the current schema version of the database."""
    conn = get_connection(db_path)
    row = conn.execute("PRAGMA user_version").fetchone()
    return row[0] if row else 0
