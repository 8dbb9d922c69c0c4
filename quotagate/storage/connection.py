"""
SQLite connection factory.

Provides thread-safe connections with WAL mode enabled.
All database access in the project goes through get_connection()
or transaction().

Design decisions:
- WAL mode: allows concurrent reads while a write is in progress.
- One connection per database path, shared across threads
  (check_same_thread=False).
- Each connection has a mutex. transaction() holds it for one store
  operation, so statements from different threads never interleave
  inside one transaction. Per-key read-modify-write cycles are
  serialized above this layer, by the limiter's KeyedLock.
- Row factory: rows are returned as sqlite3.Row (dict-like access).
- sqlite3.OperationalError (cannot open, locked past busy timeout)
  surfaces as StorageUnavailable.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from quotagate.config.settings import get_settings
from quotagate.exceptions import StorageUnavailable

logger = logging.getLogger(__name__)

# Module-level lock for connection creation
_lock = threading.Lock()

# Singleton connection per database path
_connections: dict[str, sqlite3.Connection] = {}

# One mutex per open connection
_conn_locks: dict[str, threading.RLock] = {}


def _resolve(db_path: Optional[Path]) -> Path:
    if db_path is None:
        return get_settings().db_path
    return db_path


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """
    Get a thread-safe SQLite connection.

    Returns the same connection object for the same db_path
    (singleton per path).

    Args:
        db_path: Path to the SQLite database file. If None, uses
                 the default path from settings.

    Raises:
        StorageUnavailable: the database file cannot be opened.
    """
    db_path = _resolve(db_path)
    db_key = str(db_path)

    with _lock:
        if db_key in _connections:
            return _connections[db_key]

        db_path.parent.mkdir(parents=True, exist_ok=True)

        logger.info("Opening SQLite database: %s", db_path)

        storage = get_settings().storage
        try:
            conn = sqlite3.connect(
                str(db_path),
                check_same_thread=False,
                timeout=storage.busy_timeout_ms / 1000.0,
            )
            conn.execute(f"PRAGMA journal_mode={storage.journal_mode}")
            conn.execute(f"PRAGMA busy_timeout={storage.busy_timeout_ms}")
            conn.execute("PRAGMA foreign_keys=ON")
            conn.execute("PRAGMA synchronous=NORMAL")  # Safe with WAL
        except sqlite3.OperationalError as exc:
            logger.warning("Cannot open SQLite database %s: %s", db_path, exc)
            raise StorageUnavailable(f"Cannot open database {db_path}: {exc}") from exc

        conn.row_factory = sqlite3.Row

        _connections[db_key] = conn
        _conn_locks[db_key] = threading.RLock()
        logger.info("Database connection established (WAL mode)")

        return conn


@contextmanager
def transaction(db_path: Optional[Path] = None) -> Iterator[sqlite3.Connection]:
    """
    Run one store operation as a single transaction.

    Holds the connection mutex, commits on success and rolls back on
    error. OperationalError is re-raised as StorageUnavailable.

    Usage::

        with transaction(self._db_path) as conn:
            conn.execute(...)
    """
    conn = get_connection(db_path)
    conn_lock = _conn_locks[str(_resolve(db_path))]
    with conn_lock:
        try:
            with conn:
                yield conn
        except sqlite3.OperationalError as exc:
            logger.warning("SQLite operation failed: %s", exc)
            raise StorageUnavailable(str(exc)) from exc


def close_connection(db_path: Optional[Path] = None) -> None:
    """
    Close the connection for a given db_path (or the default).

    Useful in tests and shutdown hooks.
    """
    db_key = str(_resolve(db_path))

    with _lock:
        conn = _connections.pop(db_key, None)
        _conn_locks.pop(db_key, None)
        if conn is not None:
            conn.close()
            logger.info("Database connection closed: %s", db_key)


def close_all_connections() -> None:
    """Close all open connections. Used during shutdown."""
    with _lock:
        for key, conn in list(_connections.items()):
            conn.close()
            logger.info("Database connection closed: %s", key)
        _connections.clear()
        _conn_locks.clear()
