"""
Central configuration for the QuotaGate rate limiter.

All tunables live here. Nothing is hardcoded in module code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path


def _project_root() -> Path:
    """Walk up from this file to find the project root (where pyproject.toml lives)."""
    current = Path(__file__).resolve().parent
    while current != current.parent:
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent
    # Fallback: two levels up from config/settings.py
    return Path(__file__).resolve().parent.parent.parent


@dataclass(frozen=True)
class StorageSettings:
    """Settings for SQLite storage."""

    # Name of the SQLite database file under data/db/
    db_name: str = "quotagate.db"

    # SQLite journal mode
    journal_mode: str = "WAL"

    # SQLite busy timeout (milliseconds). A lock held longer than this
    # surfaces as StorageUnavailable.
    busy_timeout_ms: int = 5000


@dataclass(frozen=True)
class DefaultPolicySettings:
    """
    Policy applied to any key without a persisted policy.

    Fixed for the lifetime of the process.
    """

    # "TOKEN_BUCKET" or "SLIDING_WINDOW"
    kind: str = "TOKEN_BUCKET"

    # Bucket size, or max requests per window
    capacity: int = 100

    # Tokens per second (token bucket only)
    refill_rate: int = 10

    # Window length in seconds (sliding window only)
    window_seconds: int = 60


@dataclass(frozen=True)
class GateSettings:
    """Settings for the admission gate and its HTTP middleware."""

    # Delete a key's expired window buckets on every admitted request
    prune_on_write: bool = True

    # Let requests through when storage is down (default: answer 503)
    fail_open: bool = False

    # Paths never subject to rate limiting
    exempt_paths: tuple[str, ...] = ("/health",)

    # Use the first X-Forwarded-For entry as the caller key
    trust_forwarded_for: bool = True


@dataclass(frozen=True)
class SweepSettings:
    """Settings for the background bucket sweeper."""

    # Start the sweeper thread with the API server
    enabled: bool = False

    # Seconds between sweeps
    interval: float = 60.0


@dataclass(frozen=True)
class LoggingSettings:
    """Settings for the ``quotagate`` logger."""

    # Level name or number; denials are logged at DEBUG
    level: str = "INFO"

    # Log file under data/logs/
    file_name: str = "quotagate.log"

    # Rotation
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 3


@dataclass
class Settings:
    """
    Top-level settings container. Aggregates all subsystem settings.

    Usage:
        settings = get_settings()
        print(settings.default_policy.capacity)
        print(settings.gate.fail_open)
    """

    project_root: Path = field(default_factory=_project_root)
    storage: StorageSettings = field(default_factory=StorageSettings)
    default_policy: DefaultPolicySettings = field(default_factory=DefaultPolicySettings)
    gate: GateSettings = field(default_factory=GateSettings)
    sweep: SweepSettings = field(default_factory=SweepSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @property
    def data_dir(self) -> Path:
        """Root directory for all runtime data (DB, logs)."""
        return self.project_root / "data"

    @property
    def db_path(self) -> Path:
        """Full path to the SQLite database file."""
        return self.data_dir / "db" / self.storage.db_name

    @property
    def logs_dir(self) -> Path:
        """Root directory for log files."""
        return self.data_dir / "logs"

    def ensure_dirs(self) -> None:
        """Create all required data directories if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(parents=True, exist_ok=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Returns the singleton Settings instance.

    Call this instead of constructing Settings() directly so the entire
    application shares one config object.
    """
    settings = Settings()
    settings.ensure_dirs()
    return settings
