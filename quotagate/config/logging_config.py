"""
Logging setup for QuotaGate processes (API server and CLI).

Handlers are attached to the ``quotagate`` logger only, so library
loggers (uvicorn, httpx) keep their own configuration. Modules log via:
    logger = logging.getLogger(__name__)
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

from quotagate.config.settings import LoggingSettings

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelName(value.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {value!r}")
    return level


def setup_logging(
    log_dir: Path | None = None,
    settings: LoggingSettings | None = None,
    level: int | str | None = None,
) -> logging.Logger:
    """
    Attach console and (optionally) rotating file handlers to ``quotagate``.

    Args:
        log_dir: Directory for the log file. None means console only.
        settings: Handler sizes and defaults; LoggingSettings() if omitted.
        level: Overrides settings.level, e.g. from a --log-level flag.

    Calling it again only updates the level.
    """
    settings = settings or LoggingSettings()
    resolved = _level(level if level is not None else settings.level)

    logger = logging.getLogger("quotagate")
    logger.setLevel(resolved)
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(resolved)
        return logger

    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(resolved)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=log_dir / settings.file_name,
                maxBytes=settings.max_bytes,
                backupCount=settings.backup_count,
                encoding="utf-8",
            )
        except OSError as e:
            logger.warning("File logging disabled, cannot open %s: %s", log_dir, e)
        else:
            file_handler.setLevel(resolved)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    # Records stop here; the root logger may belong to uvicorn or pytest
    logger.propagate = False
    return logger
