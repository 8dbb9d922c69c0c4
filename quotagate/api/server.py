"""``quotagate-server``: run the API under uvicorn.

Always a single process. Per-key locks live in process memory, so two
workers sharing one database could both admit the last token.
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace

import uvicorn

from quotagate.api.app import create_app
from quotagate.config.logging_config import setup_logging
from quotagate.config.settings import get_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the QuotaGate API server.")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address.")
    parser.add_argument("--port", type=int, default=8000, help="Bind port.")
    parser.add_argument(
        "--sweep",
        action="store_true",
        help="Run the expired-bucket sweeper alongside the server.",
    )
    parser.add_argument(
        "--fail-open",
        action="store_true",
        help="Let requests through while the database is unavailable.",
    )
    parser.add_argument("--log-level", default=None, help="Override the configured log level.")
    return parser


def main() -> int:
    args = build_parser().parse_args()

    settings = get_settings()
    if args.sweep:
        settings = replace(settings, sweep=replace(settings.sweep, enabled=True))
    if args.fail_open:
        settings = replace(settings, gate=replace(settings.gate, fail_open=True))

    setup_logging(log_dir=settings.logs_dir, settings=settings.logging, level=args.log_level)
    logger = logging.getLogger(__name__)

    app = create_app(settings)
    logger.info(
        "Serving on %s:%d (db=%s, default=%s, fail_open=%s, sweep=%s)",
        args.host,
        args.port,
        settings.db_path,
        settings.default_policy.kind,
        settings.gate.fail_open,
        settings.sweep.enabled,
    )
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
