"""CLI for checking, inspecting and resetting keys against the local database."""

from __future__ import annotations

import argparse
import logging

from quotagate.config.logging_config import setup_logging
from quotagate.config.settings import get_settings
from quotagate.exceptions import QuotaGateError
from quotagate.jobs.sweeper import BucketSweeper
from quotagate.limiter.gate import AdmissionGate
from quotagate.storage.bucket_store import BucketStore
from quotagate.storage.schema import initialize_database


def build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(description="Inspect and exercise QuotaGate rate limits.")
    parser.add_argument("--log-level", default=None, help="Override the configured log level.")
    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Run admission checks for a key.")
    check.add_argument("key", help="Rate limit key, e.g. a client address.")
    check.add_argument("--times", type=int, default=1, help="Number of consecutive checks.")

    reset = sub.add_parser("reset", help="Refill a key and clear its window history.")
    reset.add_argument("key")

    show = sub.add_parser("show", help="Print current usage of a key.")
    show.add_argument("key")

    sub.add_parser("sweep", help="Delete expired sliding window buckets once.")
    return parser


def main() -> int:
    """Dispatch the selected subcommand."""
    args = build_parser().parse_args()

    settings = get_settings()
    setup_logging(log_dir=settings.logs_dir, settings=settings.logging, level=args.log_level)
    logger = logging.getLogger(__name__)

    try:
        initialize_database(settings.db_path)
        gate = AdmissionGate.from_settings(settings)

        if args.command == "check":
            admitted = 0
            for i in range(1, args.times + 1):
                allowed = gate.check(args.key)
                admitted += allowed
                print(f"{i}. {args.key}: {'ALLOW' if allowed else 'DENY'}")
            print(f"admitted {admitted}/{args.times}")

        elif args.command == "reset":
            gate.reset(args.key)
            print(f"reset {args.key}")

        elif args.command == "show":
            snap = gate.snapshot(args.key)
            if snap is None:
                print(f"{args.key}: no usage recorded")
            else:
                print(
                    f"{snap.key}: algorithm={snap.algorithm} tokens={snap.tokens}/{snap.capacity} "
                    f"window={snap.window_request_count} in {snap.window_seconds}s status={snap.status}"
                )

        elif args.command == "sweep":
            sweeper = BucketSweeper(
                bucket_store=BucketStore(settings.db_path),
                resolver=gate.resolver,
                locks=gate.locks,
            )
            print(f"removed {sweeper.run_once()} expired buckets")

    except QuotaGateError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
