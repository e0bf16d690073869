"""Command-line entry point: ``tuicnode`` / ``python -m tuicnode``."""

from __future__ import annotations

import argparse
import logging
import os
import random
import sys

from .errors import ProvisionError
from .provisioning import launch, provision, summary
from .settings import Settings


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tuicnode",
        description="Provision a TUIC relay node and start tuic-server.",
    )
    parser.add_argument("--work-dir", help="storage directory (env TUIC_WORK_DIR, default proxy_files)")
    parser.add_argument("--port", type=int, help="listen port (env SERVER_PORT, default 28888)")
    parser.add_argument("--seed", type=int, help="seed the masquerade domain choice")
    parser.add_argument("--no-launch", action="store_true", help="provision and print, do not start tuic-server")
    parser.add_argument("--exec", dest="replace_process", action="store_true",
                        help="replace this process with tuic-server instead of supervising it")
    parser.add_argument("--log-level", type=str.upper,
                        default=os.environ.get("TUIC_LOG_LEVEL", "").strip() or "INFO",
                        help="one of " + ", ".join(LOG_LEVELS) + " (env TUIC_LOG_LEVEL, default INFO)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    level = args.log_level.upper()
    if level not in LOG_LEVELS:
        print(f"error: invalid log level {args.log_level!r}, expected one of {', '.join(LOG_LEVELS)}", file=sys.stderr)
        return 2
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = Settings.from_env(work_dir=args.work_dir, port=args.port)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    rng = random.Random(args.seed) if args.seed is not None else None
    try:
        result = provision(settings, rng)
    except ProvisionError as e:
        print(f"error: {e}", file=sys.stderr)
        return e.exit_code

    print(summary(result))
    if args.no_launch:
        return 0
    try:
        return launch(result, replace_process=args.replace_process)
    except ProvisionError as e:
        print(f"error: {e}", file=sys.stderr)
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
