# main.py

"""Entry point for the price tracker.

Watches product pages and reports when prices move.  Product fields are
pulled through the Firecrawl extraction API and the price history is
kept in SQLite.  Without a subcommand the tracker runs one check cycle
and, when ``SHOULD_SCHEDULE=true``, keeps checking on the ``CHECK_CRON``
schedule (00:00 and 12:00 by default).
"""

import argparse
import asyncio
import logging
import sys

from price_tracker.config.logging_config import setup_logging
from price_tracker.config.settings import Settings

logger = logging.getLogger("price_tracker.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="price_tracker",
        description="Track product prices and report changes.",
    )
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser(
        "run", help="Check prices now, optionally on a schedule.",
    )
    run.add_argument(
        "--schedule",
        action="store_true",
        default=None,
        help=(
            f"Keep checking on the '{Settings.CHECK_CRON}' schedule "
            "(default: SHOULD_SCHEDULE env var)."
        ),
    )

    add = sub.add_parser("add", help="Start tracking a product URL.")
    add.add_argument("url")

    remove = sub.add_parser("remove", help="Stop tracking a product URL.")
    remove.add_argument("url")

    sub.add_parser("list", help="Show tracked URLs and recent prices.")
    sub.add_parser("check", help="Run one check cycle without seeding.")
    return parser


def _wants_schedule(args: argparse.Namespace) -> bool:
    """True when this invocation keeps running on the cron schedule."""
    if args.command not in (None, "run"):
        return False
    schedule = getattr(args, "schedule", None)
    return Settings.SHOULD_SCHEDULE if schedule is None else schedule


def _dispatch(args: argparse.Namespace) -> int:
    from price_tracker.cli import runner

    components = runner.build_components()
    try:
        if args.command == "add":
            return runner.run_add(args.url, components)
        if args.command == "remove":
            return runner.run_remove(args.url, components)
        if args.command == "list":
            return runner.run_list(components)
        if args.command == "check":
            return runner.run_check(components)
        return asyncio.run(
            runner.run_tracker(components, _wants_schedule(args))
        )
    finally:
        components.close()


def main(argv: list[str] | None = None) -> None:
    """Route to the requested subcommand (default: run)."""
    args = _build_parser().parse_args(argv)
    log_file = setup_logging(scheduled=_wants_schedule(args))
    logger.info("price_tracker starting, log file: %s", log_file)

    try:
        exit_code = _dispatch(args)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        exit_code = 0
    except Exception:
        logger.critical("Fatal error", exc_info=True)
        raise
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
