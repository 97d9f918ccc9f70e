"""
Command line entry point for the GitHub events relay.

This module parses the command line, configures logging and runs either the
watch loop or a single event delivery.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import structlog

from .app import RelayApp
from .config import Settings, load_settings
from .exceptions import RelayError


def setup_logging(settings: Settings) -> None:
    """Configure structured logging."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level), format="%(message)s"
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            (
                structlog.processors.JSONRenderer()
                if settings.log_format == "json"
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="github-events-relay",
        description="Relay GitHub received events to a Slack channel",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="JSON config file with github and slack sections",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    watch = commands.add_parser("watch", help="poll the feed and relay new events")
    watch.add_argument(
        "-s",
        "--state",
        type=Path,
        default=None,
        help="checkpoint file (default: .state)",
    )

    single = commands.add_parser("single", help="post a single event JSON file")
    single.add_argument("event_file", type=Path, metavar="JSON", help="event JSON")

    return parser


async def run_watch(settings: Settings) -> None:
    """Run the watch loop until interrupted."""
    app = RelayApp(settings)
    app.initialize_delivery()
    app.initialize_polling()
    app.setup_signal_handlers()
    try:
        await app.watch()
    finally:
        await app.close()


async def run_single(settings: Settings, event_file: Path) -> None:
    """Post one event from a file."""
    app = RelayApp(settings)
    app.initialize_delivery()
    try:
        await app.single(event_file)
    finally:
        await app.close()


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(
            args.config, state_file=getattr(args, "state", None)
        )
    except RelayError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(settings)
    logger = structlog.get_logger()

    try:
        if args.command == "watch":
            asyncio.run(run_watch(settings))
        else:
            asyncio.run(run_single(settings, args.event_file))
    except (RelayError, OSError) as e:
        logger.error("Relay failed", command=args.command, error=str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
