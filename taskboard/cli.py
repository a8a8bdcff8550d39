"""CLI entry point for the Taskboard HTTP server.

Usage:
    python -m taskboard.cli --port 8080 --tasks-file data/tasks.csv

Flags override the matching settings (environment / .env); anything not
given keeps its configured value.
"""

from __future__ import annotations

import argparse
import logging

import uvicorn

from taskboard.config import settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Taskboard task tracker server")
    parser.add_argument("--host", default=None, help=f"Bind address (default {settings.host})")
    parser.add_argument("--port", "-p", type=int, default=None, help=f"Port (default {settings.port})")
    parser.add_argument(
        "--tasks-file", "-f", default=None,
        help="CSV file to load and save tasks (default: in-memory only)",
    )
    parser.add_argument("--log-level", default=None, help=f"Logging level (default {settings.log_level})")
    return parser


def apply_args(args: argparse.Namespace) -> None:
    """Copy given flags onto the shared settings object."""
    if args.host is not None:
        settings.host = args.host
    if args.port is not None:
        settings.port = args.port
    if args.tasks_file is not None:
        settings.tasks_file = args.tasks_file
    if args.log_level is not None:
        settings.log_level = args.log_level.upper()


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    apply_args(args)

    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    logger.info("Serving %s on %s:%d", settings.app_name, settings.host, settings.port)

    from taskboard.main import app

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
