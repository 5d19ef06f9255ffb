#!/usr/bin/env python3
"""Command-line entry point for the event feed reconciler.

Typical usage:
  FEED_URL=https://calendar.google.com/.../basic.ics event-sync
  event-sync --store site/events.csv --grace-hours 12
  event-sync --dry-run --json-logs

Exit codes:
  0  run completed, retained record count logged
  1  configuration error, feed fetch failure or store failure
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from src.configs.settings import load_settings
from src.ingestion.exceptions import ConfigurationError, ReconciliationError
from src.ingestion.orchestrator import create_pipeline
from src.monitoring.logging import LoggingOptions, configure_logging

logger = logging.getLogger("event_sync")

EXIT_OK = 0
EXIT_FAILURE = 1


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="event-sync",
        description="Merge a calendar feed into the events CSV and retire past events",
    )
    p.add_argument("--store", "-s", type=Path, default=None, help="Path to the events CSV")
    p.add_argument(
        "--grace-hours",
        type=float,
        default=None,
        help="Hours an event stays listed after it starts",
    )
    p.add_argument("--json-logs", action="store_true", default=None, help="Emit JSON logs")
    p.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file")
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Run the full pass but do not write the store",
    )
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run one reconciliation pass and return the process exit code."""
    args = _parse_args(argv)

    try:
        settings = load_settings(
            STORE_PATH=args.store,
            GRACE_HOURS=args.grace_hours,
            JSON_LOGS=args.json_logs,
        )
    except ConfigurationError as e:
        configure_logging(LoggingOptions(json_logs=bool(args.json_logs), log_file=args.log_file))
        logger.error(str(e))
        return EXIT_FAILURE

    configure_logging(
        LoggingOptions(
            level=settings.LOG_LEVEL,
            json_logs=settings.JSON_LOGS,
            log_file=args.log_file,
        )
    )

    pipeline = create_pipeline(settings)
    try:
        with pipeline.adapter:
            result = pipeline.execute(write=not args.dry_run)
    except ReconciliationError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return EXIT_FAILURE

    logger.info(f"Done. Store now has {result.retained} records.")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
