"""CLI for calendar-csv - export Google Calendar events as CSV.

Usage:
    calendar-csv                              # Events starting now (empty window)
    calendar-csv --to 168h                    # Events in the next week
    calendar-csv --from 24h                   # Events in the last day
    calendar-csv --start 2024-01-01T00:00:00Z --end 2024-02-01T00:00:00Z
    calendar-csv --from=-2h --to 4h --limit 20

Rows are written to stdout as ``date,summary``. Prompts and logs go to stderr.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import timedelta

from calendar_csv import config
from calendar_csv.calendar import CalendarClient
from calendar_csv.collector import run_query
from calendar_csv.exceptions import CalendarExportError, ConfigError
from calendar_csv.google import GoogleOAuth, obtain_credentials
from calendar_csv.window import parse_duration, resolve_window
from calendar_csv.writer import RecordWriter

logger = logging.getLogger(__name__)


def _duration(value: str) -> timedelta:
    try:
        return parse_duration(value)
    except ConfigError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or greater, got {number}")
    return number


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {number:g}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="calendar-csv",
        description="Export Google Calendar events in a date range as CSV",
    )
    parser.add_argument(
        "-limit",
        "--limit",
        type=_non_negative_int,
        default=config.DEFAULT_LIMIT,
        help=f"Maximum number of events to write, 0 for no limit (default: {config.DEFAULT_LIMIT})",
    )
    parser.add_argument(
        "-start",
        "--start",
        help="Start date RFC3339 format [2006-01-02T15:04:05Z] (default: now)",
    )
    parser.add_argument(
        "-end",
        "--end",
        help="End date RFC3339 format [2006-01-02T15:04:05Z] (default: now)",
    )
    parser.add_argument(
        "-from",
        "--from",
        dest="from_offset",
        type=_duration,
        default=timedelta(0),
        help="Duration to subtract from start date, e.g. 24h or 1h30m (--from=-2h for negative)",
    )
    parser.add_argument(
        "-to",
        "--to",
        dest="to_offset",
        type=_duration,
        default=timedelta(0),
        help="Duration to add to end date, e.g. 168h or 7d",
    )
    parser.add_argument(
        "--calendar",
        default=config.DEFAULT_CALENDAR_ID,
        help=f"Calendar ID to read (default: {config.DEFAULT_CALENDAR_ID})",
    )
    parser.add_argument(
        "--timeout",
        type=_positive_float,
        default=config.DEFAULT_TIMEOUT,
        help=f"Seconds allowed for fetching all pages (default: {config.DEFAULT_TIMEOUT:g})",
    )
    parser.add_argument(
        "--credentials",
        help=f"OAuth client credentials file (default: ${config.CREDENTIALS_ENV_VAR} "
        f"or {config.DEFAULT_CREDENTIALS_FILE})",
    )
    parser.add_argument(
        "--token",
        help=f"Cached token file (default: ${config.TOKEN_ENV_VAR} or {config.DEFAULT_TOKEN_FILE})",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Don't open browser automatically during authorization",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr (-vv for debug output)",
    )
    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def export_events(args: argparse.Namespace) -> int:
    """Resolve the window, authorize and stream events to stdout."""
    window = resolve_window(
        start=args.start,
        end=args.end,
        from_offset=args.from_offset,
        to_offset=args.to_offset,
    )

    auth = GoogleOAuth(
        scopes=["calendar_readonly"],
        token_path=args.token,
        credentials_path=args.credentials,
    )
    obtain_credentials(auth, open_browser=not args.no_browser)

    client = CalendarClient(auth=auth)
    writer = RecordWriter(sys.stdout)
    run_query(
        client,
        window,
        writer,
        timeout=args.timeout,
        limit=args.limit,
        calendar_id=args.calendar,
    )
    logger.info(f"Wrote {writer.rows_written} events")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    _configure_logging(args.verbose)
    config.load_env_file()

    try:
        return export_events(args)
    except CalendarExportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
