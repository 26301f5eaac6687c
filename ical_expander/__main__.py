"""Command-line entry for ical_expander.

Expands an .ics file (or stdin) and prints the resulting events and
occurrences as JSON.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from datetime import datetime
from typing import Optional

from dateutil import parser as date_parser

from .config import load_config
from .exceptions import IcalExpanderError
from .expander import IcalExpander
from .logging_config import configure_logging
from .timezones import TIME_ZONES

logger = logging.getLogger(__name__)


def _parse_instant(value: str) -> datetime:
    try:
        return date_parser.isoparse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid ISO-8601 datetime: {value!r}") from e


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the ical_expander CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="ical-expander",
        description="Expand iCalendar events and recurrences within a time window",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ical-expander calendar.ics
  ical-expander calendar.ics --after 2024-01-01 --before 2024-01-31T23:59:59
  cat calendar.ics | ical-expander - --timezone Europe/Berlin
        """,
    )
    parser.add_argument("ics_file", nargs="?", help="Path to an .ics file, or '-' for stdin")
    parser.add_argument("--after", type=_parse_instant, help="Window start (ISO-8601)")
    parser.add_argument("--before", type=_parse_instant, help="Window end (ISO-8601)")
    parser.add_argument("--timezone", help="Caller timezone for floating and all-day values")
    parser.add_argument("--max-iterations", type=int, help="Max recurrence candidates per series")
    parser.add_argument(
        "--skip-invalid-dates",
        action="store_true",
        default=None,
        help="Drop events whose dates cannot be resolved",
    )
    parser.add_argument("--config", metavar="PATH", help="YAML or JSON config file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--list-timezones", action="store_true", help="Print embedded timezone identifiers and exit"
    )
    return parser


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def main(argv: Optional[list[str]] = None) -> int:
    """Run the ical_expander CLI.

    Returns:
        Process exit code
    """
    parser = _create_parser()
    args = parser.parse_args(argv)

    if args.list_timezones:
        for tzid in sorted(TIME_ZONES):
            print(tzid)
        return 0

    if not args.ics_file:
        parser.error("ics_file is required")

    config = load_config(args.config)
    overrides = {
        "max_iterations": args.max_iterations,
        "skip_invalid_dates": args.skip_invalid_dates,
        "timezone": args.timezone,
    }
    config = replace(config, **{k: v for k, v in overrides.items() if v is not None})

    configure_logging(debug_mode=args.debug, log_level=config.log_level)

    try:
        ics = _read_input(args.ics_file)
        expander = IcalExpander.from_config(ics, config)
        result = expander.between(args.after, args.before)
    except OSError as e:
        print(f"Error: cannot read {args.ics_file}: {e}", file=sys.stderr)
        return 1
    except IcalExpanderError as e:
        logger.debug("Expansion failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    items = [item.model_dump(mode="json") for item in result.to_items()]
    print(json.dumps(items, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
