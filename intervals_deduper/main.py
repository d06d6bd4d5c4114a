from __future__ import annotations

import argparse
import logging
from datetime import datetime, timedelta
from typing import Sequence, Tuple

from . import __version__
from .config import CONFIG_FILE, DEFAULT_DAYS_TO_SYNC, AppConfig, load_config
from .dump import dump_activity_details
from .errors import ConfigError, IntervalsAPIError
from .intervals_api import IntervalsClient
from .report import write_decision_report
from .scoring import ScoringEngine
from .services import DedupeOptions, DedupeService

LOGGER = logging.getLogger(__name__)

DAY_FORMAT = "%Y-%m-%d"
END_OF_DAY = timedelta(hours=23, minutes=59, seconds=59)


def _setup_logging(level: str) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=getattr(logging, level),
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )
    else:
        logging.getLogger().setLevel(getattr(logging, level))


def _parse_day(value: str) -> datetime:
    try:
        return datetime.strptime(value, DAY_FORMAT)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"invalid date {value!r}, expected YYYY-MM-DD"
        ) from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intervals-deduper",
        description="Find and clean up duplicate Intervals.icu activities",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview deletions without making changes",
    )
    parser.add_argument(
        "--interactive",
        action="store_true",
        help="Confirm each deletion manually",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=0,
        help="Number of days to sync (overrides config)",
    )
    parser.add_argument("--start", type=_parse_day, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end", type=_parse_day, help="End date (YYYY-MM-DD)")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show all scanned activities",
    )
    parser.add_argument(
        "--dump",
        metavar="FILE",
        help="Export all activity details to a JSON file (e.g. dump.json) and exit",
    )
    parser.add_argument(
        "--report",
        metavar="FILE",
        help="Write an Excel report of every resolution decision (e.g. decisions.xlsx)",
    )
    parser.add_argument(
        "--config",
        default=CONFIG_FILE,
        help=f"Path to the YAML config (default: {CONFIG_FILE})",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Python logging level",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"intervals-deduper version {__version__}",
    )
    return parser


def resolve_window(
    args: argparse.Namespace, config: AppConfig, now: datetime | None = None
) -> Tuple[datetime, datetime]:
    """Return ``(oldest, newest)`` from CLI flags, falling back to the config."""

    now = now or datetime.now()
    if args.start is not None:
        oldest = args.start
        newest = args.end + END_OF_DAY if args.end is not None else now
        return oldest, newest
    days = args.days if args.days > 0 else config.days_to_sync or DEFAULT_DAYS_TO_SYNC
    return now - timedelta(days=days), now


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    _setup_logging(args.log_level)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        LOGGER.error("Error loading config: %s", exc)
        return 1

    oldest, newest = resolve_window(args, config)
    client = IntervalsClient(config.api_key, config.athlete_id)
    LOGGER.info(
        "Scanning for duplicates from %s to %s...",
        oldest.strftime(DAY_FORMAT),
        newest.strftime(DAY_FORMAT),
    )

    if args.dump:
        try:
            activities = client.list_activities(oldest, newest)
        except IntervalsAPIError as exc:
            LOGGER.error("Error fetching activities: %s", exc)
            return 1
        dump_activity_details(client, activities, args.dump)
        return 0

    options = DedupeOptions(
        dry_run=args.dry_run,
        interactive=args.interactive,
        verbose=args.verbose,
    )
    service = DedupeService(client, ScoringEngine(config.scoring), options)
    try:
        summary = service.run(oldest, newest)
    except IntervalsAPIError as exc:
        LOGGER.error("Error fetching activities: %s", exc)
        return 1

    if args.report:
        write_decision_report(args.report, summary.decisions)
    return 0
