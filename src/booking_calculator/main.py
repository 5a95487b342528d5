"""Command-line entry point for the booking calculator."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date as date_type
from decimal import Decimal, InvalidOperation
from typing import Optional

import structlog

from .availability import check_range_availability
from .client import AvailabilityClient
from .config import Settings
from .date_window import BookingWindow, compute_duration, format_date_range, validate_date_range
from .models import BookingOptions, DeliveryMethod, RateSchedule
from .pricing import format_breakdown, quote
from .service import AvailabilityService


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structlog + stdlib logging."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stderr,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


LOGGER = structlog.get_logger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """CLI argument parsing."""
    parser = argparse.ArgumentParser(description="Price a rental booking and check listing availability.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    quote_parser = subparsers.add_parser("quote", help="Print the price breakdown for a booking.")
    quote_parser.add_argument("--daily-rate", required=True, type=_money_arg)
    quote_parser.add_argument("--weekly-rate", type=_money_arg)
    quote_parser.add_argument("--monthly-rate", type=_money_arg)
    span = quote_parser.add_mutually_exclusive_group(required=True)
    span.add_argument("--days", type=int, help="Rental length in days.")
    span.add_argument("--start", type=_date_arg, help="First rental day (YYYY-MM-DD); requires --end.")
    quote_parser.add_argument("--end", type=_date_arg, help="Last rental day (YYYY-MM-DD).")
    quote_parser.add_argument("--insurance", action="store_true", help="Add damage protection.")
    quote_parser.add_argument("--delivery", action="store_true", help="Deliver instead of pickup.")
    quote_parser.add_argument("--deposit", type=_money_arg, default=Decimal("0"), help="Security deposit.")
    quote_parser.add_argument("--points", type=int, default=0, help="Points to redeem.")
    quote_parser.add_argument("--points-balance", type=int, help="Points the renter holds.")
    quote_parser.add_argument("--listing-id", help="Check live availability for this listing.")

    args = parser.parse_args(argv)
    if args.start is not None and args.end is None:
        parser.error("--start requires --end")
    if args.end is not None and args.start is None:
        parser.error("--end requires --start")
    if args.days is not None and args.days < 0:
        parser.error("--days cannot be negative")
    if args.listing_id and args.start is None:
        parser.error("--listing-id requires --start/--end")
    return args


def _money_arg(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"Invalid amount: {value}") from exc


def _date_arg(value: str) -> date_type:
    try:
        return date_type.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid date: {value}") from exc


async def check_listing(settings: Settings, listing_id: str, start: date_type, end: date_type) -> list[str]:
    """Describe live availability of ``start``..``end`` for a listing."""
    service = AvailabilityService(AvailabilityClient(settings), settings)
    snapshot = await service.load(listing_id, start, end)
    if snapshot is None or not snapshot.confirmed:
        return [snapshot.warning if snapshot else "Availability request was superseded."]
    available, conflicts = check_range_availability(start, end, snapshot.records)
    if available:
        return [f"All dates available for listing {listing_id}."]
    return [f"Unavailable dates: {', '.join(conflicts)}"]


def run_quote(args: argparse.Namespace, settings: Settings) -> int:
    rates = settings.rates
    lines: list[str] = []

    if args.start is not None:
        window = BookingWindow(min_date=min(args.start, args.end), max_date=max(args.start, args.end))
        errors = validate_date_range(args.start, args.end, window, rates)
        if errors:
            for error in errors:
                print(f"Error: {error}", file=sys.stderr)
            return 2
        duration = compute_duration(args.start, args.end)
        lines.append(f"{format_date_range(args.start, args.end, show_year=True)} ({duration} days)")
    else:
        duration = args.days

    schedule = RateSchedule(
        daily_rate=args.daily_rate,
        weekly_rate=args.weekly_rate,
        monthly_rate=args.monthly_rate,
    )
    options = BookingOptions(
        include_insurance=args.insurance,
        delivery_method=DeliveryMethod.DELIVERY if args.delivery else DeliveryMethod.PICKUP,
        security_deposit=args.deposit,
        points_applied=args.points,
        points_balance=args.points_balance,
    )

    result = quote(schedule, duration, options, rates)
    if not result.is_priced:
        print(f"Price unavailable: {result.reason}", file=sys.stderr)
        return 2

    lines.append(format_breakdown(result.breakdown, rates))

    if args.listing_id:
        lines.append("")
        lines.extend(asyncio.run(check_listing(settings, args.listing_id, args.start, args.end)))

    print("\n".join(lines))
    return 0


def cli(argv: Optional[list[str]] = None) -> int:
    """Console script entrypoint."""
    args = parse_args(argv)

    try:
        settings = Settings()
    except Exception as exc:
        configure_logging()
        LOGGER.exception("settings.error", error=str(exc))
        return 2

    configure_logging(logging.getLevelName(settings.log_level))

    if args.command == "quote":
        return run_quote(args, settings)
    return 1  # pragma: no cover - argparse enforces the command


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(cli())
