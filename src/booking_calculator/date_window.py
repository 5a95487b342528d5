"""Date arithmetic shared by the calendar and the pricing calculator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator, List, Optional

from dateutil.relativedelta import relativedelta

from .config import DEFAULT_RATES, PricingRates
from .errors import DateOutOfWindow


def compute_duration(start: Optional[date], end: Optional[date]) -> int:
    """
    Number of rental days covered by ``start``..``end``.

    Both ends count, so picking the same day twice is a one-day rental. Returns
    0 when either bound is missing or when ``end`` precedes ``start``.
    """
    if start is None or end is None or end < start:
        return 0
    return (end - start).days + 1


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


@dataclass(frozen=True)
class BookingWindow:
    """Range of dates a renter may pick on the calendar."""

    min_date: date
    max_date: date

    def __post_init__(self):
        if self.max_date < self.min_date:
            raise ValueError(f"Window end ({self.max_date}) must not precede its start ({self.min_date})")

    @classmethod
    def from_today(cls, today: date | None = None, *, days: int | None = None) -> "BookingWindow":
        """Window opening today and closing ``days`` ahead (one year by default)."""
        today = today or date.today()
        max_date = today + timedelta(days=days) if days is not None else today + relativedelta(years=1)
        return cls(min_date=today, max_date=max_date)

    def contains(self, value: date) -> bool:
        return self.min_date <= value <= self.max_date

    def ensure_contains(self, value: date) -> None:
        if not self.contains(value):
            raise DateOutOfWindow(value, self.min_date, self.max_date)

    def __len__(self) -> int:
        return compute_duration(self.min_date, self.max_date)


def validate_date_range(
    start: Optional[date],
    end: Optional[date],
    window: BookingWindow,
    rates: PricingRates = DEFAULT_RATES,
) -> List[str]:
    """Return the booking-rule violations for a candidate range (empty when valid)."""
    errors: List[str] = []

    if start is None:
        errors.append("Start date is required")
    if end is None:
        errors.append("End date is required")
    if start is None or end is None:
        return errors

    if start < window.min_date:
        errors.append("Start date cannot be in the past")
    if start > window.max_date:
        errors.append("Start date is too far in the future")
    if end < start:
        errors.append("End date must be after start date")
    if end > window.max_date:
        errors.append("End date is too far in the future")

    duration = compute_duration(start, end)
    if end >= start and duration < rates.min_booking_days:
        errors.append(f"Minimum rental period is {rates.min_booking_days} day(s)")
    if duration > rates.max_booking_days:
        errors.append(f"Maximum rental period is {rates.max_booking_days} days")

    return errors


def format_date_range(start: date, end: date, *, separator: str = " - ", show_year: bool = False) -> str:
    """Human-friendly label such as ``Mar 4 - Mar 9``."""
    return f"{_format_day(start, show_year)}{separator}{_format_day(end, show_year)}"


def _format_day(value: date, show_year: bool) -> str:
    label = f"{value:%b} {value.day}"
    return f"{label}, {value.year}" if show_year else label
