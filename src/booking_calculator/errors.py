"""Exceptions raised by the booking calculator."""

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence


class BookingCalculatorError(Exception):
    """Base class for all calculator errors."""


class InvalidRate(BookingCalculatorError):
    """The listing's daily rate cannot be used for pricing."""

    def __init__(self, daily_rate: object):
        super().__init__(f"Daily rate must be positive, got {daily_rate!r}")
        self.daily_rate = daily_rate


class DateOutOfWindow(BookingCalculatorError):
    """A date falls outside the selectable booking window."""

    def __init__(self, value: date, min_date: date, max_date: date):
        super().__init__(f"{value.isoformat()} is outside {min_date.isoformat()}..{max_date.isoformat()}")
        self.value = value
        self.min_date = min_date
        self.max_date = max_date


class RangeConflictError(BookingCalculatorError):
    """The selected range contains dates that are not available."""

    def __init__(self, conflicts: Sequence[str]):
        self.conflicts = list(conflicts)
        super().__init__(f"Selected dates are unavailable: {', '.join(self.conflicts)}")


class AvailabilityFetchFailed(BookingCalculatorError):
    """The availability service could not be reached or returned an error."""

    def __init__(self, listing_id: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"Availability fetch for listing {listing_id} failed: {message}")
        self.listing_id = listing_id
        self.status_code = status_code


class AvailabilityUnconfirmed(BookingCalculatorError):
    """Live availability could not be confirmed, so the booking cannot be submitted."""


class IncompleteSelection(BookingCalculatorError):
    """A booking needs both a start and an end date."""
