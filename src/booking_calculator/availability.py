"""Availability lookups over the records fetched for a listing."""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Mapping, Tuple, Union

from .date_window import iter_days
from .models import DateAvailabilityRecord

Records = Union[Iterable[DateAvailabilityRecord], Mapping[date, DateAvailabilityRecord]]


def index_records(records: Records) -> Mapping[date, DateAvailabilityRecord]:
    """Map records by day; an already-built mapping is returned untouched."""
    if isinstance(records, Mapping):
        return records
    return {record.date: record for record in records}


def is_date_available(value: date, records: Records) -> bool:
    """
    True unless a record for ``value`` exists with a status other than available.

    Days the availability service did not mention are treated as available.
    """
    record = index_records(records).get(value)
    return record is None or record.is_available


def unavailable_dates(records: Records) -> List[date]:
    """Sorted days carrying a booked, blocked or tentative status."""
    indexed = index_records(records)
    return sorted(day for day, record in indexed.items() if not record.is_available)


def check_range_availability(start: date, end: date, records: Records) -> Tuple[bool, List[str]]:
    """
    Check every day from ``start`` to ``end`` (both included).

    Returns ``(available, conflicts)`` where ``conflicts`` lists the ISO dates
    that are not available, in ascending order.
    """
    indexed = index_records(records)
    conflicts = [day.isoformat() for day in iter_days(start, end) if not is_date_available(day, indexed)]
    return not conflicts, conflicts
