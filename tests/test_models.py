"""Tests for wire parsing and outbound payloads."""

from datetime import date, datetime, timezone
from decimal import Decimal

from booking_calculator.models import (
    AvailabilityResponse,
    AvailabilitySnapshot,
    AvailabilityStatus,
    BookingRequest,
    DateRangeSelection,
    RateSchedule,
)
from booking_calculator.pricing import compute_pricing


def test_response_parses_camel_case_payload():
    response = AvailabilityResponse.model_validate(
        {
            "listingId": "listing-1",
            "dates": [
                {"date": "2026-11-10", "status": "booked", "bookingId": "bk-1"},
                {"date": "2026-11-11", "status": "blocked", "blockedReason": "maintenance"},
                {"date": "2026-11-12", "status": None},
            ],
            "lastUpdated": "2026-10-18T09:00:00Z",
        }
    )
    assert response.listing_id == "listing-1"
    assert response.last_updated == datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)

    records = response.to_records()
    assert [record.iso for record in records] == ["2026-11-10", "2026-11-11", "2026-11-12"]
    assert records[0].booking_id == "bk-1"
    assert records[1].blocked_reason == "maintenance"
    assert records[2].status is AvailabilityStatus.AVAILABLE


def test_repeated_day_keeps_unavailable_status():
    response = AvailabilityResponse.model_validate(
        {
            "listingId": "listing-1",
            "dates": [
                {"date": "2026-11-10", "status": "available"},
                {"date": "2026-11-10", "status": "tentative"},
                {"date": "2026-11-10", "status": "available"},
            ],
        }
    )
    records = response.to_records()
    assert len(records) == 1
    assert records[0].status is AvailabilityStatus.TENTATIVE


def test_snapshot_warning_only_when_unconfirmed():
    confirmed = AvailabilitySnapshot("listing-1", date(2026, 11, 1), date(2026, 11, 30))
    unconfirmed = AvailabilitySnapshot("listing-1", date(2026, 11, 1), date(2026, 11, 30), confirmed=False)
    assert confirmed.warning is None
    assert "could not be confirmed" in unconfirmed.warning


def test_booking_request_payload():
    schedule = RateSchedule(daily_rate=Decimal("50"), weekly_rate=Decimal("300"))
    selection = DateRangeSelection(date(2026, 11, 1), date(2026, 11, 10), 10)
    request = BookingRequest("listing-1", selection, compute_pricing(schedule, 10))
    payload = request.to_payload()
    assert payload["listing_id"] == "listing-1"
    assert payload["start_date"] == "2026-11-01"
    assert payload["end_date"] == "2026-11-10"
    assert payload["duration"] == 10
    assert payload["base_amount"] == "450.00"
    assert payload["total_renter_pays"] == "517.50"
    assert payload["currency"] == "AUD"
