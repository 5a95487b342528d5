"""Shared pytest fixtures for the booking calculator tests."""

from __future__ import annotations

import json
import os
from datetime import date
from decimal import Decimal

import httpx
import pytest

from booking_calculator.config import Settings
from booking_calculator.models import AvailabilityStatus, DateAvailabilityRecord, RateSchedule

BASE_URL = "https://availability.test/api"


@pytest.fixture
def settings(monkeypatch):
    """Settings isolated from the developer's environment and .env file."""
    for name in list(os.environ):
        if name.upper().startswith("BOOKING_CALC_"):
            monkeypatch.delenv(name, raising=False)
    return Settings(_env_file=None, availability_base_url=BASE_URL, api_key="test-key")


@pytest.fixture
def records():
    """November 2026: the 10th is booked, the 11th blocked, the 20th tentative."""
    return [
        DateAvailabilityRecord(date(2026, 11, 10), AvailabilityStatus.BOOKED, booking_id="bk-1"),
        DateAvailabilityRecord(date(2026, 11, 11), AvailabilityStatus.BLOCKED, blocked_reason="maintenance"),
        DateAvailabilityRecord(date(2026, 11, 12), AvailabilityStatus.AVAILABLE),
        DateAvailabilityRecord(date(2026, 11, 20), AvailabilityStatus.TENTATIVE),
    ]


@pytest.fixture
def schedule():
    return RateSchedule(daily_rate=Decimal("50"), weekly_rate=Decimal("300"))


def availability_payload(listing_id: str, dates: list[dict]) -> dict:
    return {"listingId": listing_id, "dates": dates, "lastUpdated": "2026-10-18T09:00:00Z"}


def json_transport(payload: dict, status_code: int = 200, calls: list | None = None) -> httpx.MockTransport:
    """Transport answering every request with ``payload`` and recording requests in ``calls``."""

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return httpx.Response(status_code, content=json.dumps(payload), headers={"Content-Type": "application/json"})

    return httpx.MockTransport(handler)
