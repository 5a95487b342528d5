"""Tests for the availability HTTP client."""

import asyncio
from datetime import date

import httpx
import pytest
from tenacity import wait_none

from booking_calculator.client import AvailabilityClient
from booking_calculator.errors import AvailabilityFetchFailed
from conftest import availability_payload, json_transport

START, END = date(2026, 11, 1), date(2026, 11, 30)


def fetch(client, listing_id="listing-1"):
    return asyncio.run(client.fetch(listing_id, START, END))


def test_fetch_sends_window_and_credentials(settings):
    calls = []
    payload = availability_payload("listing-1", [{"date": "2026-11-10", "status": "booked"}])
    client = AvailabilityClient(settings, transport=json_transport(payload, calls=calls))

    response = fetch(client)

    assert response.listing_id == "listing-1"
    assert [record.iso for record in response.to_records()] == ["2026-11-10"]
    (request,) = calls
    assert request.method == "GET"
    assert request.url.path == "/api/listings/listing-1/availability"
    assert request.url.params["startDate"] == "2026-11-01"
    assert request.url.params["endDate"] == "2026-11-30"
    assert request.headers["Authorization"] == "Bearer test-key"
    assert request.headers["apikey"] == "test-key"


def test_error_status_raises_without_retry(settings):
    calls = []
    client = AvailabilityClient(settings, transport=json_transport({"error": "boom"}, status_code=500, calls=calls))

    with pytest.raises(AvailabilityFetchFailed) as excinfo:
        fetch(client)

    assert excinfo.value.status_code == 500
    assert excinfo.value.listing_id == "listing-1"
    assert len(calls) == 1


def test_retries_when_configured(settings):
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json=availability_payload("listing-1", []))

    client = AvailabilityClient(
        settings.model_copy(update={"fetch_attempts": 3}),
        transport=httpx.MockTransport(handler),
        wait=wait_none(),
    )

    response = fetch(client)

    assert response.dates == []
    assert len(attempts) == 3


def test_connection_error_raises(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = AvailabilityClient(settings, transport=httpx.MockTransport(handler))

    with pytest.raises(AvailabilityFetchFailed) as excinfo:
        fetch(client)

    assert excinfo.value.status_code is None
    assert "connection refused" in str(excinfo.value)


def test_non_json_body_raises(settings):
    client = AvailabilityClient(
        settings,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>")),
    )
    with pytest.raises(AvailabilityFetchFailed):
        fetch(client)


def test_malformed_payload_raises(settings):
    client = AvailabilityClient(settings, transport=json_transport({"listingId": "listing-1", "dates": "soon"}))
    with pytest.raises(AvailabilityFetchFailed):
        fetch(client)
