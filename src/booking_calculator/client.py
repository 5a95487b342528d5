"""HTTP client for the hosted availability service."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from .config import Settings
from .errors import AvailabilityFetchFailed
from .models import AvailabilityResponse

LOGGER = structlog.get_logger(__name__)


class AvailabilityClient:
    """Fetches booked/blocked days for a listing window."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        wait: Optional[wait_base] = None,
    ):
        self._settings = settings
        self._transport = transport
        self._wait = wait or wait_exponential(multiplier=0.5, min=0.5, max=4)

    async def fetch(self, listing_id: str, window_start: date, window_end: date) -> AvailabilityResponse:
        """
        Load availability for ``listing_id`` between the two dates (inclusive).

        Raises:
            AvailabilityFetchFailed: the request failed, returned an error status
                or the body did not match the expected shape.
        """
        url = self._settings.availability_url(listing_id)
        params = {"startDate": window_start.isoformat(), "endDate": window_end.isoformat()}
        LOGGER.info("availability.fetch.start", listing_id=listing_id, **params)

        try:
            payload = await self._get_json(url, params)
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            LOGGER.error("availability.fetch.failed", listing_id=listing_id, status_code=status_code)
            raise AvailabilityFetchFailed(listing_id, f"HTTP {status_code}", status_code=status_code) from exc
        except httpx.HTTPError as exc:
            LOGGER.error("availability.fetch.failed", listing_id=listing_id, error=str(exc))
            raise AvailabilityFetchFailed(listing_id, str(exc) or type(exc).__name__) from exc
        except ValueError as exc:
            LOGGER.error("availability.fetch.invalid_json", listing_id=listing_id)
            raise AvailabilityFetchFailed(listing_id, "response body is not JSON") from exc

        try:
            response = AvailabilityResponse.model_validate(payload)
        except ValidationError as exc:
            LOGGER.error("availability.fetch.invalid_payload", listing_id=listing_id, errors=exc.error_count())
            raise AvailabilityFetchFailed(listing_id, "malformed availability payload") from exc

        LOGGER.info("availability.fetch.success", listing_id=listing_id, days=len(response.dates))
        return response

    async def _get_json(self, url: str, params: dict[str, str]) -> Any:
        """Execute the GET, retrying transport and HTTP errors when configured to."""
        async for attempt in AsyncRetrying(
            wait=self._wait,
            stop=stop_after_attempt(self._settings.fetch_attempts),
            retry=retry_if_exception_type(httpx.HTTPError),
            reraise=True,
        ):
            with attempt:
                async with httpx.AsyncClient(
                    headers=self._settings.request_headers,
                    timeout=self._settings.timeout_seconds,
                    transport=self._transport,
                ) as client:
                    response = await client.get(url, params=params)
                    response.raise_for_status()
                    return response.json()
        raise RuntimeError("Availability request did not run")  # safety net
