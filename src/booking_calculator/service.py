"""Coordinates availability loading, caching and booking submission checks."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional

import structlog

from .availability import check_range_availability
from .cache import AvailabilityCache, build_cache_key
from .client import AvailabilityClient
from .config import PricingRates, Settings
from .date_window import BookingWindow, compute_duration
from .errors import AvailabilityFetchFailed, AvailabilityUnconfirmed, IncompleteSelection, RangeConflictError
from .models import AvailabilitySnapshot, BookingOptions, BookingRequest, DateRangeSelection, RateSchedule
from .pricing import compute_pricing

LOGGER = structlog.get_logger(__name__)


class AvailabilityService:
    """
    Availability for the calendar, plus the checks run before a booking is sent.

    Loading is fail-open: when the availability service is unreachable the
    snapshot is empty and marked unconfirmed, so browsing keeps working.
    Submission is fail-closed: availability is re-read from the service and
    any failure or conflict stops the booking.

    Each ``load`` call supersedes earlier calls for the same listing; a
    response that arrives after a newer request started is discarded.
    """

    def __init__(
        self,
        client: AvailabilityClient,
        settings: Settings,
        cache: Optional[AvailabilityCache] = None,
    ):
        self._client = client
        self._settings = settings
        self._cache = cache if cache is not None else AvailabilityCache(settings.cache_ttl_seconds)
        self._generation = 0
        self._latest: dict[str, int] = {}
        self._current: dict[str, AvailabilitySnapshot] = {}

    def default_window(self, today: date | None = None) -> BookingWindow:
        return BookingWindow.from_today(today, days=self._settings.window_days)

    def current(self, listing_id: str) -> Optional[AvailabilitySnapshot]:
        """Most recently applied snapshot for a listing."""
        return self._current.get(listing_id)

    async def load(
        self,
        listing_id: str,
        window_start: date,
        window_end: date,
        *,
        force_refresh: bool = False,
    ) -> Optional[AvailabilitySnapshot]:
        """
        Load the availability snapshot for a window.

        Returns ``None`` when a newer ``load`` for the same listing was issued
        while this one was waiting on the network.
        """
        if window_end < window_start:
            raise ValueError(f"Window end ({window_end}) precedes window start ({window_start})")

        generation = self._next_generation(listing_id)
        key = build_cache_key(listing_id, window_start, window_end)

        if not force_refresh:
            cached = self._cache.get(key)
            if cached is not None:
                LOGGER.debug("availability.cache.hit", listing_id=listing_id)
                self._current[listing_id] = cached
                return cached

        try:
            response = await self._client.fetch(listing_id, window_start, window_end)
        except AvailabilityFetchFailed as exc:
            LOGGER.warning("availability.degraded", listing_id=listing_id, error=str(exc))
            snapshot = AvailabilitySnapshot(
                listing_id=listing_id,
                window_start=window_start,
                window_end=window_end,
                confirmed=False,
                fetched_at=datetime.now(timezone.utc),
                error=str(exc),
            )
        else:
            snapshot = AvailabilitySnapshot(
                listing_id=listing_id,
                window_start=window_start,
                window_end=window_end,
                records=response.to_records(),
                confirmed=True,
                fetched_at=response.last_updated or datetime.now(timezone.utc),
            )

        if generation != self._latest.get(listing_id):
            LOGGER.info("availability.stale_discarded", listing_id=listing_id, generation=generation)
            return None

        if snapshot.confirmed:
            self._cache.set(key, snapshot)
        self._current[listing_id] = snapshot
        return snapshot

    def forget(self, listing_id: str) -> None:
        """
        Drop everything held for a listing once its calendar is closed.

        A request still in flight for the listing is discarded when it returns.
        """
        self._latest.pop(listing_id, None)
        self._current.pop(listing_id, None)
        self._cache.invalidate(listing_id)

    def invalidate(self, listing_id: str) -> int:
        removed = self._cache.invalidate(listing_id)
        LOGGER.debug("availability.cache.invalidated", listing_id=listing_id, removed=removed)
        return removed

    def handle_change(self, payload: Mapping[str, Any]) -> Optional[str]:
        """
        React to a row-change notification for availability or bookings.

        The payload carries the changed row under ``new`` and/or ``old``.
        Returns the listing whose cached windows were dropped, if any.
        """
        for side in ("new", "old"):
            row = payload.get(side) or {}
            listing_id = row.get("listing_id") if isinstance(row, Mapping) else None
            if listing_id:
                self.invalidate(str(listing_id))
                return str(listing_id)
        LOGGER.debug("availability.change_ignored", keys=sorted(payload))
        return None

    async def prepare_submission(
        self,
        listing_id: str,
        selection: DateRangeSelection,
        schedule: RateSchedule,
        options: BookingOptions = BookingOptions(),
        rates: Optional[PricingRates] = None,
    ) -> BookingRequest:
        """
        Re-check availability with the service and build the booking request.

        Raises:
            IncompleteSelection: start or end date missing.
            AvailabilityUnconfirmed: the service could not be reached.
            RangeConflictError: one or more selected days are no longer free.
            InvalidRate: the listing has no usable daily rate.
        """
        start, end = selection.start_date, selection.end_date
        if start is None or end is None:
            raise IncompleteSelection("Select a start and an end date before booking")
        if end < start:
            raise IncompleteSelection("End date must not precede the start date")

        try:
            response = await self._client.fetch(listing_id, start, end)
        except AvailabilityFetchFailed as exc:
            LOGGER.warning("submission.blocked", listing_id=listing_id, reason="unconfirmed")
            raise AvailabilityUnconfirmed(
                f"Could not confirm availability for listing {listing_id}; try again shortly"
            ) from exc

        available, conflicts = check_range_availability(start, end, response.to_records())
        if not available:
            LOGGER.warning("submission.blocked", listing_id=listing_id, reason="conflict", conflicts=conflicts)
            raise RangeConflictError(conflicts)

        duration = compute_duration(start, end)
        breakdown = compute_pricing(schedule, duration, options, rates or self._settings.rates)
        LOGGER.info(
            "submission.ready",
            listing_id=listing_id,
            duration=duration,
            total=str(breakdown.total_renter_pays),
        )
        return BookingRequest(
            listing_id=listing_id,
            selection=DateRangeSelection(start_date=start, end_date=end, duration=duration),
            breakdown=breakdown,
        )

    def _next_generation(self, listing_id: str) -> int:
        self._generation += 1
        self._latest[listing_id] = self._generation
        return self._generation
