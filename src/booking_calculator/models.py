"""Shared data models used across the booking calculator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AvailabilityStatus(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    BLOCKED = "blocked"
    TENTATIVE = "tentative"


class DeliveryMethod(str, Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


class QuoteStatus(str, Enum):
    PRICED = "priced"
    PRICE_UNAVAILABLE = "price_unavailable"


@dataclass(frozen=True)
class DateAvailabilityRecord:
    """Availability status of a listing on a single calendar day."""

    date: date
    status: AvailabilityStatus
    booking_id: Optional[str] = None
    blocked_reason: Optional[str] = None

    @property
    def iso(self) -> str:
        return self.date.isoformat()

    @property
    def is_available(self) -> bool:
        return self.status is AvailabilityStatus.AVAILABLE


@dataclass(frozen=True)
class DateRangeSelection:
    """Dates picked on the calendar; ``duration`` is 0 until both ends are set."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration: int = 0

    @classmethod
    def empty(cls) -> "DateRangeSelection":
        return cls()

    @property
    def is_complete(self) -> bool:
        return self.start_date is not None and self.end_date is not None


@dataclass(frozen=True)
class RangeConflict:
    """Non-blocking warning: the selected range covers unavailable days."""

    conflicts: tuple[str, ...]

    @property
    def message(self) -> str:
        return f"Some dates in your selection are not available: {', '.join(self.conflicts)}"


@dataclass(frozen=True)
class RateSchedule:
    """Listing prices per day and, optionally, per week and per month."""

    daily_rate: Decimal
    weekly_rate: Optional[Decimal] = None
    monthly_rate: Optional[Decimal] = None


@dataclass(frozen=True)
class BookingOptions:
    """Renter choices that affect the price of a booking."""

    include_insurance: bool = False
    delivery_method: DeliveryMethod = DeliveryMethod.PICKUP
    security_deposit: Decimal = Decimal("0")
    points_applied: int = 0
    points_balance: Optional[int] = None


@dataclass(frozen=True)
class PricingBreakdown:
    """Full price of a booking for the renter and the owner."""

    base_amount: Decimal
    service_fee: Decimal
    insurance_fee: Decimal
    delivery_fee: Decimal
    security_deposit: Decimal
    points_discount: Decimal
    total_renter_pays: Decimal
    owner_earns: Decimal
    platform_commission: Decimal
    daily_rate: Decimal
    duration: int
    points_applied: int = 0
    months: int = 0
    weeks: int = 0
    extra_days: int = 0
    currency: str = "AUD"

    @classmethod
    def zero(cls, daily_rate: Decimal, currency: str = "AUD") -> "PricingBreakdown":
        nothing = Decimal("0.00")
        return cls(
            base_amount=nothing,
            service_fee=nothing,
            insurance_fee=nothing,
            delivery_fee=nothing,
            security_deposit=nothing,
            points_discount=nothing,
            total_renter_pays=nothing,
            owner_earns=nothing,
            platform_commission=nothing,
            daily_rate=daily_rate,
            duration=0,
            currency=currency,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise with amounts as strings so no precision is lost."""
        return {
            "base_amount": str(self.base_amount),
            "service_fee": str(self.service_fee),
            "insurance_fee": str(self.insurance_fee),
            "delivery_fee": str(self.delivery_fee),
            "security_deposit": str(self.security_deposit),
            "points_discount": str(self.points_discount),
            "points_applied": self.points_applied,
            "total_renter_pays": str(self.total_renter_pays),
            "owner_earns": str(self.owner_earns),
            "platform_commission": str(self.platform_commission),
            "daily_rate": str(self.daily_rate),
            "duration": self.duration,
            "months": self.months,
            "weeks": self.weeks,
            "extra_days": self.extra_days,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class PriceQuote:
    """Either a priced breakdown or an explicit "price unavailable" outcome."""

    status: QuoteStatus
    breakdown: Optional[PricingBreakdown] = None
    reason: Optional[str] = None

    @property
    def is_priced(self) -> bool:
        return self.status is QuoteStatus.PRICED


@dataclass(frozen=True)
class AvailabilitySnapshot:
    """Availability records loaded for one listing window."""

    listing_id: str
    window_start: date
    window_end: date
    records: tuple[DateAvailabilityRecord, ...] = ()
    confirmed: bool = True
    fetched_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def warning(self) -> Optional[str]:
        if self.confirmed:
            return None
        return "Live availability could not be confirmed; dates are shown as available."


@dataclass(frozen=True)
class BookingRequest:
    """Dates and price attached to a booking-creation request."""

    listing_id: str
    selection: DateRangeSelection
    breakdown: PricingBreakdown

    def to_payload(self) -> dict[str, Any]:
        if self.selection.start_date is None or self.selection.end_date is None:
            raise ValueError("Booking request requires a complete date range")
        payload: dict[str, Any] = {
            "listing_id": self.listing_id,
            "start_date": self.selection.start_date.isoformat(),
            "end_date": self.selection.end_date.isoformat(),
            "duration": self.selection.duration,
        }
        payload.update(self.breakdown.to_dict())
        return payload


class AvailabilityEntry(BaseModel):
    """Single day as returned by the availability endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    day: date = Field(alias="date")
    status: AvailabilityStatus = AvailabilityStatus.AVAILABLE
    booking_id: Optional[str] = Field(default=None, alias="bookingId")
    blocked_reason: Optional[str] = Field(default=None, alias="blockedReason")

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, value: Any) -> Any:
        return value or AvailabilityStatus.AVAILABLE


class AvailabilityResponse(BaseModel):
    """Payload of ``GET /listings/{id}/availability``."""

    model_config = ConfigDict(populate_by_name=True)

    listing_id: str = Field(alias="listingId")
    dates: list[AvailabilityEntry] = Field(default_factory=list)
    last_updated: Optional[datetime] = Field(default=None, alias="lastUpdated")

    def to_records(self) -> tuple[DateAvailabilityRecord, ...]:
        """Convert to records, keeping one record per day.

        When the service repeats a day, an unavailable status wins over
        ``available``.
        """
        by_day: dict[date, DateAvailabilityRecord] = {}
        for entry in self.dates:
            record = DateAvailabilityRecord(
                date=entry.day,
                status=entry.status,
                booking_id=entry.booking_id,
                blocked_reason=entry.blocked_reason,
            )
            existing = by_day.get(entry.day)
            if existing is None or existing.is_available:
                by_day[entry.day] = record
        return tuple(sorted(by_day.values(), key=lambda record: record.date))
