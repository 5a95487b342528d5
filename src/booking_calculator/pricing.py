"""Price breakdown for a booking: base rental, fees, deposit and points."""

from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Tuple, Union

import structlog

from .config import DEFAULT_RATES, PricingRates
from .errors import InvalidRate
from .models import BookingOptions, DeliveryMethod, PriceQuote, PricingBreakdown, QuoteStatus, RateSchedule

LOGGER = structlog.get_logger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

CURRENCY_SYMBOLS = {
    "AUD": "$",
    "USD": "$",
    "NZD": "$",
    "EUR": "€",
    "GBP": "£",
}

Number = Union[Decimal, int, float, str]


def _decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a monetary amount: {value!r}") from exc


def to_cents(value: Number) -> Decimal:
    """Round to the smallest currency unit."""
    return _decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _optional_rate(value: Optional[Number]) -> Optional[Decimal]:
    if value is None:
        return None
    rate = _decimal(value)
    if not rate.is_finite() or rate <= 0:
        return None
    return rate


def split_periods(duration: int, schedule: RateSchedule, rates: PricingRates = DEFAULT_RATES) -> Tuple[int, int, int]:
    """
    Split ``duration`` into ``(months, weeks, days)`` billing units.

    Monthly blocks are used first, then weekly blocks from what is left; a
    period only counts when the listing has a rate for it and the remaining
    days reach its threshold.
    """
    months = weeks = 0
    remaining = duration
    monthly_days = rates.monthly_rate_threshold_days
    weekly_days = rates.weekly_rate_threshold_days

    if _optional_rate(schedule.monthly_rate) is not None and remaining >= monthly_days:
        months, remaining = divmod(remaining, monthly_days)
    if _optional_rate(schedule.weekly_rate) is not None and remaining >= weekly_days:
        weeks, remaining = divmod(remaining, weekly_days)
    return months, weeks, remaining


def _period_price(schedule: RateSchedule, months: int, weeks: int, days: int) -> Decimal:
    amount = _decimal(schedule.daily_rate) * days
    if months:
        amount += _decimal(schedule.monthly_rate) * months
    if weeks:
        amount += _decimal(schedule.weekly_rate) * weeks
    return amount


def billing_periods(duration: int, schedule: RateSchedule, rates: PricingRates = DEFAULT_RATES) -> Tuple[int, int, int]:
    """
    Cheapest ``(months, weeks, days)`` split that covers at least ``duration`` days.

    Billing a few extra days is allowed when a full week or month costs less
    than the days it replaces, so a longer rental never costs less than a
    shorter one. Greedy splits repeat every longest period, so only the
    durations up to one period past ``duration`` need to be compared; ties
    keep the shortest cover.
    """
    if _optional_rate(schedule.monthly_rate) is not None:
        cycle = rates.monthly_rate_threshold_days
    elif _optional_rate(schedule.weekly_rate) is not None:
        cycle = rates.weekly_rate_threshold_days
    else:
        cycle = 1

    best = split_periods(duration, schedule, rates)
    best_price = _period_price(schedule, *best)
    for cover in range(duration + 1, duration + cycle):
        candidate = split_periods(cover, schedule, rates)
        price = _period_price(schedule, *candidate)
        if price < best_price:
            best, best_price = candidate, price
    return best


def base_amount(schedule: RateSchedule, duration: int, rates: PricingRates = DEFAULT_RATES) -> Decimal:
    """Rental price before fees, blending monthly and weekly rates where they apply."""
    return to_cents(_period_price(schedule, *billing_periods(duration, schedule, rates)))


def max_points_applicable(
    base: Decimal,
    balance: Optional[int] = None,
    rates: PricingRates = DEFAULT_RATES,
) -> int:
    """Most points that may be redeemed against ``base``."""
    cap = (base * rates.max_points_fraction / rates.points_to_currency_rate).to_integral_value(rounding=ROUND_FLOOR)
    limit = int(cap)
    if balance is not None:
        limit = min(limit, balance)
    return max(0, limit)


def points_to_credit(points: int, rates: PricingRates = DEFAULT_RATES) -> Decimal:
    return to_cents(Decimal(points) * rates.points_to_currency_rate)


def credit_to_points(amount: Number, rates: PricingRates = DEFAULT_RATES) -> int:
    """Points needed to cover ``amount``, rounded up."""
    points = _decimal(amount) / rates.points_to_currency_rate
    return int(points.to_integral_value(rounding=ROUND_CEILING))


def compute_pricing(
    schedule: RateSchedule,
    duration: int,
    options: BookingOptions = BookingOptions(),
    rates: PricingRates = DEFAULT_RATES,
) -> PricingBreakdown:
    """
    Compute the price of renting a listing for ``duration`` days.

    Every derived amount is rounded to cents as it is produced. The renter
    total is never negative.

    Raises:
        InvalidRate: the daily rate is missing, zero or negative.
        ValueError: ``duration`` or the security deposit is negative.
    """
    try:
        daily_rate = _decimal(schedule.daily_rate)
    except (TypeError, ValueError) as exc:
        raise InvalidRate(schedule.daily_rate) from exc
    if not daily_rate.is_finite() or daily_rate <= 0:
        raise InvalidRate(schedule.daily_rate)
    if duration < 0:
        raise ValueError(f"Duration cannot be negative, got {duration}")

    daily_rate = to_cents(daily_rate)
    if duration == 0:
        return PricingBreakdown.zero(daily_rate, currency=rates.currency)

    months, weeks, extra_days = billing_periods(duration, schedule, rates)
    base = base_amount(schedule, duration, rates)
    service_fee = to_cents(base * rates.service_fee_rate)
    insurance_fee = to_cents(base * rates.insurance_rate) if options.include_insurance else ZERO
    delivery_fee = to_cents(rates.delivery_flat_fee) if options.delivery_method == DeliveryMethod.DELIVERY else ZERO

    security_deposit = to_cents(options.security_deposit)
    if security_deposit < 0:
        raise ValueError(f"Security deposit cannot be negative, got {options.security_deposit}")

    requested_points = max(0, int(options.points_applied))
    points_applied = min(requested_points, max_points_applicable(base, options.points_balance, rates))
    if points_applied != requested_points:
        LOGGER.info(
            "pricing.points_clamped",
            requested=requested_points,
            applied=points_applied,
            balance=options.points_balance,
        )
    points_discount = points_to_credit(points_applied, rates)

    total = base + service_fee + insurance_fee + delivery_fee + security_deposit - points_discount
    platform_commission = to_cents(base * rates.platform_commission_rate)

    return PricingBreakdown(
        base_amount=base,
        service_fee=service_fee,
        insurance_fee=insurance_fee,
        delivery_fee=delivery_fee,
        security_deposit=security_deposit,
        points_discount=points_discount,
        total_renter_pays=max(ZERO, to_cents(total)),
        owner_earns=to_cents(base - platform_commission),
        platform_commission=platform_commission,
        daily_rate=daily_rate,
        duration=duration,
        points_applied=points_applied,
        months=months,
        weeks=weeks,
        extra_days=extra_days,
        currency=rates.currency,
    )


def quote(
    schedule: RateSchedule,
    duration: int,
    options: BookingOptions = BookingOptions(),
    rates: PricingRates = DEFAULT_RATES,
) -> PriceQuote:
    """Like :func:`compute_pricing`, but an unusable rate yields a "price unavailable" quote."""
    try:
        breakdown = compute_pricing(schedule, duration, options, rates)
    except InvalidRate as exc:
        LOGGER.info("pricing.unavailable", reason=str(exc))
        return PriceQuote(status=QuoteStatus.PRICE_UNAVAILABLE, reason=str(exc))
    return PriceQuote(status=QuoteStatus.PRICED, breakdown=breakdown)


def format_price(amount: Number, currency: str = DEFAULT_RATES.currency) -> str:
    """Format an amount for display, e.g. ``$1,234.50``."""
    value = to_cents(amount)
    sign = "-" if value < 0 else ""
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    digits = f"{abs(value):,.2f}"
    if symbol:
        return f"{sign}{symbol}{digits}"
    return f"{sign}{currency.upper()} {digits}"


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def describe_periods(breakdown: PricingBreakdown) -> str:
    """Billing units of the base price, e.g. ``1 week + 3 days``."""
    pieces = []
    if breakdown.months:
        pieces.append(_plural(breakdown.months, "month"))
    if breakdown.weeks:
        pieces.append(_plural(breakdown.weeks, "week"))
    if breakdown.extra_days or not pieces:
        pieces.append(_plural(breakdown.extra_days, "day"))
    return " + ".join(pieces)


def format_breakdown(breakdown: PricingBreakdown, rates: PricingRates = DEFAULT_RATES) -> str:
    """Build a plain-text receipt of the breakdown."""
    currency = breakdown.currency

    def money(amount: Decimal) -> str:
        return format_price(amount, currency)

    service_pct = f"{rates.service_fee_rate * 100:.0f}%"
    commission_pct = f"{rates.platform_commission_rate * 100:.0f}%"

    lines = [
        f"Base price: {money(breakdown.base_amount)} "
        f"({describe_periods(breakdown)}, {money(breakdown.daily_rate)}/day)",
        f"Service fee: {money(breakdown.service_fee)} ({service_pct})",
    ]
    if breakdown.insurance_fee > 0:
        lines.append(f"Insurance: {money(breakdown.insurance_fee)}")
    if breakdown.delivery_fee > 0:
        lines.append(f"Delivery fee: {money(breakdown.delivery_fee)}")
    if breakdown.security_deposit > 0:
        lines.append(f"Security deposit: {money(breakdown.security_deposit)} (refundable)")
    if breakdown.points_discount > 0:
        lines.append(f"Points credit: -{money(breakdown.points_discount)} ({breakdown.points_applied} points)")

    lines.append("")
    lines.append(f"TOTAL: {money(breakdown.total_renter_pays)}")
    lines.append("")
    lines.append(f"Owner receives: {money(breakdown.owner_earns)} (after {commission_pct} commission)")
    return "\n".join(lines)
