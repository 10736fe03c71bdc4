# backend/tutorlink/services/pricing.py
"""
Booking price and payout arithmetic.

All money is handled as Decimal and rounded half-up to cents. These are
plain functions so every caller (booking creation, payment intents,
payout on finalization) applies the same rule.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

Number = Union[Decimal, float, int, str]

CENT = Decimal("0.01")
DEFAULT_HOURLY_RATE = Decimal("50")
MINIMUM_CHARGE = Decimal("0.50")
DEFAULT_PLATFORM_FEE = Decimal("0.15")


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # via str(): 0.1 -> Decimal("0.1"), not its binary expansion
    return Decimal(str(value))


def round_money(value: Number) -> Decimal:
    """Round to 2 decimals, halves away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_booking_price(
    hourly_rate: Optional[Number],
    duration_hours: Number,
    *,
    default_rate: Number = DEFAULT_HOURLY_RATE,
    minimum_charge: Number = MINIMUM_CHARGE,
) -> Decimal:
    """
    Price a booking: ``round2(max(rate * duration, minimum_charge))``.

    An unset (None) rate falls back to ``default_rate``. A rate of zero is
    a real rate and still ends up at the minimum charge.
    """
    rate = to_decimal(default_rate if hourly_rate is None else hourly_rate)
    raw = rate * to_decimal(duration_hours)
    return round_money(max(raw, to_decimal(minimum_charge)))


def chargeable_amount(price: Number, minimum_charge: Number = MINIMUM_CHARGE) -> Decimal:
    return round_money(max(to_decimal(price), to_decimal(minimum_charge)))


def to_minor_units(amount: Number) -> int:
    """Convert a currency amount to integer cents (``round(amount * 100)``)."""
    return int((to_decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_tutor_earnings(amount: Number, platform_fee: Number = DEFAULT_PLATFORM_FEE) -> Decimal:
    """Tutor payout after the platform keeps ``platform_fee`` (a fraction, 0.15 = 15%)."""
    fee = to_decimal(platform_fee)
    if fee < 0 or fee >= 1:
        raise ValueError("platform_fee must be in [0, 1)")
    return round_money(to_decimal(amount) * (Decimal("1") - fee))
