from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from booking_core.application.utils.money import round_half_up_div
from booking_core.core.config import settings

REFUND_PERCENTAGES = (0, 50, 75, 100)

# (exclusive lower bound in hours, refund percentage, message), checked in order.
CANCELLATION_TIERS = (
    (24, 100, "Full refund - cancelling more than 24 hours before appointment"),
    (12, 75, "75% refund - cancelling 12-24 hours before appointment"),
    (2, 50, "50% refund - cancelling less than 12 hours before appointment"),
)
NO_REFUND_MESSAGE = "No refund - cancelling less than 2 hours before appointment"


@dataclass(frozen=True)
class PriceBreakdown:
    service_amount: int
    travel_fee: int
    platform_fee: int
    total_amount: int


@dataclass(frozen=True)
class CancellationPolicy:
    hours_until_appointment: float
    refund_percentage: int
    message: str


@dataclass(frozen=True)
class RefundSplit:
    refund_amount: int
    provider_fee: int


def calculate_price_breakdown(
    service_price_cents: int,
    has_travel_fee: bool = False,
    travel_fee_cents: int | None = None,
    platform_fee_percent: int | None = None,
) -> PriceBreakdown:
    """Price a service in minor units.

    The platform fee is informational: it is already part of the service amount
    and is not added to the total.
    """
    if service_price_cents < 0:
        raise ValueError("service price cannot be negative")

    flat_fee = settings.TRAVEL_FEE_CENTS if travel_fee_cents is None else travel_fee_cents
    fee_percent = settings.PLATFORM_FEE_PERCENT if platform_fee_percent is None else platform_fee_percent

    travel_fee = flat_fee if has_travel_fee else 0
    platform_fee = round_half_up_div(service_price_cents * fee_percent, 100)
    return PriceBreakdown(
        service_amount=service_price_cents,
        travel_fee=travel_fee,
        platform_fee=platform_fee,
        total_amount=service_price_cents + travel_fee,
    )


def get_cancellation_policy(scheduled_start: datetime, now: datetime) -> CancellationPolicy:
    hours_until = (scheduled_start - now) / timedelta(hours=1)

    for lower_bound, percentage, message in CANCELLATION_TIERS:
        if hours_until > lower_bound:
            return CancellationPolicy(
                hours_until_appointment=hours_until,
                refund_percentage=percentage,
                message=message,
            )

    return CancellationPolicy(
        hours_until_appointment=hours_until,
        refund_percentage=0,
        message=NO_REFUND_MESSAGE,
    )


def calculate_refund(total_amount_cents: int, refund_percentage: int) -> RefundSplit:
    if refund_percentage not in REFUND_PERCENTAGES:
        raise ValueError(f"unsupported refund percentage: {refund_percentage}")
    if total_amount_cents < 0:
        raise ValueError("total amount cannot be negative")

    refund_amount = round_half_up_div(total_amount_cents * refund_percentage, 100)
    return RefundSplit(refund_amount=refund_amount, provider_fee=total_amount_cents - refund_amount)
