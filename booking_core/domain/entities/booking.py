from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum


class BookingStatus(str, Enum):
    PENDING_PAYMENT = "PENDING_PAYMENT"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    DISPUTED = "DISPUTED"


class LocationType(str, Enum):
    STYLIST_BASE = "STYLIST_BASE"
    CUSTOMER_HOME = "CUSTOMER_HOME"


@dataclass(frozen=True)
class StylistSummary:
    id: str
    display_name: str
    avatar_url: str | None = None
    verification_status: str = "UNVERIFIED"


@dataclass(frozen=True)
class ServiceSnapshot:
    id: str
    name: str
    price_cents: int
    estimated_duration_min: int


@dataclass(frozen=True)
class Booking:
    id: str
    status: BookingStatus
    stylist: StylistSummary
    service: ServiceSnapshot
    scheduled_start: datetime
    location_type: LocationType
    location_address: str
    total_amount_cents: int
    platform_fee_cents: int
    created_at: datetime
    location_lat: float | None = None
    location_lng: float | None = None
    notes: str | None = None
    escrow_tx_hash: str | None = None
    cancelled_at: datetime | None = None
    completed_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.scheduled_start.tzinfo is None:
            raise ValueError("scheduled_start must be timezone-aware")
        if not self.total_amount_cents >= self.platform_fee_cents >= 0:
            raise ValueError(
                f"invalid amounts: total={self.total_amount_cents} platform_fee={self.platform_fee_cents}"
            )

    @property
    def scheduled_end(self) -> datetime:
        return self.scheduled_start + timedelta(minutes=self.service.estimated_duration_min)


@dataclass(frozen=True)
class BookingPage:
    bookings: list[Booking]
    total: int
    page: int
    limit: int
    has_more: bool


@dataclass(frozen=True)
class CreateBookingRequest:
    stylist_id: str
    service_id: str
    scheduled_start: datetime
    location_type: LocationType
    location_address: str
    location_lat: float | None = None
    location_lng: float | None = None
    notes: str | None = None


@dataclass(frozen=True)
class EscrowSummary:
    customer: str
    amount_cents: int
    status: int


@dataclass(frozen=True)
class PaymentConfirmation:
    booking: Booking
    message: str
    escrow: EscrowSummary | None = None


@dataclass(frozen=True)
class CustomerStats:
    total: int = 0
    this_month: int = 0
    completed: int = 0
    cancelled: int = 0
    total_spent_cents: int = 0


@dataclass(frozen=True)
class StylistStats:
    total: int = 0
    this_month: int = 0
    completed: int = 0
    cancelled: int = 0
    gross_earned_cents: int = 0
    net_earned_cents: int = 0


@dataclass(frozen=True)
class CombinedStats:
    total: int = 0
    this_month: int = 0
    completed: int = 0


@dataclass(frozen=True)
class BookingStats:
    as_customer: CustomerStats = field(default_factory=CustomerStats)
    as_stylist: StylistStats = field(default_factory=StylistStats)
    combined: CombinedStats = field(default_factory=CombinedStats)


@dataclass(frozen=True)
class AvailabilitySlot:
    start_time: str  # HH:MM
    available: bool = True
