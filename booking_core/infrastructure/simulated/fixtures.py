from __future__ import annotations

from datetime import datetime, timedelta

from booking_core.application.utils.pricing import calculate_price_breakdown
from booking_core.domain.entities.booking import (
    Booking,
    BookingStatus,
    LocationType,
    ServiceSnapshot,
    StylistSummary,
)

FIXTURE_STYLISTS: dict[str, StylistSummary] = {
    s.id: s
    for s in (
        StylistSummary(id="mock-stylist-1", display_name="Thandi M.", verification_status="VERIFIED"),
        StylistSummary(id="mock-stylist-2", display_name="Nomvula S.", verification_status="VERIFIED"),
        StylistSummary(id="mock-stylist-3", display_name="Zinhle K.", verification_status="VERIFIED"),
        StylistSummary(id="mock-stylist-4", display_name="Lindiwe P.", verification_status="VERIFIED"),
        StylistSummary(id="mock-stylist-5", display_name="Ayanda N.", verification_status="VERIFIED"),
        StylistSummary(id="mock-stylist-6", display_name="Busisiwe D.", verification_status="VERIFIED"),
        StylistSummary(id="mock-stylist-7", display_name="Precious M.", verification_status="PENDING"),
        StylistSummary(id="mock-stylist-8", display_name="Sibongile T.", verification_status="VERIFIED"),
    )
}

# Stylists that exist but are not taking bookings.
UNAVAILABLE_STYLIST_IDS = frozenset({"mock-stylist-7"})

FIXTURE_SERVICES: dict[str, ServiceSnapshot] = {
    s.id: s
    for s in (
        ServiceSnapshot(id="svc-1", name="Box Braids", price_cents=35000, estimated_duration_min=180),
        ServiceSnapshot(id="svc-2", name="Knotless Braids", price_cents=45000, estimated_duration_min=240),
        ServiceSnapshot(id="svc-3", name="Silk Press", price_cents=25000, estimated_duration_min=90),
        ServiceSnapshot(id="svc-4", name="Loc Retwist", price_cents=20000, estimated_duration_min=120),
        ServiceSnapshot(id="svc-5", name="Full Weave Install", price_cents=60000, estimated_duration_min=180),
        ServiceSnapshot(id="svc-6", name="Wig Install", price_cents=35000, estimated_duration_min=60),
        ServiceSnapshot(id="svc-7", name="Gel Manicure", price_cents=15000, estimated_duration_min=60),
        ServiceSnapshot(id="svc-8", name="Full Set Acrylics", price_cents=25000, estimated_duration_min=90),
        ServiceSnapshot(id="svc-9", name="Lash Extensions", price_cents=20000, estimated_duration_min=90),
        ServiceSnapshot(id="svc-10", name="Bridal Makeup", price_cents=50000, estimated_duration_min=120),
        ServiceSnapshot(id="svc-11", name="Deep Conditioning", price_cents=15000, estimated_duration_min=45),
        ServiceSnapshot(id="svc-12", name="Facial Treatment", price_cents=30000, estimated_duration_min=60),
    )
}


def _booking(
    booking_id: str,
    status: BookingStatus,
    stylist_id: str,
    service_id: str,
    scheduled_start: datetime,
    location_type: LocationType,
    location_address: str,
    created_at: datetime,
    lat: float | None = None,
    lng: float | None = None,
    notes: str | None = None,
    escrow_tx_hash: str | None = None,
    cancelled_at: datetime | None = None,
    completed_at: datetime | None = None,
) -> Booking:
    service = FIXTURE_SERVICES[service_id]
    price = calculate_price_breakdown(service.price_cents, location_type == LocationType.CUSTOMER_HOME)
    return Booking(
        id=booking_id,
        status=status,
        stylist=FIXTURE_STYLISTS[stylist_id],
        service=service,
        scheduled_start=scheduled_start,
        location_type=location_type,
        location_address=location_address,
        location_lat=lat,
        location_lng=lng,
        notes=notes,
        total_amount_cents=price.total_amount,
        platform_fee_cents=price.platform_fee,
        escrow_tx_hash=escrow_tx_hash,
        created_at=created_at,
        cancelled_at=cancelled_at,
        completed_at=completed_at,
    )


def build_fixture_bookings(now: datetime) -> list[Booking]:
    """Demo bookings in various lifecycle states, dated relative to ``now``."""
    now = now.replace(second=0, microsecond=0)
    tomorrow = now + timedelta(days=1)
    yesterday = now - timedelta(days=1)
    last_week = now - timedelta(days=7)

    return [
        _booking(
            "mock-booking-1",
            BookingStatus.CONFIRMED,
            "mock-stylist-1",
            "svc-1",
            tomorrow,
            LocationType.CUSTOMER_HOME,
            "123 Main Street, Johannesburg",
            created_at=now,
            lat=-26.2041,
            lng=28.0473,
            notes="Medium length, black color",
            escrow_tx_hash="0x1234567890abcdef",
        ),
        _booking(
            "mock-booking-2",
            BookingStatus.PENDING_PAYMENT,
            "mock-stylist-5",
            "svc-7",
            tomorrow + timedelta(hours=3),
            LocationType.STYLIST_BASE,
            "Fourways Mall, Johannesburg",
            created_at=now,
            lat=-26.2023,
            lng=28.0436,
        ),
        _booking(
            "mock-booking-3",
            BookingStatus.COMPLETED,
            "mock-stylist-3",
            "svc-3",
            last_week,
            LocationType.STYLIST_BASE,
            "The Zone @ Rosebank",
            created_at=last_week - timedelta(days=2),
            lat=-26.1076,
            lng=28.0567,
            notes="Heat protectant provided",
            escrow_tx_hash="0xabcdef1234567890",
            completed_at=last_week,
        ),
        _booking(
            "mock-booking-4",
            BookingStatus.CANCELLED,
            "mock-stylist-2",
            "svc-11",
            yesterday,
            LocationType.CUSTOMER_HOME,
            "456 Oak Avenue, Sandton",
            created_at=yesterday - timedelta(days=3),
            lat=-26.1496,
            lng=28.0098,
            cancelled_at=yesterday,
        ),
        _booking(
            "mock-booking-5",
            BookingStatus.COMPLETED,
            "mock-stylist-6",
            "svc-12",
            last_week - timedelta(days=5),
            LocationType.STYLIST_BASE,
            "Parkhurst Beauty Studio",
            created_at=last_week - timedelta(days=7),
            lat=-26.1852,
            lng=28.0246,
            notes="Sensitive skin products requested",
            escrow_tx_hash="0x9876543210fedcba",
            completed_at=last_week - timedelta(days=5),
        ),
    ]


def build_fixture_escrows(bookings: list[Booking]) -> dict[str, int]:
    """Known settlement references and the amount each one locked."""
    return {b.escrow_tx_hash: b.total_amount_cents for b in bookings if b.escrow_tx_hash}
