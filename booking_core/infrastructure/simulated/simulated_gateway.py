from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import replace
from datetime import date, datetime, time
from typing import Callable
from zoneinfo import ZoneInfo

from booking_core.application.exceptions import (
    BookingNotFoundError,
    CannotCancelError,
    EscrowMismatchError,
    EscrowNotFoundError,
    ProviderUnavailableError,
    RequestFailedError,
    ServiceNotFoundError,
    SlotUnavailableError,
)
from booking_core.application.ports.booking_gateway import DEFAULT_CANCEL_REASON, BookingGatewayPort
from booking_core.application.utils.pricing import calculate_price_breakdown
from booking_core.application.utils.slots import generate_time_slots, slot_overlaps, slot_start_instant
from booking_core.application.utils.state_machine import can_cancel_booking, validate_transition
from booking_core.core.config import settings
from booking_core.domain.entities.actor import ActorContext
from booking_core.domain.entities.booking import (
    AvailabilitySlot,
    Booking,
    BookingPage,
    BookingStats,
    BookingStatus,
    CombinedStats,
    CreateBookingRequest,
    CustomerStats,
    EscrowSummary,
    LocationType,
    PaymentConfirmation,
    ServiceSnapshot,
    StylistStats,
    StylistSummary,
)
from booking_core.infrastructure.simulated.fixtures import (
    FIXTURE_SERVICES,
    FIXTURE_STYLISTS,
    UNAVAILABLE_STYLIST_IDS,
    build_fixture_bookings,
    build_fixture_escrows,
)

UTC = ZoneInfo("UTC")

# Statuses that occupy the stylist's calendar.
BLOCKING_STATUSES = frozenset({BookingStatus.PENDING_PAYMENT, BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS})
PAID_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED})

ESCROW_LOCKED = 1


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SimulatedBookingGateway(BookingGatewayPort):
    """In-memory stand-in for the bookings API.

    Applies the same rules the API enforces so callers see identical results
    and errors in both modes. Fixture bookings are visible to every actor;
    bookings created here are visible to their creator and their stylist.
    """

    def __init__(
        self,
        bookings: list[Booking] | None = None,
        stylists: dict[str, StylistSummary] | None = None,
        services: dict[str, ServiceSnapshot] | None = None,
        escrows: dict[str, int] | None = None,
        clock: Callable[[], datetime] = _utc_now,
        latency_seconds: float | None = None,
        timezone: ZoneInfo | None = None,
    ) -> None:
        self._clock = clock
        seed = build_fixture_bookings(clock()) if bookings is None else list(bookings)
        self._bookings: dict[str, Booking] = {b.id: b for b in seed}
        self._order: list[str] = [b.id for b in seed]
        self._owners: dict[str, str] = {}
        self._stylists = dict(FIXTURE_STYLISTS if stylists is None else stylists)
        self._services = dict(FIXTURE_SERVICES if services is None else services)
        self._escrows: dict[str, int] = build_fixture_escrows(seed) if escrows is None else dict(escrows)
        self._latency = settings.SIMULATED_LATENCY_MS / 1000 if latency_seconds is None else latency_seconds
        self._timezone = timezone or ZoneInfo(settings.BUSINESS_TIMEZONE)
        self._ids = itertools.count(len(seed) + 1)
        self._logger = logging.getLogger(__name__)

    def register_escrow(self, escrow_tx_hash: str, amount_cents: int) -> None:
        self._escrows[escrow_tx_hash] = amount_cents

    async def create_booking(self, actor: ActorContext, request: CreateBookingRequest) -> Booking:
        await self._simulate_latency()
        now = self._clock()

        service = self._services.get(request.service_id)
        if service is None:
            raise ServiceNotFoundError()

        stylist = self._stylists.get(request.stylist_id)
        if stylist is None or stylist.id in UNAVAILABLE_STYLIST_IDS:
            raise ProviderUnavailableError()

        if request.scheduled_start.tzinfo is None:
            raise RequestFailedError("scheduledStartTime must include a UTC offset", 400, "VALIDATION_ERROR")
        if request.scheduled_start <= now:
            raise SlotUnavailableError("Cannot book a time in the past")

        duration = service.estimated_duration_min
        for other in self._stylist_bookings(stylist.id):
            if slot_overlaps(request.scheduled_start, duration, other.scheduled_start, other.scheduled_end):
                raise SlotUnavailableError()

        price = calculate_price_breakdown(service.price_cents, request.location_type == LocationType.CUSTOMER_HOME)
        booking = Booking(
            id=f"sim-booking-{next(self._ids)}",
            status=BookingStatus.PENDING_PAYMENT,
            stylist=stylist,
            service=service,
            scheduled_start=request.scheduled_start,
            location_type=request.location_type,
            location_address=request.location_address,
            location_lat=request.location_lat,
            location_lng=request.location_lng,
            notes=request.notes,
            total_amount_cents=price.total_amount,
            platform_fee_cents=price.platform_fee,
            created_at=now,
        )
        self._bookings[booking.id] = booking
        self._order.insert(0, booking.id)
        self._owners[booking.id] = actor.user_id
        self._logger.info(
            "Simulated booking created",
            extra={"booking_id": booking.id, "stylist_id": stylist.id, "status": booking.status.value},
        )
        return booking

    async def list_bookings(
        self,
        actor: ActorContext,
        status: BookingStatus | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> BookingPage:
        await self._simulate_latency()
        page = max(page, 1)
        visible = [b for b in self._visible_to(actor) if status is None or b.status == status]
        start = (page - 1) * limit
        return BookingPage(
            bookings=visible[start : start + limit],
            total=len(visible),
            page=page,
            limit=limit,
            has_more=start + limit < len(visible),
        )

    async def get_booking(self, actor: ActorContext, booking_id: str) -> Booking:
        await self._simulate_latency()
        return self._require(actor, booking_id)

    async def update_status(
        self,
        actor: ActorContext,
        booking_id: str,
        status: BookingStatus,
        escrow_tx_hash: str | None = None,
    ) -> Booking:
        await self._simulate_latency()
        booking = self._require(actor, booking_id)
        validate_transition(booking.status, status)
        now = self._clock()
        updated = replace(
            booking,
            status=status,
            escrow_tx_hash=escrow_tx_hash or booking.escrow_tx_hash,
            cancelled_at=now if status == BookingStatus.CANCELLED else booking.cancelled_at,
            completed_at=now if status == BookingStatus.COMPLETED else booking.completed_at,
        )
        self._bookings[booking_id] = updated
        return updated

    async def cancel_booking(self, actor: ActorContext, booking_id: str, reason: str | None = None) -> Booking:
        await self._simulate_latency()
        booking = self._require(actor, booking_id)
        now = self._clock()
        if not can_cancel_booking(booking, now):
            raise CannotCancelError()

        updated = replace(booking, status=BookingStatus.CANCELLED, cancelled_at=now)
        self._bookings[booking_id] = updated
        self._logger.info(
            "Simulated booking cancelled",
            extra={"booking_id": booking_id, "status": updated.status.value, "reason": reason or DEFAULT_CANCEL_REASON},
        )
        return updated

    async def confirm_payment(
        self,
        actor: ActorContext,
        booking_id: str,
        escrow_tx_hash: str,
        skip_on_chain_verification: bool = False,
    ) -> PaymentConfirmation:
        await self._simulate_latency()
        booking = self._require(actor, booking_id)
        validate_transition(booking.status, BookingStatus.CONFIRMED)

        escrow = None
        if not skip_on_chain_verification:
            locked = self._escrows.get(escrow_tx_hash)
            if locked is None:
                raise EscrowNotFoundError()
            if locked != booking.total_amount_cents:
                raise EscrowMismatchError(
                    f"Escrow holds {locked} but booking total is {booking.total_amount_cents}"
                )
            escrow = EscrowSummary(customer=actor.user_id, amount_cents=locked, status=ESCROW_LOCKED)

        updated = replace(booking, status=BookingStatus.CONFIRMED, escrow_tx_hash=escrow_tx_hash)
        self._bookings[booking_id] = updated
        message = "Payment confirmed" if escrow else "Payment confirmed (verification skipped)"
        return PaymentConfirmation(booking=updated, message=message, escrow=escrow)

    async def get_stats(self, actor: ActorContext) -> BookingStats:
        await self._simulate_latency()
        now = self._clock()
        visible = self._visible_to(actor)
        as_customer = [b for b in visible if b.stylist.id != actor.user_id]
        as_stylist = [b for b in visible if b.stylist.id == actor.user_id]

        def this_month(items: list[Booking]) -> int:
            return sum(1 for b in items if (b.scheduled_start.year, b.scheduled_start.month) == (now.year, now.month))

        def count(items: list[Booking], status: BookingStatus) -> int:
            return sum(1 for b in items if b.status == status)

        earned = [b for b in as_stylist if b.status == BookingStatus.COMPLETED]
        gross = sum(b.total_amount_cents for b in earned)

        return BookingStats(
            as_customer=CustomerStats(
                total=len(as_customer),
                this_month=this_month(as_customer),
                completed=count(as_customer, BookingStatus.COMPLETED),
                cancelled=count(as_customer, BookingStatus.CANCELLED),
                total_spent_cents=sum(b.total_amount_cents for b in as_customer if b.status in PAID_STATUSES),
            ),
            as_stylist=StylistStats(
                total=len(as_stylist),
                this_month=this_month(as_stylist),
                completed=len(earned),
                cancelled=count(as_stylist, BookingStatus.CANCELLED),
                gross_earned_cents=gross,
                net_earned_cents=gross - sum(b.platform_fee_cents for b in earned),
            ),
            combined=CombinedStats(
                total=len(visible),
                this_month=this_month(visible),
                completed=count(visible, BookingStatus.COMPLETED),
            ),
        )

    async def get_availability(
        self,
        actor: ActorContext,
        stylist_id: str,
        day: date,
        duration_minutes: int,
    ) -> list[AvailabilitySlot]:
        await self._simulate_latency()
        if stylist_id not in self._stylists:
            raise ProviderUnavailableError()

        candidates = generate_time_slots(
            day,
            duration_minutes,
            self._clock(),
            timezone=self._timezone,
            open_time=time(settings.OPENING_HOUR),
            close_time=time(settings.CLOSING_HOUR),
            step_minutes=settings.SLOT_STEP_MINUTES,
        )
        if stylist_id in UNAVAILABLE_STYLIST_IDS:
            return [replace(slot, available=False) for slot in candidates]

        busy = [(b.scheduled_start, b.scheduled_end) for b in self._stylist_bookings(stylist_id)]
        slots: list[AvailabilitySlot] = []
        for slot in candidates:
            start = slot_start_instant(day, slot.start_time, self._timezone)
            taken = any(slot_overlaps(start, duration_minutes, b_start, b_end) for b_start, b_end in busy)
            slots.append(replace(slot, available=not taken))
        return slots

    def _can_see(self, actor: ActorContext, booking: Booking) -> bool:
        owner = self._owners.get(booking.id)
        return owner is None or owner == actor.user_id or booking.stylist.id == actor.user_id

    def _visible_to(self, actor: ActorContext) -> list[Booking]:
        return [self._bookings[i] for i in self._order if self._can_see(actor, self._bookings[i])]

    def _require(self, actor: ActorContext, booking_id: str) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None or not self._can_see(actor, booking):
            raise BookingNotFoundError()
        return booking

    def _stylist_bookings(self, stylist_id: str) -> list[Booking]:
        return [
            b for b in self._bookings.values() if b.stylist.id == stylist_id and b.status in BLOCKING_STATUSES
        ]

    async def _simulate_latency(self) -> None:
        if self._latency > 0:
            await asyncio.sleep(self._latency)
