from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from booking_core.domain.entities.actor import ActorContext
from booking_core.domain.entities.booking import (
    AvailabilitySlot,
    Booking,
    BookingPage,
    BookingStats,
    BookingStatus,
    CreateBookingRequest,
    PaymentConfirmation,
)

DEFAULT_CANCEL_REASON = "customer_requested"


class BookingGatewayPort(ABC):
    """Remote booking capabilities.

    Implementations raise ``BookingError`` subclasses and never retry:
    create, cancel and confirm_payment are not idempotent.
    """

    @abstractmethod
    async def create_booking(self, actor: ActorContext, request: CreateBookingRequest) -> Booking:
        """Create a booking. Returns it in PENDING_PAYMENT."""
        raise NotImplementedError

    @abstractmethod
    async def list_bookings(
        self,
        actor: ActorContext,
        status: BookingStatus | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> BookingPage:
        """List the actor's bookings. An empty page is not an error."""
        raise NotImplementedError

    @abstractmethod
    async def get_booking(self, actor: ActorContext, booking_id: str) -> Booking:
        raise NotImplementedError

    @abstractmethod
    async def update_status(
        self,
        actor: ActorContext,
        booking_id: str,
        status: BookingStatus,
        escrow_tx_hash: str | None = None,
    ) -> Booking:
        raise NotImplementedError

    @abstractmethod
    async def cancel_booking(self, actor: ActorContext, booking_id: str, reason: str | None = None) -> Booking:
        raise NotImplementedError

    @abstractmethod
    async def confirm_payment(
        self,
        actor: ActorContext,
        booking_id: str,
        escrow_tx_hash: str,
        skip_on_chain_verification: bool = False,
    ) -> PaymentConfirmation:
        """Attach a settlement reference and confirm the booking."""
        raise NotImplementedError

    @abstractmethod
    async def get_stats(self, actor: ActorContext) -> BookingStats:
        raise NotImplementedError

    @abstractmethod
    async def get_availability(
        self,
        actor: ActorContext,
        stylist_id: str,
        day: date,
        duration_minutes: int,
    ) -> list[AvailabilitySlot]:
        raise NotImplementedError
