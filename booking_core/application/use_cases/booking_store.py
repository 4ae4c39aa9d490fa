from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, replace
from datetime import date, datetime, time
from typing import Callable
from zoneinfo import ZoneInfo

from booking_core.application.exceptions import BookingError, CannotCancelError, RequestFailedError
from booking_core.application.ports.booking_gateway import BookingGatewayPort
from booking_core.application.utils.slots import generate_time_slots
from booking_core.application.utils.state_machine import can_cancel_booking
from booking_core.core.config import settings
from booking_core.domain.entities.actor import ActorContext
from booking_core.domain.entities.booking import (
    AvailabilitySlot,
    Booking,
    BookingStats,
    BookingStatus,
    CreateBookingRequest,
)

UTC = ZoneInfo("UTC")

Listener = Callable[["BookingStoreState"], None]


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class OperationError:
    code: str
    message: str
    retryable: bool

    @staticmethod
    def from_exception(error: Exception, fallback: str) -> "OperationError":
        if isinstance(error, RequestFailedError):
            return OperationError(code=error.code, message=error.message or fallback, retryable=error.retryable)
        if isinstance(error, BookingError):
            return OperationError(code=error.code, message=error.user_message, retryable=error.retryable)
        return OperationError(code=RequestFailedError.code, message=str(error) or fallback, retryable=True)


@dataclass(frozen=True)
class BookingStoreState:
    bookings: tuple[Booking, ...] = ()
    bookings_loading: bool = False
    bookings_error: OperationError | None = None
    has_more_bookings: bool = False
    bookings_page: int = 1

    current_booking: Booking | None = None
    current_booking_loading: bool = False
    current_booking_error: OperationError | None = None

    stats: BookingStats | None = None
    stats_loading: bool = False

    availability: tuple[AvailabilitySlot, ...] = ()
    availability_date: date | None = None
    availability_loading: bool = False
    availability_error: OperationError | None = None

    create_loading: bool = False
    create_error: OperationError | None = None

    cancel_loading: bool = False
    cancel_error: OperationError | None = None

    confirm_payment_loading: bool = False
    confirm_payment_error: OperationError | None = None

    status_filter: BookingStatus | None = None


class BookingStore:
    """Client-side cache of the actor's bookings.

    All mutation goes through the actions below. Each action picks the live or
    simulated gateway when it starts, so flipping the mode is visible on the
    next call. Gateway errors are stored in the operation's error field rather
    than raised.
    """

    def __init__(
        self,
        live: BookingGatewayPort,
        simulated: BookingGatewayPort,
        is_simulated: Callable[[], bool],
        actor: Callable[[], ActorContext],
        clock: Callable[[], datetime] = _utc_now,
        page_size: int | None = None,
        timezone: ZoneInfo | None = None,
    ) -> None:
        self._live = live
        self._simulated = simulated
        self._is_simulated = is_simulated
        self._actor = actor
        self._clock = clock
        self._page_size = page_size or settings.BOOKINGS_PAGE_SIZE
        self._timezone = timezone or ZoneInfo(settings.BUSINESS_TIMEZONE)
        self._state = BookingStoreState()
        self._listeners: list[Listener] = []
        # Latest issued request per operation; older completions are dropped.
        self._sequences: dict[str, int] = defaultdict(int)
        self._logger = logging.getLogger(__name__)

    @property
    def state(self) -> BookingStoreState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def fetch_bookings(self, refresh: bool = False) -> None:
        state = self._state
        if state.bookings_loading:
            return
        if not refresh and state.bookings_page > 1 and not state.has_more_bookings:
            return

        page = 1 if refresh else state.bookings_page
        gateway = self._gateway()
        seq = self._issue("list")
        self._set(bookings_loading=True, bookings_error=None)

        try:
            result = await gateway.list_bookings(
                self._actor(),
                status=state.status_filter,
                page=page,
                limit=self._page_size,
            )
        except Exception as e:
            if self._is_latest("list", seq):
                self._set(bookings_loading=False, bookings_error=self._error(e, "Failed to fetch bookings"))
            return

        if not self._is_latest("list", seq):
            self._logger.debug("Discarding stale bookings page", extra={"page": page})
            return

        if refresh:
            bookings = tuple(result.bookings)
        else:
            seen = {b.id for b in self._state.bookings}
            bookings = self._state.bookings + tuple(b for b in result.bookings if b.id not in seen)

        self._set(
            bookings=bookings,
            has_more_bookings=result.has_more,
            bookings_page=page + 1,
            bookings_loading=False,
        )

    async def fetch_booking(self, booking_id: str) -> Booking | None:
        gateway = self._gateway()
        seq = self._issue("detail")
        self._set(current_booking_loading=True, current_booking_error=None)

        try:
            booking = await gateway.get_booking(self._actor(), booking_id)
        except Exception as e:
            if self._is_latest("detail", seq):
                # A missing booking is reported, never evicted from the list.
                self._set(current_booking_loading=False, current_booking_error=self._error(e, "Failed to fetch booking"))
            return None

        if self._is_latest("detail", seq):
            self._set(
                bookings=self._replaced(self._state.bookings, booking),
                current_booking=booking,
                current_booking_loading=False,
            )
        return booking

    async def fetch_stats(self) -> None:
        if self._state.stats_loading:
            return

        gateway = self._gateway()
        seq = self._issue("stats")
        self._set(stats_loading=True)

        try:
            stats = await gateway.get_stats(self._actor())
        except Exception as e:
            # Stats are supplementary: keep the last known value.
            self._logger.warning("Failed to fetch booking stats", extra={"error": str(e)})
            if self._is_latest("stats", seq):
                self._set(stats_loading=False)
            return

        if self._is_latest("stats", seq):
            self._set(stats=stats, stats_loading=False)

    async def fetch_availability(self, stylist_id: str, day: date, duration_minutes: int) -> None:
        """Load slots for ``day``.

        Only a retryable transport or server failure of the live API falls back
        to generated candidates. Any other error leaves ``availability`` empty
        and is stored in ``availability_error``.
        """
        seq = self._issue("availability")
        if duration_minutes <= 0:
            self._set(
                availability=(),
                availability_date=day,
                availability_loading=False,
                availability_error=OperationError(
                    code="VALIDATION_ERROR", message="Duration must be positive", retryable=False
                ),
            )
            return

        simulated = self._is_simulated()
        gateway = self._simulated if simulated else self._live
        self._set(availability=(), availability_date=day, availability_loading=True, availability_error=None)

        try:
            slots = await gateway.get_availability(self._actor(), stylist_id, day, duration_minutes)
        except Exception as e:
            if not self._is_latest("availability", seq):
                return
            if simulated or not isinstance(e, RequestFailedError) or not e.retryable:
                self._set(availability_loading=False, availability_error=self._error(e, "Failed to fetch availability"))
                return
            self._logger.warning(
                "Failed to fetch availability, using generated slots",
                extra={"stylist_id": stylist_id, "error": str(e)},
            )
            slots = self._candidate_slots(day, duration_minutes)

        if self._is_latest("availability", seq):
            self._set(availability=tuple(slots), availability_loading=False)

    async def create_booking(self, request: CreateBookingRequest) -> Booking | None:
        if self._state.create_loading:
            self._logger.warning("Create already in flight, ignoring", extra={"stylist_id": request.stylist_id})
            return None

        gateway = self._gateway()
        seq = self._issue("create")
        self._set(create_loading=True, create_error=None)

        try:
            booking = await gateway.create_booking(self._actor(), request)
        except Exception as e:
            if self._is_latest("create", seq):
                self._set(create_loading=False, create_error=self._error(e, "Failed to create booking"))
            return None

        if not self._is_latest("create", seq):
            return booking

        others = tuple(b for b in self._state.bookings if b.id != booking.id)
        self._set(bookings=(booking,) + others, current_booking=booking, create_loading=False)
        return booking

    async def cancel_booking(self, booking_id: str, reason: str | None = None) -> bool:
        if self._state.cancel_loading:
            self._logger.warning("Cancel already in flight, ignoring", extra={"booking_id": booking_id})
            return False

        self._set(cancel_loading=True, cancel_error=None)

        cached = self._cached(booking_id)
        if cached is not None and not can_cancel_booking(cached, self._clock()):
            self._logger.info(
                "Refusing to cancel booking", extra={"booking_id": booking_id, "status": cached.status.value}
            )
            self._set(cancel_loading=False, cancel_error=self._error(CannotCancelError(), "Failed to cancel booking"))
            return False

        gateway = self._gateway()
        seq = self._issue("cancel")
        try:
            booking = await gateway.cancel_booking(self._actor(), booking_id, reason)
        except Exception as e:
            if self._is_latest("cancel", seq):
                self._set(cancel_loading=False, cancel_error=self._error(e, "Failed to cancel booking"))
            return False

        if self._is_latest("cancel", seq):
            self._merge(booking, cancel_loading=False)
        return True

    async def confirm_payment(
        self,
        booking_id: str,
        escrow_tx_hash: str,
        skip_on_chain_verification: bool = False,
    ) -> bool:
        if self._state.confirm_payment_loading:
            self._logger.warning("Payment confirmation already in flight, ignoring", extra={"booking_id": booking_id})
            return False

        gateway = self._gateway()
        seq = self._issue("confirm_payment")
        self._set(confirm_payment_loading=True, confirm_payment_error=None)

        try:
            confirmation = await gateway.confirm_payment(
                self._actor(),
                booking_id,
                escrow_tx_hash,
                skip_on_chain_verification=skip_on_chain_verification,
            )
        except Exception as e:
            if self._is_latest("confirm_payment", seq):
                self._set(confirm_payment_loading=False, confirm_payment_error=self._error(e, "Failed to confirm payment"))
            return False

        if self._is_latest("confirm_payment", seq):
            self._merge(confirmation.booking, confirm_payment_loading=False)
        return True

    async def set_status_filter(self, status: BookingStatus | None) -> None:
        # Invalidate any list fetch still running under the old filter.
        self._issue("list")
        self._set(
            status_filter=status,
            bookings=(),
            bookings_page=1,
            has_more_bookings=False,
            bookings_loading=False,
            bookings_error=None,
        )
        await self.fetch_bookings(refresh=True)

    def clear_errors(self) -> None:
        self._set(
            bookings_error=None,
            current_booking_error=None,
            availability_error=None,
            create_error=None,
            cancel_error=None,
            confirm_payment_error=None,
        )

    def reset(self) -> None:
        for operation in list(self._sequences):
            self._sequences[operation] += 1
        self._state = BookingStoreState()
        self._notify()

    def upcoming_bookings(self, now: datetime | None = None) -> list[Booking]:
        now = now or self._clock()
        return [
            b
            for b in self._state.bookings
            if b.status in (BookingStatus.CONFIRMED, BookingStatus.PENDING_PAYMENT) and b.scheduled_start >= now
        ]

    def past_bookings(self, now: datetime | None = None) -> list[Booking]:
        now = now or self._clock()
        return [b for b in self._state.bookings if b.status == BookingStatus.COMPLETED or b.scheduled_start < now]

    def next_booking(self, now: datetime | None = None) -> Booking | None:
        now = now or self._clock()
        confirmed = [b for b in self._state.bookings if b.status == BookingStatus.CONFIRMED and b.scheduled_start >= now]
        return min(confirmed, key=lambda b: b.scheduled_start, default=None)

    def _gateway(self) -> BookingGatewayPort:
        return self._simulated if self._is_simulated() else self._live

    def _candidate_slots(self, day: date, duration_minutes: int) -> list[AvailabilitySlot]:
        return generate_time_slots(
            day,
            duration_minutes,
            self._clock(),
            timezone=self._timezone,
            open_time=time(settings.OPENING_HOUR),
            close_time=time(settings.CLOSING_HOUR),
            step_minutes=settings.SLOT_STEP_MINUTES,
        )

    def _issue(self, operation: str) -> int:
        self._sequences[operation] += 1
        return self._sequences[operation]

    def _is_latest(self, operation: str, seq: int) -> bool:
        return self._sequences[operation] == seq

    def _cached(self, booking_id: str) -> Booking | None:
        for booking in self._state.bookings:
            if booking.id == booking_id:
                return booking
        current = self._state.current_booking
        return current if current is not None and current.id == booking_id else None

    def _merge(self, booking: Booking, **changes: object) -> None:
        current = self._state.current_booking
        self._set(
            bookings=self._replaced(self._state.bookings, booking),
            current_booking=booking if current is not None and current.id == booking.id else current,
            **changes,
        )

    @staticmethod
    def _replaced(bookings: tuple[Booking, ...], booking: Booking) -> tuple[Booking, ...]:
        return tuple(booking if b.id == booking.id else b for b in bookings)

    def _error(self, error: Exception, fallback: str) -> OperationError:
        if isinstance(error, BookingError):
            self._logger.warning(fallback, extra={"code": error.code, "error": error.message})
        else:
            self._logger.exception(fallback)
        return OperationError.from_exception(error, fallback)

    def _set(self, **changes: object) -> None:
        self._state = replace(self._state, **changes)
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                self._logger.exception("Booking store listener failed")
