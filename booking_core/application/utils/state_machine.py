from __future__ import annotations

from datetime import datetime

from booking_core.application.exceptions import InvalidTransitionError
from booking_core.domain.entities.booking import Booking, BookingStatus

VALID_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING_PAYMENT: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED}),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.DISPUTED: frozenset(),
}

CANCELLABLE_STATUSES = frozenset({BookingStatus.PENDING_PAYMENT, BookingStatus.CONFIRMED})

STATUS_LABELS = {
    BookingStatus.PENDING_PAYMENT: "Pending Payment",
    BookingStatus.CONFIRMED: "Confirmed",
    BookingStatus.IN_PROGRESS: "In Progress",
    BookingStatus.COMPLETED: "Completed",
    BookingStatus.CANCELLED: "Cancelled",
    BookingStatus.DISPUTED: "Disputed",
}


def can_transition_to(current: BookingStatus, target: BookingStatus) -> bool:
    return target in VALID_TRANSITIONS.get(current, frozenset())


def validate_transition(current: BookingStatus, target: BookingStatus) -> None:
    if not can_transition_to(current, target):
        raise InvalidTransitionError(f"Cannot transition booking from {current.value} to {target.value}")


def is_terminal(status: BookingStatus) -> bool:
    return not VALID_TRANSITIONS.get(status)


def valid_next_states(status: BookingStatus) -> list[BookingStatus]:
    # Declaration order keeps the result stable for display.
    return [s for s in BookingStatus if s in VALID_TRANSITIONS.get(status, frozenset())]


def can_cancel_booking(booking: Booking, now: datetime) -> bool:
    """True if the booking may still be cancelled at ``now``.

    Only unstarted bookings awaiting payment or confirmed qualify. ``now`` must
    be supplied by the caller on every check since the answer changes over time.
    """
    if booking.status not in CANCELLABLE_STATUSES:
        return False
    return booking.scheduled_start > now


def status_label(status: BookingStatus) -> str:
    return STATUS_LABELS.get(status, status.value)
