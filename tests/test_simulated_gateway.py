"""
Tests for the in-memory booking gateway used in simulated mode.
"""

from datetime import date, timedelta

import pytest

from booking_core.application.exceptions import (
    BookingNotFoundError,
    CannotCancelError,
    EscrowMismatchError,
    EscrowNotFoundError,
    InvalidTransitionError,
    ProviderUnavailableError,
    ServiceNotFoundError,
    SlotUnavailableError,
)
from booking_core.domain.entities.actor import ActorContext
from booking_core.domain.entities.booking import BookingStatus, CreateBookingRequest, LocationType
from booking_core.infrastructure.simulated.simulated_gateway import SimulatedBookingGateway


def _request(start, stylist_id="mock-stylist-2", service_id="svc-7", location_type=LocationType.STYLIST_BASE):
    return CreateBookingRequest(
        stylist_id=stylist_id,
        service_id=service_id,
        scheduled_start=start,
        location_type=location_type,
        location_address="1 Test Street",
    )


@pytest.mark.asyncio
async def test_create_booking_starts_pending_and_is_listed_first(gateway, customer, now):
    booking = await gateway.create_booking(customer, _request(now + timedelta(days=2)))

    assert booking.status == BookingStatus.PENDING_PAYMENT
    assert booking.id.startswith("sim-booking-")
    assert booking.total_amount_cents == 15000
    assert booking.platform_fee_cents == 1500
    assert booking.created_at == now

    page = await gateway.list_bookings(customer)
    assert page.bookings[0].id == booking.id
    assert page.total == 6


@pytest.mark.asyncio
async def test_home_visit_adds_travel_fee(gateway, customer, now):
    booking = await gateway.create_booking(
        customer, _request(now + timedelta(days=2), location_type=LocationType.CUSTOMER_HOME)
    )

    assert booking.total_amount_cents == 20000
    assert booking.platform_fee_cents == 1500


@pytest.mark.asyncio
async def test_created_booking_visible_to_creator_and_stylist_only(gateway, customer, now):
    booking = await gateway.create_booking(customer, _request(now + timedelta(days=2)))

    stylist = ActorContext(user_id="mock-stylist-2", access_token="t")
    stranger = ActorContext(user_id="someone-else", access_token="t")

    assert (await gateway.get_booking(stylist, booking.id)).id == booking.id
    with pytest.raises(BookingNotFoundError):
        await gateway.get_booking(stranger, booking.id)
    assert booking.id not in [b.id for b in (await gateway.list_bookings(stranger)).bookings]


@pytest.mark.asyncio
async def test_overlapping_booking_rejected(gateway, customer, now):
    """mock-booking-1 holds mock-stylist-1 from tomorrow 09:00 UTC for three hours."""
    with pytest.raises(SlotUnavailableError) as exc_info:
        await gateway.create_booking(
            customer, _request(now + timedelta(days=1, hours=1), stylist_id="mock-stylist-1")
        )

    assert exc_info.value.retryable is True
    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_back_to_back_booking_allowed(gateway, customer, now):
    booking = await gateway.create_booking(
        customer, _request(now + timedelta(days=1, hours=3), stylist_id="mock-stylist-1")
    )

    assert booking.status == BookingStatus.PENDING_PAYMENT


@pytest.mark.asyncio
async def test_cancelled_bookings_free_the_slot(gateway, customer, now):
    start = now + timedelta(days=2)
    first = await gateway.create_booking(customer, _request(start))
    await gateway.cancel_booking(customer, first.id)

    second = await gateway.create_booking(customer, _request(start))
    assert second.id != first.id


@pytest.mark.asyncio
async def test_past_start_rejected(gateway, customer, now):
    with pytest.raises(SlotUnavailableError) as exc_info:
        await gateway.create_booking(customer, _request(now - timedelta(minutes=5)))

    assert exc_info.value.message == "Cannot book a time in the past"


@pytest.mark.asyncio
async def test_unknown_service_rejected(gateway, customer, now):
    with pytest.raises(ServiceNotFoundError):
        await gateway.create_booking(customer, _request(now + timedelta(days=2), service_id="svc-404"))


@pytest.mark.asyncio
@pytest.mark.parametrize("stylist_id", ["mock-stylist-404", "mock-stylist-7"])
async def test_unknown_or_unavailable_stylist_rejected(gateway, customer, now, stylist_id):
    with pytest.raises(ProviderUnavailableError):
        await gateway.create_booking(customer, _request(now + timedelta(days=2), stylist_id=stylist_id))


@pytest.mark.asyncio
async def test_list_pagination_and_filter(gateway, customer):
    second = await gateway.list_bookings(customer, page=2, limit=2)
    assert [b.id for b in second.bookings] == ["mock-booking-3", "mock-booking-4"]
    assert second.has_more is True

    last = await gateway.list_bookings(customer, page=3, limit=2)
    assert [b.id for b in last.bookings] == ["mock-booking-5"]
    assert last.has_more is False

    completed = await gateway.list_bookings(customer, status=BookingStatus.COMPLETED)
    assert {b.id for b in completed.bookings} == {"mock-booking-3", "mock-booking-5"}

    assert (await gateway.list_bookings(customer, status=BookingStatus.DISPUTED)).bookings == []


@pytest.mark.asyncio
async def test_get_missing_booking(gateway, customer):
    with pytest.raises(BookingNotFoundError):
        await gateway.get_booking(customer, "nope")


@pytest.mark.asyncio
async def test_cancel_sets_timestamp(gateway, customer, now):
    cancelled = await gateway.cancel_booking(customer, "mock-booking-2", "changed plans")

    assert cancelled.status == BookingStatus.CANCELLED
    assert cancelled.cancelled_at == now
    assert (await gateway.get_booking(customer, "mock-booking-2")).status == BookingStatus.CANCELLED


@pytest.mark.asyncio
@pytest.mark.parametrize("booking_id", ["mock-booking-3", "mock-booking-4"])
async def test_cancel_terminal_booking_rejected(gateway, customer, booking_id):
    with pytest.raises(CannotCancelError):
        await gateway.cancel_booking(customer, booking_id)


@pytest.mark.asyncio
async def test_cancel_started_booking_rejected(customer, now, make_booking):
    gateway = SimulatedBookingGateway(
        bookings=[make_booking(status=BookingStatus.CONFIRMED, start=now - timedelta(minutes=10))],
        clock=lambda: now,
        latency_seconds=0,
    )

    with pytest.raises(CannotCancelError):
        await gateway.cancel_booking(customer, "b-1")


@pytest.mark.asyncio
async def test_status_walks_through_lifecycle(gateway, customer, now):
    in_progress = await gateway.update_status(customer, "mock-booking-1", BookingStatus.IN_PROGRESS)
    assert in_progress.status == BookingStatus.IN_PROGRESS

    completed = await gateway.update_status(customer, "mock-booking-1", BookingStatus.COMPLETED)
    assert completed.status == BookingStatus.COMPLETED
    assert completed.completed_at == now


@pytest.mark.asyncio
async def test_invalid_status_change_rejected(gateway, customer):
    with pytest.raises(InvalidTransitionError):
        await gateway.update_status(customer, "mock-booking-2", BookingStatus.COMPLETED)


@pytest.mark.asyncio
async def test_confirm_payment_verifies_escrow(gateway, customer):
    gateway.register_escrow("0xfeed", 15000)

    confirmation = await gateway.confirm_payment(customer, "mock-booking-2", "0xfeed")

    assert confirmation.booking.status == BookingStatus.CONFIRMED
    assert confirmation.booking.escrow_tx_hash == "0xfeed"
    assert confirmation.escrow.amount_cents == 15000
    assert confirmation.message == "Payment confirmed"


@pytest.mark.asyncio
async def test_confirm_payment_unknown_escrow(gateway, customer):
    with pytest.raises(EscrowNotFoundError):
        await gateway.confirm_payment(customer, "mock-booking-2", "0xmissing")


@pytest.mark.asyncio
async def test_confirm_payment_amount_mismatch(gateway, customer):
    gateway.register_escrow("0xshort", 14999)

    with pytest.raises(EscrowMismatchError):
        await gateway.confirm_payment(customer, "mock-booking-2", "0xshort")

    assert (await gateway.get_booking(customer, "mock-booking-2")).status == BookingStatus.PENDING_PAYMENT


@pytest.mark.asyncio
async def test_confirm_payment_skipping_verification(gateway, customer):
    confirmation = await gateway.confirm_payment(
        customer, "mock-booking-2", "0xunverified", skip_on_chain_verification=True
    )

    assert confirmation.booking.status == BookingStatus.CONFIRMED
    assert confirmation.escrow is None
    assert confirmation.message == "Payment confirmed (verification skipped)"


@pytest.mark.asyncio
async def test_confirm_payment_twice_rejected(gateway, customer):
    with pytest.raises(InvalidTransitionError):
        await gateway.confirm_payment(customer, "mock-booking-1", "0x1234567890abcdef")


@pytest.mark.asyncio
async def test_customer_stats(gateway, customer):
    stats = await gateway.get_stats(customer)

    assert stats.as_customer.total == 5
    assert stats.as_customer.this_month == 4
    assert stats.as_customer.completed == 2
    assert stats.as_customer.cancelled == 1
    assert stats.as_customer.total_spent_cents == 40000 + 25000 + 30000
    assert stats.as_stylist.total == 0
    assert stats.combined.total == 5
    assert stats.combined.completed == 2


@pytest.mark.asyncio
async def test_stylist_stats(gateway):
    stylist = ActorContext(user_id="mock-stylist-3", access_token="t")

    stats = await gateway.get_stats(stylist)

    assert stats.as_stylist.total == 1
    assert stats.as_stylist.completed == 1
    assert stats.as_stylist.gross_earned_cents == 25000
    assert stats.as_stylist.net_earned_cents == 22500
    assert stats.as_customer.total == 4


@pytest.mark.asyncio
async def test_availability_marks_busy_slots(gateway, customer):
    """mock-booking-1 runs 11:00-14:00 Johannesburg time tomorrow."""
    slots = await gateway.get_availability(customer, "mock-stylist-1", date(2026, 3, 11), 60)
    by_time = {s.start_time: s.available for s in slots}

    assert by_time["10:00"] is True
    assert by_time["10:30"] is False
    assert by_time["13:30"] is False
    assert by_time["14:00"] is True


@pytest.mark.asyncio
async def test_availability_for_unavailable_stylist(gateway, customer):
    slots = await gateway.get_availability(customer, "mock-stylist-7", date(2026, 3, 11), 60)

    assert slots
    assert not any(s.available for s in slots)


@pytest.mark.asyncio
async def test_availability_for_unknown_stylist(gateway, customer):
    with pytest.raises(ProviderUnavailableError):
        await gateway.get_availability(customer, "mock-stylist-404", date(2026, 3, 11), 60)
