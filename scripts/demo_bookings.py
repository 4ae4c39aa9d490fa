#!/usr/bin/env python3
"""
Walk through the booking lifecycle against simulated data (no HTTP).

Usage:
  python3 scripts/demo_bookings.py
  python3 scripts/demo_bookings.py --stylist mock-stylist-3 --service svc-3 --days-ahead 2
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from booking_core.application.use_cases.booking_store import BookingStore
from booking_core.application.utils.money import format_amount
from booking_core.application.utils.pricing import calculate_refund, get_cancellation_policy
from booking_core.application.utils.slots import slot_start_instant
from booking_core.application.utils.state_machine import status_label
from booking_core.core.config import settings
from booking_core.core.logging import configure_logging
from booking_core.core.mode import SimulatedMode
from booking_core.domain.entities.actor import ActorContext
from booking_core.domain.entities.booking import CreateBookingRequest, LocationType
from booking_core.infrastructure.simulated.fixtures import FIXTURE_SERVICES
from booking_core.infrastructure.simulated.simulated_gateway import SimulatedBookingGateway
from booking_core.wiring.dependencies import build_booking_store, close_live_gateway


def _print_bookings(title: str, bookings) -> None:
    print(f"\n--- {title} ---")
    for b in bookings:
        print(
            f"{b.id:<16} {status_label(b.status):<16} {b.service.name:<20} "
            f"{b.scheduled_start.isoformat():<28} {format_amount(b.total_amount_cents)}"
        )


async def run(args: argparse.Namespace) -> int:
    actor = ActorContext(user_id=args.user, access_token=None)
    store = build_booking_store(
        actor=lambda: actor,
        simulated=SimulatedBookingGateway(latency_seconds=0),
        mode=SimulatedMode(enabled=True),
    )
    try:
        return await walkthrough(store, args)
    finally:
        await close_live_gateway()


async def walkthrough(store: BookingStore, args: argparse.Namespace) -> int:
    tz = ZoneInfo(settings.BUSINESS_TIMEZONE)

    await store.fetch_bookings(refresh=True)
    _print_bookings("Bookings", store.state.bookings)

    service = FIXTURE_SERVICES.get(args.service)
    if service is None:
        print(f"Unknown service: {args.service}")
        return 1

    day = (datetime.now(tz) + timedelta(days=args.days_ahead)).date()
    await store.fetch_availability(args.stylist, day, service.estimated_duration_min)
    free = [s for s in store.state.availability if s.available]
    print(f"\n--- Slots for {service.name} on {day.isoformat()} ---")
    print(", ".join(s.start_time for s in free) or "(none)")
    if not free:
        if store.state.availability_error:
            print(f"Availability failed: {store.state.availability_error.message}")
        return 1

    booking = await store.create_booking(
        CreateBookingRequest(
            stylist_id=args.stylist,
            service_id=service.id,
            scheduled_start=slot_start_instant(day, free[0].start_time, tz),
            location_type=LocationType.STYLIST_BASE,
            location_address="Demo Studio, Johannesburg",
        )
    )
    if booking is None:
        print(f"Create failed: {store.state.create_error}")
        return 1
    _print_bookings("Created", [booking])

    policy = get_cancellation_policy(booking.scheduled_start, datetime.now(tz))
    refund = calculate_refund(booking.total_amount_cents, policy.refund_percentage)
    print(f"\n{policy.message}")
    print(f"refund: {format_amount(refund.refund_amount)}  stylist keeps: {format_amount(refund.provider_fee)}")

    if await store.cancel_booking(booking.id, reason="demo"):
        _print_bookings("After cancel", store.state.bookings[:1])
    else:
        print(f"Cancel failed: {store.state.cancel_error}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Simulated booking lifecycle walkthrough")
    parser.add_argument("--user", default="demo-customer")
    parser.add_argument("--stylist", default="mock-stylist-1")
    parser.add_argument("--service", default="svc-7")
    parser.add_argument("--days-ahead", type=int, default=3)
    args = parser.parse_args()

    configure_logging(settings.LOG_LEVEL)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
