"""Shared fixtures for booking core tests.

Everything runs against a fixed clock so fixture bookings land on known dates:
10 March 2026, 09:00 UTC (11:00 in Johannesburg).
"""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import httpx
import pytest
import pytest_asyncio

from booking_core.api.v1.bookings import get_gateway
from booking_core.domain.entities.actor import ActorContext
from booking_core.domain.entities.booking import Booking, BookingStatus, LocationType
from booking_core.infrastructure.api.api_client import ApiClient
from booking_core.infrastructure.api.http_gateway import HttpBookingGateway
from booking_core.infrastructure.simulated.fixtures import FIXTURE_SERVICES, FIXTURE_STYLISTS
from booking_core.infrastructure.simulated.simulated_gateway import SimulatedBookingGateway
from booking_core.main import app

NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)
SAST = ZoneInfo("Africa/Johannesburg")


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def customer() -> ActorContext:
    return ActorContext(user_id="customer-1", access_token="customer-1")


@pytest.fixture
def gateway() -> SimulatedBookingGateway:
    """Simulated gateway seeded with the demo fixtures, no latency."""
    return SimulatedBookingGateway(clock=lambda: NOW, latency_seconds=0, timezone=SAST)


@pytest.fixture
def make_booking():
    def _make(
        booking_id: str = "b-1",
        status: BookingStatus = BookingStatus.CONFIRMED,
        start: datetime = NOW + timedelta(days=2),
        stylist_id: str = "mock-stylist-2",
        service_id: str = "svc-7",
    ) -> Booking:
        service = FIXTURE_SERVICES[service_id]
        return Booking(
            id=booking_id,
            status=status,
            stylist=FIXTURE_STYLISTS[stylist_id],
            service=service,
            scheduled_start=start,
            location_type=LocationType.STYLIST_BASE,
            location_address="1 Test Street",
            total_amount_cents=service.price_cents,
            platform_fee_cents=service.price_cents // 10,
            created_at=NOW - timedelta(days=1),
        )

    return _make


@pytest_asyncio.fixture
async def api_gateway(gateway):
    """HTTP gateway talking to the development server in-process."""
    app.dependency_overrides[get_gateway] = lambda: gateway
    client = ApiClient(base_url="http://test/api/v1", transport=httpx.ASGITransport(app=app))
    yield HttpBookingGateway(client)
    await client.aclose()
    app.dependency_overrides.clear()
