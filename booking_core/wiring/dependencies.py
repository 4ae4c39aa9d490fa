from functools import lru_cache
import logging
from typing import Callable
from zoneinfo import ZoneInfo

from booking_core.application.ports.booking_gateway import BookingGatewayPort
from booking_core.application.use_cases.booking_store import BookingStore
from booking_core.core.config import settings
from booking_core.core.mode import SimulatedMode
from booking_core.domain.entities.actor import ActorContext
from booking_core.infrastructure.api.api_client import ApiClient
from booking_core.infrastructure.api.http_gateway import HttpBookingGateway
from booking_core.infrastructure.simulated.simulated_gateway import SimulatedBookingGateway


@lru_cache
def get_simulated_mode() -> SimulatedMode:
    return SimulatedMode()


@lru_cache
def get_simulated_gateway() -> SimulatedBookingGateway:
    return SimulatedBookingGateway()


@lru_cache
def get_live_gateway() -> HttpBookingGateway:
    return HttpBookingGateway(client=ApiClient())


async def close_live_gateway() -> None:
    if get_live_gateway.cache_info().currsize:
        await get_live_gateway().aclose()
        get_live_gateway.cache_clear()


def build_booking_store(
    actor: Callable[[], ActorContext],
    live: BookingGatewayPort | None = None,
    simulated: BookingGatewayPort | None = None,
    mode: SimulatedMode | None = None,
) -> BookingStore:
    mode = mode or get_simulated_mode()
    logger = logging.getLogger(__name__)
    logger.info("Building booking store", extra={"mode": "simulated" if mode.is_enabled() else "live"})

    return BookingStore(
        live=live or get_live_gateway(),
        simulated=simulated or get_simulated_gateway(),
        is_simulated=mode.is_enabled,
        actor=actor,
        page_size=settings.BOOKINGS_PAGE_SIZE,
        timezone=ZoneInfo(settings.BUSINESS_TIMEZONE),
    )
