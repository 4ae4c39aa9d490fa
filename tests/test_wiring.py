"""
Tests for dependency wiring.
"""

import pytest

from booking_core.core.mode import SimulatedMode
from booking_core.domain.entities.actor import ActorContext
from booking_core.wiring.dependencies import build_booking_store, close_live_gateway, get_live_gateway


@pytest.mark.asyncio
async def test_live_gateway_is_shared_until_closed():
    first = get_live_gateway()
    assert get_live_gateway() is first

    await close_live_gateway()

    assert get_live_gateway.cache_info().currsize == 0
    assert get_live_gateway() is not first
    await close_live_gateway()


@pytest.mark.asyncio
async def test_close_without_live_gateway_is_a_no_op():
    await close_live_gateway()
    await close_live_gateway()

    assert get_live_gateway.cache_info().currsize == 0


@pytest.mark.asyncio
async def test_stores_share_the_live_gateway(gateway):
    actor = ActorContext(user_id="customer-1", access_token="customer-1")
    mode = SimulatedMode(enabled=True)

    first = build_booking_store(lambda: actor, simulated=gateway, mode=mode)
    second = build_booking_store(lambda: actor, simulated=gateway, mode=mode)

    assert first._live is second._live is get_live_gateway()
    await close_live_gateway()
