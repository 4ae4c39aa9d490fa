from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Header, Query

from booking_core.api.v1.schemas import (
    AvailabilitySchema,
    AvailabilitySlotSchema,
    BookingPageSchema,
    BookingSchema,
    BookingStatsSchema,
    CancelBookingSchema,
    ConfirmPaymentResponseSchema,
    ConfirmPaymentSchema,
    CreateBookingSchema,
    StatsResponseSchema,
    UpdateStatusSchema,
)
from booking_core.application.exceptions import RequestFailedError
from booking_core.application.ports.booking_gateway import BookingGatewayPort
from booking_core.domain.entities.actor import ActorContext
from booking_core.domain.entities.booking import BookingStatus
from booking_core.wiring.dependencies import get_simulated_gateway

router = APIRouter()


def get_gateway() -> BookingGatewayPort:
    return get_simulated_gateway()


def get_actor(authorization: str | None = Header(None)) -> ActorContext:
    # The development server trusts the bearer token as the user id.
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise RequestFailedError("Not authenticated", 401, "UNAUTHENTICATED")
    return ActorContext(user_id=token.strip(), access_token=token.strip())


@router.post("/bookings", response_model=BookingSchema, status_code=201)
async def create_booking(
    req: CreateBookingSchema,
    actor: ActorContext = Depends(get_actor),
    gateway: BookingGatewayPort = Depends(get_gateway),
):
    booking = await gateway.create_booking(actor, req.to_entity())
    return BookingSchema.from_entity(booking)


@router.get("/bookings", response_model=BookingPageSchema)
async def list_bookings(
    status: BookingStatus | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor: ActorContext = Depends(get_actor),
    gateway: BookingGatewayPort = Depends(get_gateway),
):
    result = await gateway.list_bookings(actor, status=status, page=page, limit=limit)
    return BookingPageSchema.from_entity(result)


@router.get("/bookings/stats", response_model=StatsResponseSchema)
async def booking_stats(
    actor: ActorContext = Depends(get_actor),
    gateway: BookingGatewayPort = Depends(get_gateway),
):
    stats = await gateway.get_stats(actor)
    return StatsResponseSchema(stats=BookingStatsSchema.from_entity(stats))


@router.get("/bookings/{booking_id}", response_model=BookingSchema)
async def get_booking(
    booking_id: str,
    actor: ActorContext = Depends(get_actor),
    gateway: BookingGatewayPort = Depends(get_gateway),
):
    return BookingSchema.from_entity(await gateway.get_booking(actor, booking_id))


@router.patch("/bookings/{booking_id}/status", response_model=BookingSchema)
async def update_booking_status(
    booking_id: str,
    req: UpdateStatusSchema,
    actor: ActorContext = Depends(get_actor),
    gateway: BookingGatewayPort = Depends(get_gateway),
):
    booking = await gateway.update_status(actor, booking_id, req.status, req.escrow_tx_hash)
    return BookingSchema.from_entity(booking)


@router.post("/bookings/{booking_id}/confirm-payment", response_model=ConfirmPaymentResponseSchema)
async def confirm_payment(
    booking_id: str,
    req: ConfirmPaymentSchema,
    actor: ActorContext = Depends(get_actor),
    gateway: BookingGatewayPort = Depends(get_gateway),
):
    confirmation = await gateway.confirm_payment(
        actor,
        booking_id,
        req.escrow_tx_hash,
        skip_on_chain_verification=req.skip_on_chain_verification,
    )
    return ConfirmPaymentResponseSchema.from_entity(confirmation)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingSchema)
async def cancel_booking(
    booking_id: str,
    req: CancelBookingSchema | None = None,
    actor: ActorContext = Depends(get_actor),
    gateway: BookingGatewayPort = Depends(get_gateway),
):
    reason = req.reason if req else None
    return BookingSchema.from_entity(await gateway.cancel_booking(actor, booking_id, reason))


@router.get("/stylists/{stylist_id}/availability", response_model=AvailabilitySchema)
async def stylist_availability(
    stylist_id: str,
    day: date = Query(..., alias="date"),
    duration: int = Query(60, ge=1, le=720),
    actor: ActorContext = Depends(get_actor),
    gateway: BookingGatewayPort = Depends(get_gateway),
):
    slots = await gateway.get_availability(actor, stylist_id, day, duration)
    return AvailabilitySchema(
        day=day,
        slots=[AvailabilitySlotSchema(start_time=s.start_time, available=s.available) for s in slots],
    )
