from __future__ import annotations

import logging
from datetime import date

from pydantic import ValidationError

from booking_core.api.v1.schemas import (
    AvailabilitySchema,
    BookingPageSchema,
    BookingSchema,
    CancelBookingSchema,
    ConfirmPaymentResponseSchema,
    ConfirmPaymentSchema,
    CreateBookingSchema,
    StatsResponseSchema,
    UpdateStatusSchema,
)
from booking_core.application.exceptions import RequestFailedError
from booking_core.application.ports.booking_gateway import DEFAULT_CANCEL_REASON, BookingGatewayPort
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
from booking_core.infrastructure.api.api_client import ApiClient


class HttpBookingGateway(BookingGatewayPort):
    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    async def create_booking(self, actor: ActorContext, request: CreateBookingRequest) -> Booking:
        payload = CreateBookingSchema.from_entity(request).model_dump(mode="json", by_alias=True, exclude_none=True)
        data = await self._client.request("POST", "/bookings", actor, json=payload)
        booking = self._parse(BookingSchema, data).to_entity()
        self._logger.info("Booking created", extra={"booking_id": booking.id, "status": booking.status.value})
        return booking

    async def list_bookings(
        self,
        actor: ActorContext,
        status: BookingStatus | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> BookingPage:
        params = {"status": status.value if status else None, "page": page, "limit": limit}
        data = await self._client.request("GET", "/bookings", actor, params=params)
        return self._parse(BookingPageSchema, data).to_entity()

    async def get_booking(self, actor: ActorContext, booking_id: str) -> Booking:
        data = await self._client.request("GET", f"/bookings/{booking_id}", actor)
        return self._parse(BookingSchema, data).to_entity()

    async def update_status(
        self,
        actor: ActorContext,
        booking_id: str,
        status: BookingStatus,
        escrow_tx_hash: str | None = None,
    ) -> Booking:
        payload = UpdateStatusSchema(status=status, escrow_tx_hash=escrow_tx_hash).model_dump(
            mode="json", by_alias=True, exclude_none=True
        )
        data = await self._client.request("PATCH", f"/bookings/{booking_id}/status", actor, json=payload)
        return self._parse(BookingSchema, data).to_entity()

    async def cancel_booking(self, actor: ActorContext, booking_id: str, reason: str | None = None) -> Booking:
        payload = CancelBookingSchema(reason=reason or DEFAULT_CANCEL_REASON).model_dump(mode="json", by_alias=True)
        data = await self._client.request("POST", f"/bookings/{booking_id}/cancel", actor, json=payload)
        booking = self._parse(BookingSchema, data).to_entity()
        self._logger.info("Booking cancelled", extra={"booking_id": booking.id, "status": booking.status.value})
        return booking

    async def confirm_payment(
        self,
        actor: ActorContext,
        booking_id: str,
        escrow_tx_hash: str,
        skip_on_chain_verification: bool = False,
    ) -> PaymentConfirmation:
        payload = ConfirmPaymentSchema(
            escrow_tx_hash=escrow_tx_hash,
            skip_on_chain_verification=skip_on_chain_verification,
        ).model_dump(mode="json", by_alias=True)
        data = await self._client.request("POST", f"/bookings/{booking_id}/confirm-payment", actor, json=payload)
        return self._parse(ConfirmPaymentResponseSchema, data).to_entity()

    async def get_stats(self, actor: ActorContext) -> BookingStats:
        data = await self._client.request("GET", "/bookings/stats", actor)
        return self._parse(StatsResponseSchema, data).stats.to_entity()

    async def get_availability(
        self,
        actor: ActorContext,
        stylist_id: str,
        day: date,
        duration_minutes: int,
    ) -> list[AvailabilitySlot]:
        params = {"date": day.isoformat(), "duration": duration_minutes}
        data = await self._client.request("GET", f"/stylists/{stylist_id}/availability", actor, params=params)
        return self._parse(AvailabilitySchema, data).to_entity()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _parse(self, schema, data):
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            self._logger.error("Unexpected bookings API payload", extra={"error": str(e)})
            raise RequestFailedError(f"Malformed {schema.__name__} payload") from e
