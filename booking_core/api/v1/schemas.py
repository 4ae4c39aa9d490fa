from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from booking_core.application.ports.booking_gateway import DEFAULT_CANCEL_REASON
from booking_core.application.utils.money import parse_cents
from booking_core.domain.entities.booking import (
    AvailabilitySlot,
    Booking,
    BookingPage,
    BookingStats,
    BookingStatus,
    CombinedStats,
    CreateBookingRequest,
    CustomerStats,
    EscrowSummary,
    LocationType,
    PaymentConfirmation,
    ServiceSnapshot,
    StylistStats,
    StylistSummary,
)


def _ensure_aware(value: datetime) -> datetime:
    # The API speaks UTC; a missing offset means UTC, never local time.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# Amounts travel as strings of minor units and are ints everywhere else.
Cents = Annotated[int, BeforeValidator(parse_cents), PlainSerializer(str, return_type=str, when_used="json")]
Instant = Annotated[datetime, AfterValidator(_ensure_aware)]


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StylistSchema(WireModel):
    id: str
    display_name: str
    avatar_url: str | None = None
    verification_status: str = "UNVERIFIED"


class ServiceSchema(WireModel):
    id: str
    name: str
    price_amount_cents: Cents
    estimated_duration_min: int


class BookingSchema(WireModel):
    id: str
    status: BookingStatus
    stylist: StylistSchema
    service: ServiceSchema
    scheduled_start_time: Instant
    location_type: LocationType
    location_address: str
    location_lat: float | None = None
    location_lng: float | None = None
    notes: str | None = None
    total_amount_cents: Cents
    platform_fee_cents: Cents
    escrow_tx_hash: str | None = None
    created_at: Instant
    cancelled_at: Instant | None = None
    completed_at: Instant | None = None

    def to_entity(self) -> Booking:
        return Booking(
            id=self.id,
            status=self.status,
            stylist=StylistSummary(
                id=self.stylist.id,
                display_name=self.stylist.display_name,
                avatar_url=self.stylist.avatar_url,
                verification_status=self.stylist.verification_status,
            ),
            service=ServiceSnapshot(
                id=self.service.id,
                name=self.service.name,
                price_cents=self.service.price_amount_cents,
                estimated_duration_min=self.service.estimated_duration_min,
            ),
            scheduled_start=self.scheduled_start_time,
            location_type=self.location_type,
            location_address=self.location_address,
            location_lat=self.location_lat,
            location_lng=self.location_lng,
            notes=self.notes,
            total_amount_cents=self.total_amount_cents,
            platform_fee_cents=self.platform_fee_cents,
            escrow_tx_hash=self.escrow_tx_hash,
            created_at=self.created_at,
            cancelled_at=self.cancelled_at,
            completed_at=self.completed_at,
        )

    @staticmethod
    def from_entity(booking: Booking) -> "BookingSchema":
        return BookingSchema(
            id=booking.id,
            status=booking.status,
            stylist=StylistSchema(
                id=booking.stylist.id,
                display_name=booking.stylist.display_name,
                avatar_url=booking.stylist.avatar_url,
                verification_status=booking.stylist.verification_status,
            ),
            service=ServiceSchema(
                id=booking.service.id,
                name=booking.service.name,
                price_amount_cents=booking.service.price_cents,
                estimated_duration_min=booking.service.estimated_duration_min,
            ),
            scheduled_start_time=booking.scheduled_start,
            location_type=booking.location_type,
            location_address=booking.location_address,
            location_lat=booking.location_lat,
            location_lng=booking.location_lng,
            notes=booking.notes,
            total_amount_cents=booking.total_amount_cents,
            platform_fee_cents=booking.platform_fee_cents,
            escrow_tx_hash=booking.escrow_tx_hash,
            created_at=booking.created_at,
            cancelled_at=booking.cancelled_at,
            completed_at=booking.completed_at,
        )


class BookingPageSchema(WireModel):
    bookings: list[BookingSchema] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 20
    has_more: bool = False

    def to_entity(self) -> BookingPage:
        return BookingPage(
            bookings=[b.to_entity() for b in self.bookings],
            total=self.total,
            page=self.page,
            limit=self.limit,
            has_more=self.has_more,
        )

    @staticmethod
    def from_entity(page: BookingPage) -> "BookingPageSchema":
        return BookingPageSchema(
            bookings=[BookingSchema.from_entity(b) for b in page.bookings],
            total=page.total,
            page=page.page,
            limit=page.limit,
            has_more=page.has_more,
        )


class CreateBookingSchema(WireModel):
    stylist_id: str
    service_id: str
    scheduled_start_time: Instant
    location_type: LocationType
    location_address: str
    location_lat: float | None = None
    location_lng: float | None = None
    notes: str | None = None

    def to_entity(self) -> CreateBookingRequest:
        return CreateBookingRequest(
            stylist_id=self.stylist_id,
            service_id=self.service_id,
            scheduled_start=self.scheduled_start_time,
            location_type=self.location_type,
            location_address=self.location_address,
            location_lat=self.location_lat,
            location_lng=self.location_lng,
            notes=self.notes,
        )

    @staticmethod
    def from_entity(request: CreateBookingRequest) -> "CreateBookingSchema":
        return CreateBookingSchema(
            stylist_id=request.stylist_id,
            service_id=request.service_id,
            scheduled_start_time=request.scheduled_start,
            location_type=request.location_type,
            location_address=request.location_address,
            location_lat=request.location_lat,
            location_lng=request.location_lng,
            notes=request.notes,
        )


class UpdateStatusSchema(WireModel):
    status: BookingStatus
    escrow_tx_hash: str | None = None


class CancelBookingSchema(WireModel):
    reason: str = DEFAULT_CANCEL_REASON


class ConfirmPaymentSchema(WireModel):
    escrow_tx_hash: str
    skip_on_chain_verification: bool = False


class EscrowSchema(WireModel):
    customer: str
    amount: Cents
    status: int


class ConfirmPaymentResponseSchema(WireModel):
    booking: BookingSchema
    message: str
    escrow: EscrowSchema | None = None

    def to_entity(self) -> PaymentConfirmation:
        escrow = None
        if self.escrow is not None:
            escrow = EscrowSummary(
                customer=self.escrow.customer,
                amount_cents=self.escrow.amount,
                status=self.escrow.status,
            )
        return PaymentConfirmation(booking=self.booking.to_entity(), message=self.message, escrow=escrow)

    @staticmethod
    def from_entity(confirmation: PaymentConfirmation) -> "ConfirmPaymentResponseSchema":
        escrow = None
        if confirmation.escrow is not None:
            escrow = EscrowSchema(
                customer=confirmation.escrow.customer,
                amount=confirmation.escrow.amount_cents,
                status=confirmation.escrow.status,
            )
        return ConfirmPaymentResponseSchema(
            booking=BookingSchema.from_entity(confirmation.booking),
            message=confirmation.message,
            escrow=escrow,
        )


class CustomerStatsSchema(WireModel):
    total: int = 0
    this_month: int = 0
    completed: int = 0
    cancelled: int = 0
    total_spent_cents: Cents = 0


class StylistStatsSchema(WireModel):
    total: int = 0
    this_month: int = 0
    completed: int = 0
    cancelled: int = 0
    gross_earned_cents: Cents = 0
    net_earned_cents: Cents = 0


class CombinedStatsSchema(WireModel):
    total: int = 0
    this_month: int = 0
    completed: int = 0


class BookingStatsSchema(WireModel):
    as_customer: CustomerStatsSchema = Field(default_factory=CustomerStatsSchema)
    as_stylist: StylistStatsSchema = Field(default_factory=StylistStatsSchema)
    combined: CombinedStatsSchema = Field(default_factory=CombinedStatsSchema)

    def to_entity(self) -> BookingStats:
        return BookingStats(
            as_customer=CustomerStats(**self.as_customer.model_dump()),
            as_stylist=StylistStats(**self.as_stylist.model_dump()),
            combined=CombinedStats(**self.combined.model_dump()),
        )

    @staticmethod
    def from_entity(stats: BookingStats) -> "BookingStatsSchema":
        return BookingStatsSchema(
            as_customer=CustomerStatsSchema(**vars(stats.as_customer)),
            as_stylist=StylistStatsSchema(**vars(stats.as_stylist)),
            combined=CombinedStatsSchema(**vars(stats.combined)),
        )


class StatsResponseSchema(WireModel):
    stats: BookingStatsSchema


class AvailabilitySlotSchema(WireModel):
    # Older API builds send the start time as "time".
    start_time: str = Field(
        validation_alias=AliasChoices("startTime", "time", "start_time"),
        serialization_alias="startTime",
    )
    available: bool = True


class AvailabilitySchema(WireModel):
    day: date = Field(alias="date")
    slots: list[AvailabilitySlotSchema] = Field(default_factory=list)

    def to_entity(self) -> list[AvailabilitySlot]:
        return [AvailabilitySlot(start_time=s.start_time, available=s.available) for s in self.slots]


class ErrorBodySchema(BaseModel):
    code: str
    message: str


class ErrorResponseSchema(BaseModel):
    error: ErrorBodySchema
