"""Booking-related Pydantic schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from ..core.clock import to_naive_utc
from ..models.booking import BookingSource, BookingStatus
from ..models.hotel import TaxStrategy


class _BookingDetails(BaseModel):
    """Fields shared by staff-created bookings and public booking requests."""

    venue_id: UUID = Field(..., description="Venue to book")
    customer_id: UUID = Field(..., description="Customer the booking is for")
    event_name: str = Field(..., min_length=1, max_length=255, description="Event name")
    event_type: Optional[str] = Field(None, max_length=100, description="Event type, e.g. wedding")
    start_time: datetime = Field(..., description="Event start (ISO 8601)")
    end_time: datetime = Field(..., description="Event end (ISO 8601), strictly after start")
    guest_count: int = Field(..., ge=1, description="Expected number of guests")
    guaranteed_pax: Optional[int] = Field(None, ge=0, description="Guaranteed headcount; defaults to guest count")
    layout_type: Optional[str] = Field(None, max_length=50, description="Requested room layout")
    special_requests: Optional[str] = Field(None, max_length=4000)
    dietary_requests: Optional[str] = Field(None, max_length=4000)

    @model_validator(mode="after")
    def check_time_range(self):
        if to_naive_utc(self.end_time) <= to_naive_utc(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class CreateBookingRequest(_BookingDetails):
    """Request schema for staff booking creation."""

    base_price_override: Optional[Decimal] = Field(
        None, ge=0, max_digits=12, decimal_places=2,
        description="Base price overriding the venue default"
    )
    notes: Optional[str] = Field(None, max_length=4000, description="Internal notes")


class PublicBookingRequest(_BookingDetails):
    """Request schema for a marketplace booking (quote) request."""


class RescheduleBookingRequest(BaseModel):
    """Request schema for changing a booking's time range, headcount or details."""

    booking_id: UUID = Field(..., description="Booking to update")
    start_time: Optional[datetime] = Field(None, description="New start (ISO 8601)")
    end_time: Optional[datetime] = Field(None, description="New end (ISO 8601)")
    guest_count: Optional[int] = Field(None, ge=1, description="New guest count")
    event_name: Optional[str] = Field(None, min_length=1, max_length=255)
    event_type: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=4000)
    assigned_to_id: Optional[str] = Field(None, max_length=255, description="Staff member responsible")


class ChangeStatusRequest(BaseModel):
    """Request schema for a booking status change."""

    booking_id: UUID = Field(..., description="Booking to update")
    status: BookingStatus = Field(..., description="Requested status")


class CancelBookingRequest(BaseModel):
    """Request schema for cancelling a booking."""

    booking_id: UUID = Field(..., description="Booking to cancel")


class DeleteBookingRequest(BaseModel):
    """Request schema for permanently deleting a cancelled booking."""

    booking_id: UUID = Field(..., description="Cancelled booking to delete")


class GetBookingRequest(BaseModel):
    """Request schema for getting a booking."""

    booking_id: UUID = Field(..., description="Booking to retrieve")


class ListBookingsRequest(BaseModel):
    """Request schema for listing the caller's hotel bookings."""

    status: Optional[BookingStatus] = Field(None, description="Only bookings in this status")
    venue_id: Optional[UUID] = Field(None, description="Only bookings for this venue")


class Booking(BaseModel):
    """Booking response schema."""

    id: UUID = Field(..., description="Unique booking ID")
    booking_number: str = Field(..., description="Display booking number")
    hotel_id: UUID
    venue_id: UUID
    customer_id: UUID
    created_by_id: str
    assigned_to_id: Optional[str] = None

    event_name: str
    event_type: Optional[str] = None
    layout_type: Optional[str] = None
    event_date: date
    start_time: datetime = Field(..., description="Start (UTC)")
    end_time: datetime = Field(..., description="End (UTC)")
    guest_count: int
    guaranteed_pax: int

    status: BookingStatus
    conflict_id: Optional[UUID] = Field(None, description="Colliding booking while in CONFLICT")

    base_price: Decimal
    service_charge: Decimal
    vat: Decimal
    total_amount: Decimal
    currency: str
    vat_rate_snapshot: Decimal
    service_charge_rate_snapshot: Decimal
    tax_strategy_snapshot: TaxStrategy

    source: BookingSource
    is_public_booking: bool
    special_requests: Optional[str] = None
    dietary_requests: Optional[str] = None
    notes: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookingList(BaseModel):
    """Booking list response schema."""

    items: list[Booking] = Field(default_factory=list)
