"""Booking model definition."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.clock import utcnow
from ..core.database import Base
from .hotel import TaxStrategy

if TYPE_CHECKING:
    from .customer import Customer
    from .venue import Venue


class BookingStatus(str, Enum):
    """Booking status enumeration."""
    INQUIRY = "INQUIRY"
    TENTATIVE = "TENTATIVE"
    CONFIRMED = "CONFIRMED"
    EXECUTED = "EXECUTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    CONFLICT = "CONFLICT"
    WAITLIST = "WAITLIST"


class BookingSource(str, Enum):
    """Where the booking was created."""
    STAFF = "STAFF"
    PUBLIC = "PUBLIC"


class Booking(Base):
    """Booking entity: a reservation of one venue for a time range."""

    __tablename__ = "bookings"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    booking_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)

    # Ownership
    hotel_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("hotels.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    venue_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("venues.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    customer_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("customers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    # User ids come from the external identity provider
    created_by_id: Mapped[str] = mapped_column(String(255), nullable=False)
    assigned_to_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)

    # Event details
    event_name: Mapped[str] = mapped_column(String(255), nullable=False)
    event_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    layout_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Scheduling, stored as naive UTC; the range is half-open [start_time, end_time)
    event_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    guest_count: Mapped[int] = mapped_column(Integer, nullable=False)
    guaranteed_pax: Mapped[int] = mapped_column(Integer, nullable=False)

    # Lifecycle
    status: Mapped[BookingStatus] = mapped_column(
        String(20),
        nullable=False,
        default=BookingStatus.INQUIRY,
        index=True
    )
    conflict_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("bookings.id", ondelete="SET NULL"),
        nullable=True
    )

    # Pricing snapshot, frozen at creation
    base_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    service_charge: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    vat: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    vat_rate_snapshot: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    service_charge_rate_snapshot: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    tax_strategy_snapshot: Mapped[TaxStrategy] = mapped_column(String(20), nullable=False)

    # Provenance
    source: Mapped[BookingSource] = mapped_column(String(20), nullable=False, default=BookingSource.STAFF)
    is_public_booking: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    dietary_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=utcnow,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now()
    )

    # Constraints
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_booking_end_after_start"),
        CheckConstraint("guest_count > 0", name="ck_booking_guest_count_positive"),
        CheckConstraint("guaranteed_pax >= 0", name="ck_booking_guaranteed_pax_non_negative"),
        CheckConstraint("total_amount >= 0", name="ck_booking_total_amount_non_negative"),
        CheckConstraint(
            "(status = 'CONFLICT') OR (conflict_id IS NULL)",
            name="ck_booking_conflict_link_only_in_conflict"
        ),
        Index("ix_bookings_venue_schedule", "venue_id", "start_time", "end_time"),
    )

    # Relationships
    venue: Mapped["Venue"] = relationship("Venue")
    customer: Mapped["Customer"] = relationship("Customer")

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, number='{self.booking_number}', venue_id={self.venue_id}, "
            f"status={self.status}, start={self.start_time}, end={self.end_time})>"
        )
