"""Hotel (tenant root) model definition."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .customer import Customer
    from .venue import Venue


class TaxStrategy(str, Enum):
    """How VAT is applied relative to the service charge."""
    STANDARD = "STANDARD"  # VAT on base price only
    COMPOUND = "COMPOUND"  # VAT on base price + service charge


class Hotel(Base):
    """Hotel entity; owns venues, customers and bookings."""

    __tablename__ = "hotels"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Profile
    name: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    subdomain: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Tax policy
    tax_strategy: Mapped[TaxStrategy] = mapped_column(
        String(20),
        nullable=False,
        default=TaxStrategy.STANDARD
    )
    vat_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    service_charge_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    # Booking policy
    allow_capacity_override: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Hotels are deactivated, never deleted
    is_deactivated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deactivated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        server_onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("vat_rate >= 0 AND vat_rate <= 100", name="ck_hotel_vat_rate_range"),
        CheckConstraint(
            "service_charge_rate >= 0 AND service_charge_rate <= 100",
            name="ck_hotel_service_charge_rate_range"
        ),
        CheckConstraint("length(currency) = 3", name="ck_hotel_currency_length"),
    )

    # Relationships
    venues: Mapped[list["Venue"]] = relationship("Venue", back_populates="hotel")
    customers: Mapped[list["Customer"]] = relationship("Customer", back_populates="hotel")

    def __repr__(self) -> str:
        return (
            f"<Hotel(id={self.id}, subdomain='{self.subdomain}', "
            f"tax_strategy={self.tax_strategy}, vat_rate={self.vat_rate})>"
        )
