"""Venue model definition."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .hotel import Hotel


class Venue(Base):
    """Venue entity representing a bookable function space of one hotel."""

    __tablename__ = "venues"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Owning tenant
    hotel_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("hotels.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Venue information
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Capacity per layout; missing means "not offered"
    capacity_banquet: Mapped[int | None] = mapped_column(Integer, nullable=True)
    capacity_theater: Mapped[int | None] = mapped_column(Integer, nullable=True)
    capacity_reception: Mapped[int | None] = mapped_column(Integer, nullable=True)
    capacity_ushape: Mapped[int | None] = mapped_column(Integer, nullable=True)

    base_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

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
        CheckConstraint("base_price IS NULL OR base_price >= 0", name="ck_venue_base_price_non_negative"),
    )

    # Relationships
    hotel: Mapped["Hotel"] = relationship("Hotel", back_populates="venues")

    def __repr__(self) -> str:
        return f"<Venue(id={self.id}, hotel_id={self.hotel_id}, name='{self.name}', active={self.is_active})>"
