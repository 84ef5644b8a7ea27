"""Time-overlap conflict detection between venue bookings."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.booking import Booking, BookingStatus

logger = logging.getLogger(__name__)

# Inquiries are soft leads and do not hold the slot
NON_BLOCKING_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.INQUIRY})
BLOCKING_STATUSES = frozenset(set(BookingStatus) - NON_BLOCKING_STATUSES)


def intervals_overlap(
    existing_start: datetime,
    existing_end: datetime,
    start: datetime,
    end: datetime,
) -> bool:
    """
    Whether two half-open intervals [existing_start, existing_end) and [start, end) overlap.

    Mirrors the SQL predicate used by ConflictDetector. Touching intervals
    (one ends exactly when the other starts) do not overlap.
    """
    starts_inside = start <= existing_start < end
    ends_inside = start < existing_end <= end
    encloses = existing_start <= start and existing_end >= end
    return starts_inside or ends_inside or encloses


def blocks_slot(status: str) -> bool:
    return BookingStatus(status) in BLOCKING_STATUSES


class ConflictDetector:
    """Finds active bookings on a venue that overlap a requested time range."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_conflicts(
        self,
        hotel_id: UUID,
        venue_id: UUID,
        start_time: datetime,
        end_time: datetime,
        exclude_booking_id: Optional[UUID] = None,
    ) -> list[Booking]:
        """
        Find overlapping active bookings.

        Args:
            hotel_id: Tenant owning the venue
            venue_id: Venue to scan
            start_time: Requested start (naive UTC)
            end_time: Requested end (naive UTC)
            exclude_booking_id: Booking to leave out, used when rescheduling

        Returns:
            Colliding bookings ordered by start time
        """
        overlap = or_(
            # Existing starts inside the requested range
            and_(Booking.start_time >= start_time, Booking.start_time < end_time),
            # Existing ends inside the requested range
            and_(Booking.end_time > start_time, Booking.end_time <= end_time),
            # Existing encloses the requested range
            and_(Booking.start_time <= start_time, Booking.end_time >= end_time),
        )

        stmt = select(Booking).where(
            Booking.hotel_id == hotel_id,
            Booking.venue_id == venue_id,
            Booking.status.notin_([status.value for status in NON_BLOCKING_STATUSES]),
            overlap,
        )
        if exclude_booking_id is not None:
            stmt = stmt.where(Booking.id != exclude_booking_id)

        stmt = stmt.order_by(Booking.start_time, Booking.created_at)

        result = await self.db.execute(stmt)
        conflicts = list(result.scalars())

        if conflicts:
            logger.info(
                "Booking conflicts detected",
                extra={
                    "venue_id": str(venue_id),
                    "start_time": start_time.isoformat(),
                    "end_time": end_time.isoformat(),
                    "conflicting_booking_ids": [str(booking.id) for booking in conflicts],
                    "excluded_booking_id": str(exclude_booking_id) if exclude_booking_id else None,
                }
            )

        return conflicts
