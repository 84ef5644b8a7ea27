"""Booking service: the booking engine's mutations and tenant-scoped reads."""

import logging
import secrets
import string
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import to_naive_utc
from ..core.context import RequestContext
from ..core.exceptions import (
    CapacityExceededError,
    InvalidTransitionError,
    NotFoundError,
    PreconditionFailedError,
    ValidationError,
)
from ..core.locking import VenueLockRegistry
from ..core.observability import metrics_collector
from ..models.booking import Booking, BookingSource, BookingStatus
from ..models.customer import Customer
from ..models.hotel import Hotel
from ..models.venue import Venue
from ..schemas.booking import (
    CancelBookingRequest,
    ChangeStatusRequest,
    CreateBookingRequest,
    DeleteBookingRequest,
    GetBookingRequest,
    ListBookingsRequest,
    PublicBookingRequest,
    RescheduleBookingRequest,
)
from .audit_service import AuditAction, AuditService
from .booking_lifecycle import apply_status, initial_status, is_terminal, rescheduled_status, validate_transition
from .capacity_guard import check_capacity
from .conflict_detector import ConflictDetector
from .pricing_engine import TaxPolicy, compute_snapshot

logger = logging.getLogger(__name__)

BOOKING_NUMBER_PREFIX = "BK-"


class BookingService:
    """Service for booking-related operations."""

    def __init__(self, db: AsyncSession, locks: VenueLockRegistry):
        self.db = db
        self.locks = locks
        self.conflicts = ConflictDetector(db)
        self.audit = AuditService(db)

    def _generate_booking_number(self, length: int = 6) -> str:
        """Generate a random booking number such as BK-7QX2LM."""
        alphabet = string.ascii_uppercase + string.digits
        return BOOKING_NUMBER_PREFIX + ''.join(secrets.choice(alphabet) for _ in range(length))

    async def _unique_booking_number(self) -> str:
        booking_number = self._generate_booking_number()
        while await self.get_booking_by_number(booking_number):
            booking_number = self._generate_booking_number()
        return booking_number

    @asynccontextmanager
    async def _venue_transaction(self, venue_id: UUID) -> AsyncIterator[None]:
        """
        Run a check-then-write sequence under the venue lock as one transaction.

        Commits when the block completes; any exception rolls everything back,
        including staged audit entries, before the lock is released.
        """
        async with self.locks.hold(self.db, venue_id):
            try:
                yield
                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise

    async def create_booking(self, request: CreateBookingRequest, ctx: RequestContext) -> Booking:
        """
        Create a staff booking.

        Runs the capacity guard, the conflict detector and the pricing engine
        against the live venue and hotel configuration, then persists the
        booking with its frozen pricing snapshot.

        Args:
            request: Booking creation request
            ctx: Caller context

        Returns:
            Created booking, in INQUIRY or CONFLICT status

        Raises:
            AuthorizationError: If the caller may not create bookings
            NotFoundError: If the venue or customer is not in the caller's hotel
            PreconditionFailedError: If the venue is inactive
            CapacityExceededError: If the guest count exceeds capacity without override
        """
        hotel_id = ctx.require_hotel()
        ctx.permissions.require("can_create_booking")

        return await self._create(
            request,
            ctx,
            hotel_id=hotel_id,
            source=BookingSource.STAFF,
            assigned_to_id=ctx.user_id,
            base_price_override=request.base_price_override,
            notes=request.notes,
            audit_action=AuditAction.CREATE_BOOKING,
        )

    async def create_public_booking(self, request: PublicBookingRequest, ctx: RequestContext) -> Booking:
        """
        Create a booking request from the marketplace.

        The hotel is taken from the venue. The booking is unassigned and
        marked as public; otherwise it goes through the same checks as a
        staff booking.
        """
        ctx.permissions.require("can_request_public_booking")

        return await self._create(
            request,
            ctx,
            hotel_id=None,
            source=BookingSource.PUBLIC,
            assigned_to_id=None,
            base_price_override=None,
            notes=None,
            audit_action=AuditAction.CREATE_PUBLIC_BOOKING,
        )

    async def _create(
        self,
        request: PublicBookingRequest | CreateBookingRequest,
        ctx: RequestContext,
        hotel_id: Optional[UUID],
        source: BookingSource,
        assigned_to_id: Optional[str],
        base_price_override: Optional[Decimal],
        notes: Optional[str],
        audit_action: str,
    ) -> Booking:
        start_time = to_naive_utc(request.start_time)
        end_time = to_naive_utc(request.end_time)
        if end_time <= start_time:
            raise ValidationError(
                detail="end_time must be after start_time",
                errors={"end_time": "must be after start_time"}
            )

        async with self._venue_transaction(request.venue_id):
            venue, hotel = await self._get_venue_or_raise(request.venue_id, hotel_id)
            hotel_id = venue.hotel_id

            if not venue.is_active:
                raise PreconditionFailedError(
                    detail=f"Venue {venue.id} is not active and cannot be booked",
                    extensions={"venue_id": str(venue.id)}
                )
            if hotel.is_deactivated:
                raise PreconditionFailedError(
                    detail=f"Hotel {hotel.id} is deactivated and cannot take bookings",
                    extensions={"hotel_id": str(hotel.id)}
                )

            await self._get_customer_or_raise(request.customer_id, hotel_id)

            try:
                check_capacity(venue, request.guest_count, hotel.allow_capacity_override)
            except CapacityExceededError as e:
                metrics_collector.record_capacity_rejection()
                logger.warning(
                    "Booking rejected - capacity exceeded",
                    extra={
                        "venue_id": str(venue.id),
                        "requested": e.requested,
                        "max_capacity": e.max_capacity,
                    }
                )
                raise

            conflicts = await self.conflicts.find_conflicts(hotel_id, venue.id, start_time, end_time)
            status, conflict_id = initial_status(conflicts)

            snapshot = compute_snapshot(venue, TaxPolicy.from_hotel(hotel), base_price_override)

            booking = Booking(
                booking_number=await self._unique_booking_number(),
                hotel_id=hotel_id,
                venue_id=venue.id,
                customer_id=request.customer_id,
                created_by_id=ctx.user_id,
                assigned_to_id=assigned_to_id,
                event_name=request.event_name,
                event_type=request.event_type,
                layout_type=request.layout_type,
                event_date=start_time.date(),
                start_time=start_time,
                end_time=end_time,
                guest_count=request.guest_count,
                guaranteed_pax=(
                    request.guaranteed_pax if request.guaranteed_pax is not None else request.guest_count
                ),
                status=status,
                conflict_id=conflict_id,
                source=source,
                is_public_booking=source == BookingSource.PUBLIC,
                special_requests=request.special_requests,
                dietary_requests=request.dietary_requests,
                notes=notes,
                **snapshot.as_booking_fields(),
            )
            self.db.add(booking)
            await self.db.flush()

            self.audit.record(
                ctx.audit,
                hotel_id=hotel_id,
                action=audit_action,
                resource="booking",
                resource_id=booking.id,
                details={
                    "booking_number": booking.booking_number,
                    "venue_id": str(venue.id),
                    "status": status.value,
                    "total_amount": str(snapshot.total_amount),
                },
            )

        await self.db.refresh(booking)

        metrics_collector.record_booking_created(status.value, source.value)
        if conflicts:
            metrics_collector.record_conflict("create")

        logger.info(
            "Booking created successfully",
            extra={
                "booking_id": str(booking.id),
                "booking_number": booking.booking_number,
                "hotel_id": str(hotel_id),
                "venue_id": str(booking.venue_id),
                "status": status.value,
                "conflict_id": str(conflict_id) if conflict_id else None,
                "source": source.value,
                "guest_count": booking.guest_count,
                "total_amount": str(booking.total_amount),
            }
        )

        return booking

    async def reschedule_booking(self, request: RescheduleBookingRequest, ctx: RequestContext) -> Booking:
        """
        Update a booking's time range, guest count or descriptive fields.

        Whenever a start or end time is supplied the slot is re-checked for
        conflicts, excluding the booking itself. Pricing is never recomputed.

        Raises:
            NotFoundError: If the booking is not in the caller's hotel
            PreconditionFailedError: If the booking is COMPLETED or CANCELLED
            ValidationError: If the resulting end is not after the start
        """
        hotel_id = ctx.require_hotel()
        ctx.permissions.require("can_update_booking")

        venue_id = await self._locate_booking(request.booking_id, hotel_id)

        async with self._venue_transaction(venue_id):
            booking = await self._get_booking_or_raise(request.booking_id, hotel_id)

            if is_terminal(booking.status):
                raise PreconditionFailedError(
                    detail=f"Booking {booking.id} is {BookingStatus(booking.status).value} and cannot be changed",
                    extensions={"booking_id": str(booking.id), "status": BookingStatus(booking.status).value}
                )

            start_time = to_naive_utc(request.start_time) if request.start_time else booking.start_time
            end_time = to_naive_utc(request.end_time) if request.end_time else booking.end_time
            if end_time <= start_time:
                raise ValidationError(
                    detail="end_time must be after start_time",
                    errors={"end_time": "must be after start_time"}
                )

            previous_status = BookingStatus(booking.status)
            changes: dict[str, object] = {}

            # supplied times are re-checked even when unchanged
            if request.start_time is not None or request.end_time is not None:
                conflicts = await self.conflicts.find_conflicts(
                    hotel_id, booking.venue_id, start_time, end_time, exclude_booking_id=booking.id
                )
                status, conflict_id = rescheduled_status(booking.status, booking.conflict_id, conflicts)

                booking.start_time = start_time
                booking.end_time = end_time
                booking.event_date = start_time.date()
                apply_status(booking, status, conflict_id)

                changes["start_time"] = start_time.isoformat()
                changes["end_time"] = end_time.isoformat()
                if conflicts:
                    metrics_collector.record_conflict("reschedule")

            for field in ("guest_count", "event_name", "event_type", "notes", "assigned_to_id"):
                value = getattr(request, field)
                if value is not None and value != getattr(booking, field):
                    setattr(booking, field, value)
                    changes[field] = value

            self.audit.record(
                ctx.audit,
                hotel_id=hotel_id,
                action=AuditAction.UPDATE_BOOKING,
                resource="booking",
                resource_id=booking.id,
                details=changes,
            )

        await self.db.refresh(booking)

        new_status = BookingStatus(booking.status)
        if new_status != previous_status:
            metrics_collector.record_status_transition(previous_status.value, new_status.value)

        logger.info(
            "Booking updated successfully",
            extra={
                "booking_id": str(booking.id),
                "changed_fields": sorted(changes),
                "previous_status": previous_status.value,
                "status": new_status.value,
                "conflict_id": str(booking.conflict_id) if booking.conflict_id else None,
            }
        )

        return booking

    async def change_status(self, request: ChangeStatusRequest, ctx: RequestContext) -> Booking:
        """
        Move a booking to another status.

        Only moves in the transition table are accepted; capacity and
        conflicts are not re-validated.

        Raises:
            NotFoundError: If the booking is not in the caller's hotel
            InvalidTransitionError: If the move is not allowed
        """
        hotel_id = ctx.require_hotel()
        ctx.permissions.require("can_change_status")

        return await self._transition(
            request.booking_id,
            request.status,
            ctx,
            hotel_id,
            audit_action=AuditAction.UPDATE_BOOKING_STATUS,
        )

    async def cancel_booking(self, request: CancelBookingRequest, ctx: RequestContext) -> Booking:
        """
        Cancel a booking from any non-terminal status.

        Raises:
            NotFoundError: If the booking is not in the caller's hotel
            InvalidTransitionError: If the booking is already CANCELLED or COMPLETED
        """
        hotel_id = ctx.require_hotel()
        ctx.permissions.require("can_cancel_booking")

        return await self._transition(
            request.booking_id,
            BookingStatus.CANCELLED,
            ctx,
            hotel_id,
            audit_action=AuditAction.CANCEL_BOOKING,
        )

    async def _transition(
        self,
        booking_id: UUID,
        requested: BookingStatus,
        ctx: RequestContext,
        hotel_id: UUID,
        audit_action: str,
    ) -> Booking:
        venue_id = await self._locate_booking(booking_id, hotel_id)

        async with self._venue_transaction(venue_id):
            booking = await self._get_booking_or_raise(booking_id, hotel_id)
            previous_status = BookingStatus(booking.status)

            try:
                new_status = validate_transition(previous_status, requested, booking_id=booking.id)
            except InvalidTransitionError:
                logger.warning(
                    "Booking status change rejected",
                    extra={
                        "booking_id": str(booking.id),
                        "current_status": previous_status.value,
                        "requested_status": BookingStatus(requested).value,
                    }
                )
                raise

            apply_status(booking, new_status)

            self.audit.record(
                ctx.audit,
                hotel_id=hotel_id,
                action=audit_action,
                resource="booking",
                resource_id=booking.id,
                details={"from_status": previous_status.value, "to_status": new_status.value},
            )

        await self.db.refresh(booking)

        metrics_collector.record_status_transition(previous_status.value, new_status.value)
        logger.info(
            "Booking status changed",
            extra={
                "booking_id": str(booking.id),
                "from_status": previous_status.value,
                "to_status": new_status.value,
            }
        )

        return booking

    async def delete_booking(self, request: DeleteBookingRequest, ctx: RequestContext) -> None:
        """
        Permanently delete a cancelled booking.

        Other bookings linked to it through conflict_id lose the link.

        Raises:
            NotFoundError: If the booking is not in the caller's hotel
            PreconditionFailedError: If the booking is not CANCELLED
        """
        hotel_id = ctx.require_hotel()
        ctx.permissions.require("can_delete_booking")

        venue_id = await self._locate_booking(request.booking_id, hotel_id)

        async with self._venue_transaction(venue_id):
            booking = await self._get_booking_or_raise(request.booking_id, hotel_id)

            if BookingStatus(booking.status) != BookingStatus.CANCELLED:
                raise PreconditionFailedError(
                    detail="Only cancelled bookings can be deleted",
                    extensions={"booking_id": str(booking.id), "status": BookingStatus(booking.status).value}
                )

            stmt = (
                update(Booking)
                .where(Booking.conflict_id == booking.id)
                .values(conflict_id=None)
                .execution_options(synchronize_session="fetch")
            )
            await self.db.execute(stmt)

            booking_number = booking.booking_number
            await self.db.delete(booking)

            self.audit.record(
                ctx.audit,
                hotel_id=hotel_id,
                action=AuditAction.DELETE_BOOKING,
                resource="booking",
                resource_id=request.booking_id,
                details={"booking_number": booking_number},
            )

        metrics_collector.record_booking_deleted()
        logger.info(
            "Booking deleted",
            extra={"booking_id": str(request.booking_id), "booking_number": booking_number}
        )

    async def get_booking(self, request: GetBookingRequest, ctx: RequestContext) -> Booking:
        """
        Get one booking of the caller's hotel.

        Raises:
            NotFoundError: If the booking does not exist or belongs to another hotel
        """
        hotel_id = ctx.require_hotel()
        ctx.permissions.require("can_view_bookings")
        return await self._get_booking_or_raise(request.booking_id, hotel_id)

    async def list_bookings(self, request: ListBookingsRequest, ctx: RequestContext) -> list[Booking]:
        """List the caller's hotel bookings, most recent event first."""
        hotel_id = ctx.require_hotel()
        ctx.permissions.require("can_view_bookings")

        stmt = select(Booking).where(Booking.hotel_id == hotel_id)
        if request.status is not None:
            stmt = stmt.where(Booking.status == request.status.value)
        if request.venue_id is not None:
            stmt = stmt.where(Booking.venue_id == request.venue_id)
        stmt = stmt.order_by(Booking.event_date.desc(), Booking.start_time.desc())

        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def get_booking_by_number(self, booking_number: str) -> Booking | None:
        """Get booking by booking number."""
        stmt = select(Booking).where(Booking.booking_number == booking_number)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _locate_booking(self, booking_id: UUID, hotel_id: UUID) -> UUID:
        """Venue of a booking in the caller's hotel, needed to pick the lock."""
        stmt = select(Booking.venue_id).where(Booking.id == booking_id, Booking.hotel_id == hotel_id)
        result = await self.db.execute(stmt)
        venue_id = result.scalar_one_or_none()
        if venue_id is None:
            logger.warning(
                "Booking not found",
                extra={"booking_id": str(booking_id), "hotel_id": str(hotel_id)}
            )
            raise NotFoundError(resource_type="booking", resource_id=str(booking_id))
        return venue_id

    async def _get_booking_or_raise(self, booking_id: UUID, hotel_id: UUID) -> Booking:
        """Get a booking scoped to the hotel, re-reading any copy already in the session."""
        stmt = (
            select(Booking)
            .where(Booking.id == booking_id, Booking.hotel_id == hotel_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        booking = result.scalar_one_or_none()
        if not booking:
            logger.warning(
                "Booking not found",
                extra={"booking_id": str(booking_id), "hotel_id": str(hotel_id)}
            )
            raise NotFoundError(resource_type="booking", resource_id=str(booking_id))
        return booking

    async def _get_venue_or_raise(
        self, venue_id: UUID, hotel_id: Optional[UUID]
    ) -> tuple[Venue, Hotel]:
        """Get a venue and its hotel, freshly read; scoped to ``hotel_id`` unless it is None."""
        stmt = select(Venue, Hotel).join(Hotel, Venue.hotel_id == Hotel.id).where(Venue.id == venue_id)
        if hotel_id is not None:
            stmt = stmt.where(Venue.hotel_id == hotel_id)
        stmt = stmt.execution_options(populate_existing=True)

        result = await self.db.execute(stmt)
        row = result.one_or_none()
        if row is None:
            logger.warning(
                "Venue not found",
                extra={"venue_id": str(venue_id), "hotel_id": str(hotel_id) if hotel_id else None}
            )
            raise NotFoundError(resource_type="venue", resource_id=str(venue_id))
        return row.Venue, row.Hotel

    async def _get_customer_or_raise(self, customer_id: UUID, hotel_id: UUID) -> Customer:
        stmt = select(Customer).where(Customer.id == customer_id, Customer.hotel_id == hotel_id)
        result = await self.db.execute(stmt)
        customer = result.scalar_one_or_none()
        if not customer:
            logger.warning(
                "Customer not found",
                extra={"customer_id": str(customer_id), "hotel_id": str(hotel_id)}
            )
            raise NotFoundError(resource_type="customer", resource_id=str(customer_id))
        return customer
