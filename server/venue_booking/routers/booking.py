"""Booking router for staff booking operations."""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.context import RequestContext
from ..core.dependencies import CallerContext, DatabaseSession, VenueLocks
from ..core.exceptions import ProblemDetailsException
from ..core.locking import VenueLockRegistry
from ..schemas.booking import (
    Booking,
    BookingList,
    CancelBookingRequest,
    ChangeStatusRequest,
    CreateBookingRequest,
    DeleteBookingRequest,
    GetBookingRequest,
    ListBookingsRequest,
    RescheduleBookingRequest,
)
from ..schemas.common import problem_responses
from ..services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/v1/booking",
    tags=["booking"],
    responses=problem_responses(401, 403, 404, 409, 412, 422),
)


def _booking_response(booking_model, status_code: int = 200) -> JSONResponse:
    """Convert booking model to a JSON response."""
    return JSONResponse(
        status_code=status_code,
        content=Booking.model_validate(booking_model).model_dump(mode="json")
    )


def _internal_error(operation: str, error: Exception, **context) -> HTTPException:
    logger.error(
        f"Unexpected error in {operation}",
        extra={**context, "error": str(error)},
        exc_info=True
    )
    return HTTPException(status_code=500, detail="Internal server error")


@router.post("/create", response_model=Booking, status_code=201)
async def create_booking(
    request: CreateBookingRequest,
    ctx: RequestContext = CallerContext,
    db: AsyncSession = DatabaseSession,
    locks: VenueLockRegistry = VenueLocks,
) -> JSONResponse:
    """
    Create a booking for a venue of the caller's hotel.

    The booking starts in INQUIRY, or in CONFLICT when it overlaps an active
    booking. Pricing is computed once and frozen on the booking.
    """
    booking_service = BookingService(db, locks)

    try:
        booking = await booking_service.create_booking(request, ctx)
        return _booking_response(booking, status_code=201)

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _internal_error(
            "booking creation", e,
            venue_id=str(request.venue_id),
            user_id=ctx.user_id,
        ) from e


@router.post("/reschedule", response_model=Booking)
async def reschedule_booking(
    request: RescheduleBookingRequest,
    ctx: RequestContext = CallerContext,
    db: AsyncSession = DatabaseSession,
    locks: VenueLockRegistry = VenueLocks,
) -> JSONResponse:
    """
    Change a booking's time range, guest count or descriptive fields.

    A new time range is re-checked for conflicts; pricing is not recomputed.
    """
    booking_service = BookingService(db, locks)

    try:
        booking = await booking_service.reschedule_booking(request, ctx)
        return _booking_response(booking)

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _internal_error("booking reschedule", e, booking_id=str(request.booking_id)) from e


@router.post("/status", response_model=Booking)
async def change_booking_status(
    request: ChangeStatusRequest,
    ctx: RequestContext = CallerContext,
    db: AsyncSession = DatabaseSession,
    locks: VenueLockRegistry = VenueLocks,
) -> JSONResponse:
    """Move a booking to another status of its lifecycle."""
    booking_service = BookingService(db, locks)

    try:
        booking = await booking_service.change_status(request, ctx)
        return _booking_response(booking)

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _internal_error(
            "booking status change", e,
            booking_id=str(request.booking_id),
            requested_status=request.status.value,
        ) from e


@router.post("/cancel", response_model=Booking)
async def cancel_booking(
    request: CancelBookingRequest,
    ctx: RequestContext = CallerContext,
    db: AsyncSession = DatabaseSession,
    locks: VenueLockRegistry = VenueLocks,
) -> JSONResponse:
    """
    Cancel a booking.

    Cancelling an already cancelled booking is rejected with 409.
    """
    booking_service = BookingService(db, locks)

    try:
        booking = await booking_service.cancel_booking(request, ctx)
        return _booking_response(booking)

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _internal_error("booking cancellation", e, booking_id=str(request.booking_id)) from e


@router.post("/delete", status_code=204)
async def delete_booking(
    request: DeleteBookingRequest,
    ctx: RequestContext = CallerContext,
    db: AsyncSession = DatabaseSession,
    locks: VenueLockRegistry = VenueLocks,
) -> Response:
    """Permanently delete a cancelled booking."""
    booking_service = BookingService(db, locks)

    try:
        await booking_service.delete_booking(request, ctx)
        return Response(status_code=204)

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _internal_error("booking deletion", e, booking_id=str(request.booking_id)) from e


@router.post("/get", response_model=Booking)
async def get_booking(
    request: GetBookingRequest,
    ctx: RequestContext = CallerContext,
    db: AsyncSession = DatabaseSession,
    locks: VenueLockRegistry = VenueLocks,
) -> JSONResponse:
    """Get booking details."""
    booking_service = BookingService(db, locks)

    try:
        booking = await booking_service.get_booking(request, ctx)
        return _booking_response(booking)

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _internal_error("booking retrieval", e, booking_id=str(request.booking_id)) from e


@router.post("/list", response_model=BookingList)
async def list_bookings(
    request: ListBookingsRequest,
    ctx: RequestContext = CallerContext,
    db: AsyncSession = DatabaseSession,
    locks: VenueLockRegistry = VenueLocks,
) -> JSONResponse:
    """List the caller's hotel bookings, most recent event first."""
    booking_service = BookingService(db, locks)

    try:
        bookings = await booking_service.list_bookings(request, ctx)
        response_data = BookingList(items=[Booking.model_validate(b) for b in bookings])

        logger.info(
            "Bookings listed successfully",
            extra={
                "hotel_id": str(ctx.hotel_id),
                "status": request.status.value if request.status else None,
                "venue_id": str(request.venue_id) if request.venue_id else None,
                "returned_count": len(bookings),
            }
        )

        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _internal_error("booking list", e, hotel_id=str(ctx.hotel_id)) from e
