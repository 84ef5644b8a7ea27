"""Marketplace router for public booking requests."""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.context import RequestContext
from ..core.dependencies import CallerContext, DatabaseSession, PublicRateLimiter, VenueLocks
from ..core.exceptions import ProblemDetailsException, RateLimitError
from ..core.locking import VenueLockRegistry
from ..core.rate_limit import RateLimiter
from ..schemas.booking import Booking, PublicBookingRequest
from ..schemas.common import problem_responses
from ..services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/v1/marketplace",
    tags=["marketplace"],
    responses=problem_responses(401, 403, 404, 412, 422, 429),
)


@router.post("/request", response_model=Booking, status_code=201)
async def request_booking(
    request: PublicBookingRequest,
    ctx: RequestContext = CallerContext,
    db: AsyncSession = DatabaseSession,
    locks: VenueLockRegistry = VenueLocks,
    rate_limiter: RateLimiter = PublicRateLimiter,
) -> JSONResponse:
    """
    Request a quote for a venue.

    Creates an unassigned public booking with the same capacity, conflict
    and pricing checks as staff bookings. Requests are throttled per caller.
    """
    ctx.permissions.require("can_request_public_booking")

    decision = await rate_limiter.check(f"public-booking:{ctx.user_id}")
    if not decision.allowed:
        logger.warning(
            "Public booking request rate limited",
            extra={
                "user_id": ctx.user_id,
                "retry_after_seconds": decision.retry_after_seconds,
            }
        )
        raise RateLimitError(
            detail="Too many booking requests, please try again later",
            retry_after=decision.retry_after_seconds,
            limit=rate_limiter.limit,
            window=rate_limiter.window_seconds,
        )

    booking_service = BookingService(db, locks)

    try:
        booking = await booking_service.create_public_booking(request, ctx)
        return JSONResponse(
            status_code=201,
            content=Booking.model_validate(booking).model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in public booking request",
            extra={
                "venue_id": str(request.venue_id),
                "user_id": ctx.user_id,
                "error": str(e)
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e
