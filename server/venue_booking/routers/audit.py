"""Audit log router."""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.context import RequestContext
from ..core.dependencies import CallerContext, DatabaseSession
from ..core.exceptions import ProblemDetailsException
from ..schemas.audit import AuditEntry, AuditEntryPage, ListAuditEntriesRequest
from ..schemas.common import problem_responses
from ..services.audit_service import AuditService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/audit", tags=["audit"], responses=problem_responses(401, 403, 422))


@router.post("/list", response_model=AuditEntryPage)
async def list_audit_entries(
    request: ListAuditEntriesRequest,
    ctx: RequestContext = CallerContext,
    db: AsyncSession = DatabaseSession,
) -> JSONResponse:
    """
    List actions taken by platform administrators inside the caller's hotel.

    Newest first, with cursor-based pagination.
    """
    hotel_id = ctx.require_hotel()
    ctx.permissions.require("can_view_audit_log")

    audit_service = AuditService(db)

    try:
        entries, next_cursor = await audit_service.list_entries(
            hotel_id=hotel_id,
            limit=min(request.limit, settings.audit_page_size_max),
            cursor=request.cursor,
        )

        response_data = AuditEntryPage(
            items=[AuditEntry.model_validate(entry) for entry in entries],
            next_cursor=next_cursor,
        )

        logger.info(
            "Audit entries listed successfully",
            extra={
                "hotel_id": str(hotel_id),
                "limit": request.limit,
                "cursor": str(request.cursor) if request.cursor else None,
                "returned_count": len(entries),
                "has_next": next_cursor is not None,
            }
        )

        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in audit entry listing",
            extra={"hotel_id": str(hotel_id), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e
