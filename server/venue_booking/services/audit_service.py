"""Audit log for administrator actions taken under impersonation."""

import json
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.context import AuditContext
from ..core.observability import get_logger, metrics_collector
from ..models.audit import AuditLogEntry

logger = get_logger(__name__)


class AuditAction:
    CREATE_BOOKING = "CREATE_BOOKING"
    CREATE_PUBLIC_BOOKING = "CREATE_PUBLIC_BOOKING"
    UPDATE_BOOKING = "UPDATE_BOOKING"
    UPDATE_BOOKING_STATUS = "UPDATE_BOOKING_STATUS"
    CANCEL_BOOKING = "CANCEL_BOOKING"
    DELETE_BOOKING = "DELETE_BOOKING"


class AuditService:
    """Writes and reads audit entries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def record(
        self,
        audit: AuditContext,
        hotel_id: UUID,
        action: str,
        resource: str,
        resource_id: Optional[UUID | str] = None,
        details: Optional[dict[str, Any] | str] = None,
    ) -> Optional[AuditLogEntry]:
        """
        Stage an audit entry in the caller's transaction.

        Nothing is written unless an administrator is impersonating the
        tenant. The entry is only added to the session; it becomes visible
        when the caller commits the mutation it documents.

        Returns:
            The staged entry, or None when no entry is required
        """
        if not audit.should_record:
            return None

        if isinstance(details, dict):
            details = json.dumps(details, sort_keys=True, default=str)

        entry = AuditLogEntry(
            actor_id=audit.actor_id,
            hotel_id=hotel_id,
            action=action,
            resource=resource,
            resource_id=str(resource_id) if resource_id is not None else None,
            details=details,
        )
        self.db.add(entry)

        metrics_collector.record_audit_entry(action)
        logger.info(
            "Audit entry staged",
            actor_id=audit.actor_id,
            hotel_id=str(hotel_id),
            action=action,
            resource=resource,
            resource_id=entry.resource_id,
        )

        return entry

    async def list_entries(
        self,
        hotel_id: UUID,
        limit: int = 50,
        cursor: Optional[UUID] = None,
    ) -> tuple[list[AuditLogEntry], Optional[str]]:
        """
        List a tenant's audit entries, newest first.

        Args:
            hotel_id: Tenant to read
            limit: Page size
            cursor: Id of the first entry of the page to return

        Returns:
            Tuple of (entries, next_cursor)
        """
        stmt = select(AuditLogEntry).where(AuditLogEntry.hotel_id == hotel_id)

        if cursor is not None:
            anchor_stmt = select(AuditLogEntry).where(
                AuditLogEntry.id == cursor,
                AuditLogEntry.hotel_id == hotel_id,
            )
            anchor = (await self.db.execute(anchor_stmt)).scalar_one_or_none()
            if anchor is None:
                logger.warning(
                    "Unknown audit cursor ignored",
                    hotel_id=str(hotel_id),
                    cursor=str(cursor),
                )
            else:
                stmt = stmt.where(
                    or_(
                        AuditLogEntry.created_at < anchor.created_at,
                        and_(
                            AuditLogEntry.created_at == anchor.created_at,
                            AuditLogEntry.id <= anchor.id,
                        ),
                    )
                )

        # Fetch one extra to know whether there is a next page
        stmt = stmt.order_by(AuditLogEntry.created_at.desc(), AuditLogEntry.id.desc()).limit(limit + 1)

        result = await self.db.execute(stmt)
        entries = list(result.scalars())

        next_cursor = None
        if len(entries) > limit:
            next_cursor = str(entries.pop().id)

        return entries, next_cursor
