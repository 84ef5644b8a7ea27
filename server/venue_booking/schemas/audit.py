"""Audit log Pydantic schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import PaginatedResponse


class ListAuditEntriesRequest(BaseModel):
    """Request schema for reading the caller's hotel audit log."""

    limit: int = Field(50, ge=1, le=100, description="Page size")
    cursor: Optional[UUID] = Field(None, description="Cursor returned by the previous page")


class AuditEntry(BaseModel):
    """Audit entry response schema."""

    id: UUID
    actor_id: str = Field(..., description="Administrator who acted")
    hotel_id: UUID
    action: str
    resource: str
    resource_id: Optional[str] = None
    details: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AuditEntryPage(PaginatedResponse):
    """A page of audit entries, newest first."""

    items: list[AuditEntry] = Field(default_factory=list)
