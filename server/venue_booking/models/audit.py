"""Audit log model definition."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.clock import utcnow
from ..core.database import Base


class AuditLogEntry(Base):
    """Append-only record of an administrator action taken while impersonating a tenant."""

    __tablename__ = "audit_logs"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    actor_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    hotel_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("hotels.id", ondelete="CASCADE"),
        nullable=False
    )

    action: Mapped[str] = mapped_column(String(80), nullable=False, index=True)  # e.g. CREATE_BOOKING
    resource: Mapped[str] = mapped_column(String(40), nullable=False)  # e.g. booking
    # No foreign key: the resource may be hard-deleted
    resource_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=utcnow,
        server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("length(action) > 0", name="ck_audit_action_not_empty"),
        Index("ix_audit_logs_hotel_created", "hotel_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<AuditLogEntry(id={self.id}, hotel_id={self.hotel_id}, actor_id='{self.actor_id}', "
            f"action='{self.action}', resource_id='{self.resource_id}')>"
        )
