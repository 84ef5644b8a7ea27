"""Service layer package."""

from .audit_service import AuditService
from .booking_service import BookingService
from .conflict_detector import ConflictDetector

__all__ = [
    "AuditService",
    "BookingService",
    "ConflictDetector",
]
