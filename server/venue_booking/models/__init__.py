"""Models module exporting all database models."""

from .audit import AuditLogEntry
from .booking import Booking, BookingSource, BookingStatus
from .customer import Customer, CustomerType
from .hotel import Hotel, TaxStrategy
from .venue import Venue

__all__ = [
    # Tenant and catalog
    "Hotel",
    "TaxStrategy",
    "Venue",
    "Customer",
    "CustomerType",

    # Booking entities
    "Booking",
    "BookingSource",
    "BookingStatus",

    # Audit entity
    "AuditLogEntry",
]
