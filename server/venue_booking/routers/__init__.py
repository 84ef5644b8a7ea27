"""FastAPI routers package."""

from .audit import router as audit_router
from .booking import router as booking_router
from .health import router as health_router
from .marketplace import router as marketplace_router
from .metrics import router as metrics_router

__all__ = [
    "audit_router",
    "booking_router",
    "health_router",
    "marketplace_router",
    "metrics_router",
]
