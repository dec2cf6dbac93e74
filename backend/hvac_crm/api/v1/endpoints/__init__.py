"""
Convenience exports for API v1 endpoint routers.

This allows ``from hvac_crm.api.v1.endpoints import dispatch_router`` style
imports used by the aggregate router module.
"""

from .health import router as health_router
from .bookings import router as bookings_router
from .dispatch import router as dispatch_router
from .tech import router as tech_router
from .contact import router as contact_router

__all__ = [
    "health_router",
    "bookings_router",
    "dispatch_router",
    "tech_router",
    "contact_router",
]
