"""
API v1 router - aggregates all endpoint routers.
"""

from fastapi import APIRouter

from hvac_crm.api.v1.endpoints import (
    bookings_router,
    contact_router,
    dispatch_router,
    health_router,
    tech_router,
)

api_router = APIRouter()

api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(bookings_router, prefix="/bookings", tags=["bookings"])
api_router.include_router(dispatch_router, prefix="/dispatch", tags=["dispatch"])
api_router.include_router(tech_router, prefix="/tech", tags=["technicians"])
api_router.include_router(contact_router, prefix="/contact", tags=["contact"])
