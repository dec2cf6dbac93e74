"""
SQLAlchemy database models.
"""

from hvac_crm.models.customers import Customer
from hvac_crm.models.technicians import Technician
from hvac_crm.models.service_requests import (
    ServiceRequest,
    ServiceType,
    RequestStatus,
    ACTIVE_STATUSES,
)

__all__ = [
    "Customer",
    "Technician",
    "ServiceRequest",
    "ServiceType",
    "RequestStatus",
    "ACTIVE_STATUSES",
]
