"""
Technician model.
"""
from sqlalchemy import Column, String, Integer, DateTime
from sqlalchemy.orm import relationship

from hvac_crm.core.database import Base, utcnow


DEFAULT_TECHNICIAN_STATUS = "available"


class Technician(Base):
    """
    Field technician. Requests reference a technician; they never own one.
    """
    __tablename__ = "technicians"

    tech_id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(255), nullable=False, index=True)
    phone = Column(String(50))
    email = Column(String(255))
    specialization = Column(String(100))  # e.g. heating, cooling, refrigeration

    # Open enumeration: available, busy, off_duty, en_route, ...
    status = Column(String(50), nullable=False, default=DEFAULT_TECHNICIAN_STATUS)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    # Relationships
    assignments = relationship("ServiceRequest", back_populates="technician")

    def __repr__(self) -> str:
        return f"<Technician(id={self.tech_id}, name={self.name}, status={self.status})>"
