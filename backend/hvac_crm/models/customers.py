"""
Customer model.
"""
from sqlalchemy import Column, String, Integer, DateTime, Text
from sqlalchemy.orm import relationship

from hvac_crm.core.database import Base, utcnow


class Customer(Base):
    """
    A person who booked service. One record is created per booking.
    """
    __tablename__ = "customers"

    customer_id = Column(Integer, primary_key=True, autoincrement=True)

    # Identity
    name = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=False, index=True)
    email = Column(String(255), index=True)

    # Address
    address = Column(Text, nullable=False)
    city = Column(String(100))
    state = Column(String(2))
    zip = Column(String(10))

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    service_requests = relationship("ServiceRequest", back_populates="customer")

    def __repr__(self) -> str:
        return f"<Customer(id={self.customer_id}, name={self.name})>"
