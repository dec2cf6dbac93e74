"""
Pytest configuration and fixtures.
"""
from datetime import date, datetime, time
from decimal import Decimal
from typing import AsyncGenerator, Optional

import httpx
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from hvac_crm.core.database import Database, utcnow
from hvac_crm.models import (
    Customer,
    RequestStatus,
    ServiceRequest,
    ServiceType,
    Technician,
)
from hvac_crm.utils.notifications import SmsNotifier


class Seeder:
    """Inserts committed rows for a test through one session."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._customers = 0

    async def service_type(
        self,
        name: str = "AC Repair",
        base_price: Optional[Decimal] = Decimal("129.00"),
        duration: Optional[int] = 90,
    ) -> ServiceType:
        service_type = ServiceType(
            service_name=name, base_price=base_price, estimated_duration_minutes=duration
        )
        self.session.add(service_type)
        await self.session.commit()
        return service_type

    async def technician(
        self,
        name: str = "Sam Rivera",
        phone: str = "412-555-0101",
        status: str = "available",
        specialization: Optional[str] = "cooling",
    ) -> Technician:
        technician = Technician(
            name=name, phone=phone, status=status, specialization=specialization
        )
        self.session.add(technician)
        await self.session.commit()
        return technician

    async def request(
        self,
        status: RequestStatus = RequestStatus.PENDING,
        priority: int = 0,
        preferred_date: Optional[date] = None,
        scheduled_date: Optional[date] = None,
        scheduled_time: Optional[time] = None,
        technician: Optional[Technician] = None,
        service_type: Optional[ServiceType] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> ServiceRequest:
        self._customers += 1
        customer = Customer(
            name=f"Customer {self._customers}",
            phone=f"412-555-{self._customers:04d}",
            email=f"customer{self._customers}@example.com",
            address=f"{self._customers} Liberty Ave",
            city="Pittsburgh",
            state="PA",
            zip="15222",
        )
        self.session.add(customer)
        await self.session.flush()

        updated_at = updated_at or created_at or utcnow()
        request = ServiceRequest(
            customer_id=customer.customer_id,
            service_type_id=service_type.service_type_id if service_type else None,
            assigned_tech_id=technician.tech_id if technician else None,
            status=status,
            priority=priority,
            preferred_date=preferred_date,
            preferred_time="8am-12pm",
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            issue_description="No cooling upstairs",
            notes=notes,
            version=1,
            created_at=created_at or updated_at,
            updated_at=updated_at,
        )
        self.session.add(request)
        await self.session.commit()
        return request


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    """In-memory SQLite database shared by every session in the test."""
    db = Database(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await db.create_all()
    try:
        yield db
    finally:
        await db.dispose()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Session handed to services under test."""
    async with database.session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def seed(database: Database) -> AsyncGenerator[Seeder, None]:
    async with database.session() as session:
        yield Seeder(session)


@pytest_asyncio.fixture
async def sms_notifier() -> AsyncGenerator[SmsNotifier, None]:
    """Notifier without credentials, so every send is a recorded no-op."""
    notifier = SmsNotifier("", "", "", client=httpx.AsyncClient())
    try:
        yield notifier
    finally:
        await notifier.close()


@pytest_asyncio.fixture
async def api_client(
    database: Database, sms_notifier: SmsNotifier
) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX AsyncClient against the FastAPI app with test resources attached."""
    from hvac_crm.core.rate_limiter import limiter
    from hvac_crm.main import app

    app.state.database = database
    app.state.redis = None
    app.state.sms = sms_notifier
    limiter.reset()

    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
        for name in ("database", "redis", "sms"):
            if hasattr(app.state, name):
                delattr(app.state, name)
        limiter.reset()
