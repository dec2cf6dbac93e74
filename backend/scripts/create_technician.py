"""
Script to add a field technician to the dispatch roster.

Usage:
    python scripts/create_technician.py

Environment Variables Required:
    DATABASE_URL - PostgreSQL connection string
"""

import asyncio
import sys

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from hvac_crm.core.database import Database
from hvac_crm.models import Technician
from hvac_crm.models.technicians import DEFAULT_TECHNICIAN_STATUS


async def create_technician():
    """Create a technician interactively."""
    print("=" * 60)
    print("HVAC CRM Technician Setup")
    print("=" * 60)
    print()

    name = input("Enter technician name: ").strip()
    if not name:
        print("Error: Name is required")
        sys.exit(1)

    phone = input("Enter mobile phone [optional]: ").strip() or None
    email = input("Enter email [optional]: ").strip() or None
    specialization = (
        input("Specialization (heating, cooling, refrigeration) [optional]: ").strip() or None
    )

    print()
    print("Creating technician...")

    database = Database.from_settings()
    try:
        async with database.session() as db:
            stmt = select(Technician).where(Technician.name == name)
            existing = (await db.execute(stmt)).scalar_one_or_none()
            if existing:
                confirm = input(f"A technician named '{name}' already exists. Add anyway? [y/N]: ")
                if confirm.strip().lower() != "y":
                    sys.exit(1)

            technician = Technician(
                name=name,
                phone=phone,
                email=email,
                specialization=specialization,
                status=DEFAULT_TECHNICIAN_STATUS,
            )
            db.add(technician)
            await db.commit()

            print()
            print("Technician created successfully!")
            print()
            print(f"Name: {technician.name}")
            print(f"Status: {technician.status}")
            print(f"ID: {technician.tech_id}")
            print()
            print(f"Assign jobs with: PUT /api/v1/dispatch/bookings/{{id}}/assign (tech_id={technician.tech_id})")
            print()
    except SQLAlchemyError as e:
        print(f"Error creating technician: {e}")
        sys.exit(1)
    finally:
        await database.dispose()


if __name__ == "__main__":
    asyncio.run(create_technician())
