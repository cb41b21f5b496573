#!/usr/bin/env python3
"""
Seed script to create a demo restaurant with tables, schedules and users
"""

import asyncio
import uuid
from datetime import datetime, time, timedelta

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

DEMO_TABLES = [
    # name, capacity, zone, joinable
    ("T1", 2, "salle", True),
    ("T2", 2, "salle", True),
    ("T3", 4, "salle", True),
    ("T4", 4, "salle", False),
    ("T5", 6, "salle", False),
    ("T10", 2, "terrasse", True),
    ("T11", 4, "terrasse", True),
    ("T12", 4, "terrasse", False),
    ("P1", 10, "salon_prive", False),
]


async def seed_demo_data():
    """Seed demo data for development"""
    from resto_booking.database import SessionLocal, engine, Base
    from resto_booking.models.reservation import ServiceType
    from resto_booking.models.restaurant import Restaurant
    from resto_booking.models.schedule import Schedule
    from resto_booking.models.table import Table, TableZone
    from resto_booking.models.user import User, UserRole
    from sqlalchemy import select

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if demo restaurant already exists
        result = await db.execute(
            select(Restaurant).where(Restaurant.name == "Le Petit Bistrot")
        )
        existing = result.scalar_one_or_none()

        if existing:
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo restaurant...")

        restaurant = Restaurant(
            id=uuid.uuid4(),
            name="Le Petit Bistrot",
            timezone="Europe/Paris",
            auto_confirm_enabled=True,
            group_pending_threshold=8,
            table_joining_enabled=True,
            max_tables_per_group=3,
        )
        db.add(restaurant)
        await db.flush()

        print(f"Created restaurant: {restaurant.name} (ID: {restaurant.id})")

        for name, capacity, zone, joinable in DEMO_TABLES:
            db.add(Table(
                restaurant_id=restaurant.id,
                name=name,
                capacity=capacity,
                zone=TableZone(zone),
                is_joinable=joinable,
            ))

        # Closed on Sunday evening and all day Monday
        for day_of_week in range(7):
            db.add(Schedule(
                restaurant_id=restaurant.id,
                day_of_week=day_of_week,
                service_type=ServiceType.MIDI,
                is_open=day_of_week != 0,
                start_time=time(12, 0),
                end_time=time(14, 30),
                max_covers=40,
            ))
            db.add(Schedule(
                restaurant_id=restaurant.id,
                day_of_week=day_of_week,
                service_type=ServiceType.SOIR,
                is_open=day_of_week not in (0, 6),
                start_time=time(19, 0),
                end_time=time(22, 30),
            ))

        subscription_end = datetime.utcnow() + timedelta(days=365)

        super_admin = User(
            email="admin@resto-booking.dev",
            hashed_password=pwd_context.hash("admin123"),
            full_name="Super Admin",
            role=UserRole.SUPER_ADMIN,
            is_active=True,
            is_verified=True,
        )
        db.add(super_admin)

        owner = User(
            restaurant_id=restaurant.id,
            email="owner@petit-bistrot.fr",
            hashed_password=pwd_context.hash("owner123"),
            full_name="Camille Martin",
            role=UserRole.RESTAURANT_ADMIN,
            is_active=True,
            is_verified=True,
            subscription_status="active",
            subscription_end_date=subscription_end,
        )
        db.add(owner)

        await db.commit()

        print(f"""
Demo data created successfully!

Restaurant: Le Petit Bistrot
  ID: {restaurant.id}
  Tables: {len(DEMO_TABLES)}

Users:
  Super Admin:
    Email: admin@resto-booking.dev
    Password: admin123

  Restaurant Admin:
    Email: owner@petit-bistrot.fr
    Password: owner123

Public booking widget:
  /public/restaurants/{restaurant.id}/slots?date=YYYY-MM-DD&service_type=SOIR
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
