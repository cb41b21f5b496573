"""Test configuration and fixtures"""

import pytest
from datetime import date, datetime, time, timedelta
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from uuid import uuid4

from resto_booking.main import app
from resto_booking.database import Base, get_db
from resto_booking.context import RequestContext
from resto_booking.models.reservation import Reservation, ReservationStatus, ServiceType
from resto_booking.models.restaurant import Restaurant
from resto_booking.models.schedule import Schedule
from resto_booking.models.table import Table, TableZone
from resto_booking.models.user import User, UserRole
from resto_booking.services.clock import local_today, to_utc_naive
from resto_booking.store import EntityStore
from resto_booking.api.auth import get_password_hash


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TIMEZONE = "Europe/Paris"

SERVICE_HOURS = {
    ServiceType.MIDI: (time(12, 0), time(14, 30)),
    ServiceType.SOIR: (time(19, 0), time(22, 30)),
}


def booking_day(days_ahead: int = 7) -> date:
    """A restaurant-local date safely inside the booking window"""
    return local_today(TIMEZONE) + timedelta(days=days_ahead)


def local_start(day: date, hour: int = 20, minute: int = 0) -> datetime:
    """Naive UTC instant of a restaurant-local wall-clock time"""
    return to_utc_naive(datetime.combine(day, time(hour, minute)), TIMEZONE)


async def make_reservation(
    store: EntityStore,
    restaurant: Restaurant,
    day: date,
    service_type: ServiceType = ServiceType.SOIR,
    guests_count: int = 2,
    status: ReservationStatus = ReservationStatus.CONFIRMED,
    table_ids=(),
    hour: int = None,
    last_name: str = "Durand",
) -> Reservation:
    """Insert a reservation directly, bypassing availability checks"""
    if hour is None:
        hour = 12 if service_type == ServiceType.MIDI else 20
    start = local_start(day, hour)
    return await store.create(
        Reservation,
        restaurant_id=restaurant.id,
        reference=f"T{uuid4().hex[:8].upper()}",
        first_name="Jeanne",
        last_name=last_name,
        phone="0601020304",
        guests_count=guests_count,
        service_type=service_type,
        date_time_start=start,
        date_time_end=start + timedelta(minutes=90),
        status=status,
        table_ids=[str(t) for t in table_ids],
        released_table_ids=[],
        source="manual",
    )


@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def store(test_db):
    return EntityStore(test_db)


async def create_restaurant(db, name: str = "Test Bistrot", **policy) -> Restaurant:
    """Restaurant open for lunch and dinner every day"""
    restaurant = Restaurant(id=uuid4(), name=name, timezone=TIMEZONE, **policy)
    db.add(restaurant)
    await db.flush()

    for day_of_week in range(7):
        for service_type, (start_time, end_time) in SERVICE_HOURS.items():
            db.add(Schedule(
                restaurant_id=restaurant.id,
                day_of_week=day_of_week,
                service_type=service_type,
                is_open=True,
                start_time=start_time,
                end_time=end_time,
            ))
    await db.commit()
    return restaurant


@pytest.fixture
async def test_restaurant(test_db):
    """Create a test restaurant"""
    return await create_restaurant(test_db)


@pytest.fixture
async def test_tables(test_db, test_restaurant):
    """Two small salle tables, a terrace four-top and a private room"""
    tables = [
        Table(id=uuid4(), restaurant_id=test_restaurant.id, name="T1", capacity=2, zone=TableZone.SALLE),
        Table(id=uuid4(), restaurant_id=test_restaurant.id, name="T2", capacity=4, zone=TableZone.SALLE),
        Table(id=uuid4(), restaurant_id=test_restaurant.id, name="T3", capacity=4, zone=TableZone.TERRASSE),
        Table(id=uuid4(), restaurant_id=test_restaurant.id, name="P1", capacity=10, zone=TableZone.SALON_PRIVE),
    ]

    for table in tables:
        test_db.add(table)

    await test_db.commit()
    return tables


@pytest.fixture
def ctx(test_restaurant):
    """Staff request context for service-level tests"""
    return RequestContext(
        restaurant_id=test_restaurant.id,
        user_id=uuid4(),
        role=UserRole.STAFF,
        actor_name="Test Staff",
    )


async def create_user(db, email: str, role: UserRole, restaurant_id=None, subscribed: bool = True) -> User:
    user = User(
        id=uuid4(),
        restaurant_id=restaurant_id,
        email=email,
        hashed_password=get_password_hash("testpass123"),
        full_name="Test User",
        role=role,
        is_active=True,
        is_verified=True,
        subscription_status="active" if subscribed else "canceled",
        subscription_end_date=datetime.utcnow() + timedelta(days=30 if subscribed else -1),
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def test_user(test_db, test_restaurant):
    """Create a restaurant admin with an active subscription"""
    return await create_user(test_db, "test@example.com", UserRole.RESTAURANT_ADMIN, test_restaurant.id)


@pytest.fixture
async def test_staff_user(test_db, test_restaurant):
    """Create a staff member with an active subscription"""
    return await create_user(test_db, "staff@example.com", UserRole.STAFF, test_restaurant.id)


@pytest.fixture
async def test_admin_user(test_db):
    """Create a super admin user"""
    return await create_user(test_db, "admin@example.com", UserRole.SUPER_ADMIN, subscribed=False)


@pytest.fixture
async def client(test_db):
    """Create test client with overridden database"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def authenticate(client: AsyncClient, user: User) -> AsyncClient:
    from resto_booking.api.auth import create_token

    token = create_token(user)
    client.headers["Authorization"] = f"Bearer {token}"
    return client


@pytest.fixture
async def authenticated_client(client, test_user):
    """Create authenticated test client"""
    return authenticate(client, test_user)


@pytest.fixture
async def staff_client(client, test_staff_user):
    """Create staff authenticated test client"""
    return authenticate(client, test_staff_user)


@pytest.fixture
async def admin_client(client, test_admin_user):
    """Create admin authenticated test client"""
    return authenticate(client, test_admin_user)
