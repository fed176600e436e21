import os
import tempfile
from datetime import date, time, timedelta

_TEST_DIR = tempfile.mkdtemp(prefix="collegebites-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/bookings.db"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("INTERNAL_API_KEY", "test-internal-key")
os.environ.setdefault("CHECKOUT_RATE_LIMIT", "1000/minute")

import httpx
import pytest

from main import app
from shared.config.database import AsyncSessionLocal, Base, engine
from shared.security import identity_from_token
from services.auth_service.schemas import UserCreate
from services.auth_service.service import AuthService
from services.schedule_service.models import DriverSchedule
from services.schedule_service.repository import ScheduleRepository
from services.order_service.repository import OrderRepository
from services.tracking_service.feed import location_feed

INTERNAL_HEADERS = {"X-Internal-API-Key": os.environ["INTERNAL_API_KEY"]}


@pytest.fixture(autouse=True)
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    location_feed.clear()
    yield
    location_feed.clear()
    await engine.dispose()


@pytest.fixture
async def db():
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def sign_up(db, email, user_type="student", name=None):
    token = await AuthService.sign_up(
        db, UserCreate(email=email, password="secret123", name=name, user_type=user_type)
    )
    return identity_from_token(token.access_token), token.access_token


@pytest.fixture
async def driver(db):
    identity, _ = await sign_up(db, "driver@collegebites.com", "driver", name="Dana Driver")
    return identity


@pytest.fixture
async def parent(db):
    identity, _ = await sign_up(db, "parent@collegebites.com", "parent")
    return identity


@pytest.fixture
async def student(db):
    identity, _ = await sign_up(db, "student@collegebites.com", "student")
    return identity


async def make_schedule(db, driver, capacity=5, available=None, days_ahead=3, at=time(9, 30)):
    schedule = DriverSchedule(
        driver_id=driver.user_id,
        from_location="Boston, MA",
        to_location="Amherst, MA",
        departure_date=date.today() + timedelta(days=days_ahead),
        departure_time=at,
        capacity=capacity,
        available_capacity=capacity if available is None else available,
    )
    return await ScheduleRepository.create_schedule(db, schedule)


async def fresh_schedule(schedule_id):
    """Reads the schedule through a new session, bypassing any identity map."""
    async with AsyncSessionLocal() as session:
        return await ScheduleRepository.get_schedule(session, schedule_id)


async def fresh_order(order_id):
    async with AsyncSessionLocal() as session:
        return await OrderRepository.get_order(session, order_id)
