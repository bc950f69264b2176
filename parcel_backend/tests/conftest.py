"""
Centralized Test Configuration.
"""

import pytest
from decimal import Decimal
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool, Pool

from parcel_backend.app.main import app
from parcel_backend.app.db.session import get_db, Base
from parcel_backend.app.core.identity import create_identity_token
from parcel_backend.app.models.enums import UserRole, RiderApprovalStatus, RiderWorkStatus
from parcel_backend.app.models.parcel import Parcel
from parcel_backend.app.models.parcel_enums import DeliveryStatus, CashoutStatus
from parcel_backend.app.models.rider import Rider
from parcel_backend.app.models.user import User
import parcel_backend.app.services.role_cache as role_cache_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# Mock Redis for the role cache
class MockRedis:
    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def delete(self, key):
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def flushdb(self):
        self.store = {}


@pytest.fixture(scope="session")
def mock_redis():
    return MockRedis()


@pytest.fixture(scope="session", autouse=True)
def apply_overrides(mock_redis):
    """Apply overrides once for the session."""
    original_client = role_cache_module.redis_client
    role_cache_module.redis_client = mock_redis

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield

    app.dependency_overrides = {}
    role_cache_module.redis_client = original_client


@pytest.fixture(autouse=True)
async def setup_database(mock_redis):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await mock_redis.flushdb()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


def auth_headers(email: str) -> dict:
    return {"Authorization": f"Bearer {create_identity_token(email)}"}


@pytest.fixture
async def admin_user(db_session):
    user = User(email="admin@mail.com", display_name="Admin", role=UserRole.ADMIN)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user.email)


@pytest.fixture
async def rider(db_session):
    """An accepted, available rider with a matching rider account."""
    db_session.add(User(email="rider@mail.com", display_name="Rahim", role=UserRole.RIDER))
    rider = Rider(
        name="Rahim",
        email="rider@mail.com",
        phone="01700000000",
        region="Dhaka",
        district="Dhaka",
        status=RiderApprovalStatus.ACCEPTED,
        rider_status=RiderWorkStatus.AVAILABLE
    )
    db_session.add(rider)
    await db_session.commit()
    await db_session.refresh(rider)
    return rider


@pytest.fixture
def rider_headers(rider):
    return auth_headers(rider.email)


@pytest.fixture
def make_parcel(db_session):
    """Factory inserting a parcel directly, bypassing the booking endpoint."""
    counter = {"n": 0}

    async def _make(**overrides) -> Parcel:
        counter["n"] += 1
        fields = dict(
            tracking_id=f"TRK-TEST-{counter['n']:04d}",
            title=f"Parcel {counter['n']}",
            parcel_type="document",
            created_by="sender@mail.com",
            sender_name="Sender",
            sender_region="Dhaka",
            receiver_name="Receiver",
            receiver_region="Dhaka",
            cost=Decimal("100.00"),
            delivery_status=DeliveryStatus.CREATED,
            cashout_status=CashoutStatus.NOT_CASHED,
        )
        fields.update(overrides)
        parcel = Parcel(**fields)
        db_session.add(parcel)
        await db_session.commit()
        await db_session.refresh(parcel)
        return parcel

    return _make


def assigned_to(rider: Rider, **overrides) -> dict:
    """Parcel fields for a parcel already carrying `rider`."""
    fields = dict(
        assigned_rider=True,
        rider_id=rider.id,
        rider_name=rider.name,
        rider_email=rider.email,
        delivery_status=DeliveryStatus.IN_TRANSIT,
    )
    fields.update(overrides)
    return fields


@pytest.fixture
def auth():
    return auth_headers


@pytest.fixture
def on_rider():
    return assigned_to
