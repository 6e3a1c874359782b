import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.database import Base, build_engine, get_db
from app.main import app
from app.core.constants import DonationStatus, FoodType, UserRole
from app.core.security import create_access_token
from app.models.user import User
from app.models.organization import Organization
from app.models.charity import Charity
from app.models.volunteer import Volunteer
from app.models.donation import Donation

# Use SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

engine = build_engine(TEST_DATABASE_URL, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# الرباط - موقع الجهة المتبرعة
ORG_LAT, ORG_LNG = 34.0209, -6.8416
KM_IN_LAT_DEGREES = 1 / 111.195


@pytest.fixture(scope="session")
def event_loop():
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionLocal() as session:
        yield session


@pytest.fixture
def session_factory():
    return TestSessionLocal


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except BaseException:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(principal_id) -> dict:
        token = create_access_token({"sub": str(principal_id)})
        return {"Authorization": f"Bearer {token}"}

    return _headers


def north_of_org(km: float):
    return ORG_LAT + km * KM_IN_LAT_DEGREES, ORG_LNG


async def create_user(session: AsyncSession, role: UserRole, full_name: str) -> User:
    user = User(id=uuid.uuid4(), role=role, full_name=full_name, phone="+212600000000")
    session.add(user)
    await session.flush()
    return user


async def create_volunteer(
    session: AsyncSession,
    km: float,
    rating: float = 5.0,
    available: bool = True,
    name: str = "متطوع",
) -> Volunteer:
    user = await create_user(session, UserRole.VOLUNTEER, name)
    lat, lng = north_of_org(km)
    volunteer = Volunteer(
        user_id=user.id,
        available=available,
        latitude=lat,
        longitude=lng,
        rating=rating,
        total_pickups=0,
    )
    session.add(volunteer)
    await session.flush()
    return volunteer


def make_donation(organization: Organization, **overrides) -> Donation:
    now = datetime.now(timezone.utc)
    fields = dict(
        organization_id=organization.id,
        food_type=FoodType.PRODUCE,
        quantity=10,
        description="خضر طازجة من السوق",
        expiry=now + timedelta(hours=6),
        pickup_window_start=now + timedelta(hours=1),
        pickup_window_end=now + timedelta(hours=3),
        status=DonationStatus.PENDING,
    )
    fields.update(overrides)
    return Donation(**fields)


@pytest.fixture
def volunteer_factory(db_session: AsyncSession):
    async def _create(km: float, rating: float = 5.0, available: bool = True) -> Volunteer:
        volunteer = await create_volunteer(db_session, km, rating=rating, available=available)
        await db_session.commit()
        return volunteer

    return _create


@pytest.fixture
def donation_factory(db_session: AsyncSession, organization: Organization):
    async def _create(**overrides) -> Donation:
        donation = make_donation(organization, **overrides)
        db_session.add(donation)
        await db_session.commit()
        return donation

    return _create


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    user = await create_user(db_session, UserRole.ADMIN, "مدير النظام")
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def organization(db_session: AsyncSession) -> Organization:
    user = await create_user(db_session, UserRole.DONOR, "مطعم الأمل")
    org = Organization(
        user_id=user.id,
        name="مطعم الأمل",
        type="restaurant",
        address="شارع محمد الخامس، الرباط",
        latitude=ORG_LAT,
        longitude=ORG_LNG,
        contact_person="سعيد",
        contact_phone="+212600000001",
        verified=True,
    )
    db_session.add(org)
    await db_session.commit()
    return org


@pytest_asyncio.fixture
async def other_organization(db_session: AsyncSession) -> Organization:
    user = await create_user(db_session, UserRole.DONOR, "مخبزة النور")
    org = Organization(
        user_id=user.id,
        name="مخبزة النور",
        type="bakery",
        address="حي أكدال، الرباط",
        latitude=ORG_LAT + 0.05,
        longitude=ORG_LNG,
        contact_person="فاطمة",
        contact_phone="+212600000002",
    )
    db_session.add(org)
    await db_session.commit()
    return org


@pytest_asyncio.fixture
async def charity(db_session: AsyncSession) -> Charity:
    user = await create_user(db_session, UserRole.CHARITY, "جمعية الخير")
    lat, lng = north_of_org(-1)
    charity = Charity(
        user_id=user.id,
        name="جمعية الخير",
        registration_number="RB-2024-001",
        address="حي يعقوب المنصور، الرباط",
        latitude=lat,
        longitude=lng,
        contact_person="خديجة",
        contact_phone="+212600000003",
        verified=True,
    )
    db_session.add(charity)
    await db_session.commit()
    return charity


@pytest_asyncio.fixture
async def volunteer_near(db_session: AsyncSession) -> Volunteer:
    """V1: على بعد 2 كم، تقييم 4.8"""
    volunteer = await create_volunteer(db_session, 2, rating=4.8, name="المتطوع الأول")
    await db_session.commit()
    return volunteer


@pytest_asyncio.fixture
async def volunteer_far(db_session: AsyncSession) -> Volunteer:
    """V2: على بعد 5 كم، تقييم 5.0"""
    volunteer = await create_volunteer(db_session, 5, rating=5.0, name="المتطوع الثاني")
    await db_session.commit()
    return volunteer


@pytest_asyncio.fixture
async def donation(donation_factory) -> Donation:
    return await donation_factory()
