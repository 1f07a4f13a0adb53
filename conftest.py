import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_BACKEND", "cache+memory://")

import pytest
import uuid
from unittest.mock import MagicMock
from datetime import datetime, timedelta, timezone
from fakeredis import aioredis as fake_aioredis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.session import get_db
from app.models.base import Base
from app.models.lead import Lead
from app.models.user import User
from app.core import redis as redis_module
from app.core.security import create_access_token, hash_password
from app.core.config import settings
from app.core.enums import UserRole
import app.api.follow_ups as follow_ups_api


TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite://")

PARTNER_REFERRAL_CODE = "CPTEST01"


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine):
    AsyncSessionTest = sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        future=True
    )
    async with AsyncSessionTest() as session:
        yield session


@pytest.fixture
def fake_redis(monkeypatch):
    """Swap the shared Redis client for an in-process fake."""
    client = fake_aioredis.FakeRedis()
    monkeypatch.setattr(redis_module, "redis", client)
    return client


@pytest.fixture
def reminder_scheduler(monkeypatch):
    scheduler = MagicMock()
    monkeypatch.setattr(follow_ups_api, "schedule_reminder", scheduler)
    return scheduler


@pytest.fixture
async def test_client(db_session, reminder_scheduler):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def _create_user(db_session, username, role, referral_code=None):
    user = User(
        username=username,
        password_hash=hash_password("password123"),
        role=role,
        full_name=username.replace("_", " ").title(),
        email=f"{username}@example.com",
        referral_code=referral_code,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def admin_user(db_session):
    return await _create_user(db_session, "builder_admin", UserRole.ADMIN)


@pytest.fixture
async def agent_user(db_session):
    return await _create_user(db_session, "agent_one", UserRole.AGENT)


@pytest.fixture
async def other_agent_user(db_session):
    return await _create_user(db_session, "agent_two", UserRole.AGENT)


@pytest.fixture
async def partner_user(db_session):
    return await _create_user(
        db_session, "partner_one", UserRole.CHANNEL_PARTNER, referral_code=PARTNER_REFERRAL_CODE
    )


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture
def agent_headers(agent_user):
    return auth_headers(agent_user)


@pytest.fixture
def other_agent_headers(other_agent_user):
    return auth_headers(other_agent_user)


@pytest.fixture
def partner_headers(partner_user):
    return auth_headers(partner_user)


@pytest.fixture
def expired_token(admin_user):
    from jose import jwt
    from app.core.security import JWT_ALGORITHM

    payload = {
        "sub": admin_user.id,
        "role": UserRole.ADMIN.value,
        "exp": datetime.now(timezone.utc) - timedelta(hours=1)
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=JWT_ALGORITHM)


@pytest.fixture
def valid_lead_data():
    return {
        "name": "Priya Sharma",
        "phone": "9876543210",
        "email": "priya@example.com",
        "budget": "7500000",
        "notes": "Looking for a 3BHK",
    }


@pytest.fixture
def valid_idempotency_key():
    return str(uuid.uuid4())


@pytest.fixture
def create_lead_factory(db_session):
    """Insert a lead directly, bypassing the services."""
    async def _create_lead(name="Test Lead", **kwargs):
        data = {
            "name": name,
            "phone": "9000000000",
            "status": "new",
            "source": "website",
        }
        data.update(kwargs)
        lead = Lead(**data)
        db_session.add(lead)
        await db_session.commit()
        await db_session.refresh(lead)
        return lead

    return _create_lead


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "auth: marks tests related to authentication"
    )
    config.addinivalue_line(
        "markers", "crud: marks tests related to CRUD operations"
    )
    config.addinivalue_line(
        "markers", "follow_ups: marks tests related to follow-up scheduling"
    )
    config.addinivalue_line(
        "markers", "timeline: marks tests related to the lead timeline"
    )
    config.addinivalue_line(
        "markers", "webhooks: marks tests related to webhooks"
    )
    config.addinivalue_line(
        "markers", "rate_limit: marks tests related to rate limiting"
    )
    config.addinivalue_line(
        "markers", "idempotency: marks tests related to idempotency"
    )
