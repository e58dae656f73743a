"""
Pytest configuration and fixtures.
"""

import os

# Point the application engine at an in-memory database before anything imports settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from reviewpilot.main import app
from reviewpilot.core.database import Base
from reviewpilot.api.review_requests import get_now, get_repository
from reviewpilot.schemas.review_requests import Campaign, CampaignRules, Customer, QuietHours
from reviewpilot.services.review_request_repository import ReviewRequestRepository

# Import all models to register them with Base.metadata
import reviewpilot.models  # noqa: F401

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# 2024-03-15 03:00 UTC, a Friday night before the default 09:00 window opens
FIXED_NOW = datetime(2024, 3, 15, 3, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def make_campaign():
    """Factory for campaigns with sane defaults; rule overrides go in `rules`."""
    def _make(rules=None, **overrides) -> Campaign:
        fields = {
            "business_name": "Ocean Side Plumbing",
            "review_link": "https://g.page/r/ocean-side-plumbing/review",
        }
        fields.update(overrides)
        rule_fields = {"quiet_hours": QuietHours(start="09:00", end="19:00")}
        rule_fields.update(rules or {})
        return Campaign(rules=CampaignRules(**rule_fields), **fields)
    return _make


@pytest.fixture
def make_customer(now):
    def _make(customer_id: str = "c1", **overrides) -> Customer:
        fields = {
            "id": customer_id,
            "customer_name": "Maria Lopez",
            "phone": "5551234567",
            "created_at": now,
        }
        fields.update(overrides)
        return Customer(**fields)
    return _make


@pytest.fixture(scope="function")
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Session factory bound to a fresh in-memory database for each test.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def repository(session_factory) -> ReviewRequestRepository:
    return ReviewRequestRepository(session_factory)


@pytest.fixture(scope="function")
async def client(repository: ReviewRequestRepository, now: datetime) -> AsyncGenerator[AsyncClient, None]:
    """
    Test client with the repository and request clock overridden.
    """
    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_now] = lambda: now

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
