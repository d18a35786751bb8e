"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for settings validation
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("PAYMENT_GATEWAY_API_KEY", "test-gateway-key")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.config.database import enable_sqlite_savepoints
from app.config.packages import PackageConfig
from app.models import Base
from app.services.deposit_service import DepositService
from app.services.package_catalog import PackageCatalogService
from app.services.user import UserService


# Two contiguous tiers plus an open-ended top tier
TEST_PACKAGES = (
    PackageConfig(
        name="P1",
        min_deposit=Decimal("0"),
        max_deposit=Decimal("999"),
        daily_rate=Decimal("1"),
    ),
    PackageConfig(
        name="P2",
        min_deposit=Decimal("1000"),
        max_deposit=Decimal("4999"),
        daily_rate=Decimal("1.5"),
    ),
    PackageConfig(
        name="P3",
        min_deposit=Decimal("5000"),
        max_deposit=Decimal("20000"),
        daily_rate=Decimal("2"),
    ),
)


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_maker):
    """Database session for one test."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def catalog(session):
    """Seed the test package table."""
    await PackageCatalogService(session).seed_defaults(TEST_PACKAGES)
    await session.commit()
    return TEST_PACKAGES


@pytest.fixture
def make_user(session):
    """Factory creating users, optionally under a referrer's invite code."""

    async def _make_user(username: str, referral_code: str | None = None):
        return await UserService(session).create_user(
            email=f"{username}@example.com",
            username=username,
            first_name=username.capitalize(),
            referral_code=referral_code,
        )

    return _make_user


@pytest.fixture
def fund(session):
    """Credit main balance through a confirmed deposit."""

    async def _fund(user_id: int, amount: str):
        return await DepositService(session).confirm_deposit(user_id, amount)

    return _fund


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.refresh = AsyncMock()
    return session
