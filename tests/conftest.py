import os

# Settings are read at import time; configure before importing the app
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./freshmart-test.db"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

from contextlib import contextmanager
from typing import Any, AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.auth.security import create_access_token
from libs.common.config import get_settings
from libs.db.base import Base
from libs.db.session import get_async_db
from services.marketplace_service import models  # noqa: F401
from services.marketplace_service.models import ModerationStatus, Role
from services.marketplace_service.services.notifications import (
    ConnectionManager,
    get_connection_manager,
)
from tests.factories import (
    CategoryFactory,
    ProductFactory,
    UserFactory,
    VendorProfileFactory,
)

get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """
    A fresh file-backed SQLite database per test.

    A file (not :memory:) lets separate sessions see each other's commits,
    which the concurrent checkout tests rely on.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'freshmart.db'}", poolclass=NullPool
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class RecordingConnection:
    """Stands in for a WebSocket; keeps every frame it was sent."""

    def __init__(self, fail: bool = False):
        self.sent: list[dict[str, Any]] = []
        self.fail = fail

    async def send_json(self, data: Any) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    def events(self, name: str) -> list[dict[str, Any]]:
        return [frame["data"] for frame in self.sent if frame["event"] == name]


@pytest.fixture
def notifier() -> ConnectionManager:
    return ConnectionManager()


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(session_factory, notifier) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient bound to the app, with one session per request
    against the test database and an isolated connection manager.
    """
    from services.marketplace_service.app.main import app

    async def _get_test_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_async_db] = _get_test_db
    app.dependency_overrides[get_connection_manager] = lambda: notifier

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------


def make_auth_user(user, vendor=None) -> AuthUser:
    """AuthUser matching the claims a login for ``user`` would carry."""
    return AuthUser(
        user_id=str(user.id),
        email=user.email,
        role=user.role.value,
        vendor_profile_id=str(vendor.id) if vendor else None,
    )


def auth_headers(user, vendor=None) -> dict[str, str]:
    token = create_access_token(
        user_id=str(user.id),
        role=user.role.value,
        email=user.email,
        vendor_profile_id=str(vendor.id) if vendor else None,
    )
    return {"Authorization": f"Bearer {token}"}


@contextmanager
def override_auth(app, user: AuthUser):
    """Temporarily authenticate every request as ``user``."""
    app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_current_user, None)


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------


async def create_customer(db: AsyncSession, **overrides):
    user = UserFactory.create(role=Role.CUSTOMER, **overrides)
    db.add(user)
    await db.commit()
    return user


async def create_admin(db: AsyncSession, **overrides):
    user = UserFactory.create(role=Role.ADMIN, **overrides)
    db.add(user)
    await db.commit()
    return user


async def create_vendor(
    db: AsyncSession, status: ModerationStatus = ModerationStatus.APPROVED, **overrides
):
    """Insert a VENDOR user and its profile. Returns (user, vendor_profile)."""
    user = UserFactory.create(role=Role.VENDOR)
    vendor = VendorProfileFactory.create(user_id=user.id, status=status, **overrides)
    db.add_all([user, vendor])
    await db.commit()
    return user, vendor


async def create_category(db: AsyncSession, **overrides):
    category = CategoryFactory.create(**overrides)
    db.add(category)
    await db.commit()
    return category


async def create_product(
    db: AsyncSession,
    vendor,
    category: Optional[Any] = None,
    **overrides,
):
    if category is None:
        category = await create_category(db)
    product = ProductFactory.create(
        vendor_id=vendor.id, category_id=category.id, **overrides
    )
    db.add(product)
    await db.commit()
    return product
