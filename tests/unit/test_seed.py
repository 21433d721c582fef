"""Unit tests for the marketplace seed script."""

import pytest
from libs.auth.security import verify_password
from services.marketplace_service import seed_marketplace_data as seed
from services.marketplace_service.models import (
    Category,
    ModerationStatus,
    Product,
    Role,
    User,
)
from sqlalchemy import func, select


async def _count(db, model) -> int:
    return (await db.execute(select(func.count(model.id)))).scalar()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_seed_catalog_runs_once(db_session):
    await seed.seed_catalog(db_session)
    await db_session.commit()

    assert await _count(db_session, Category) == len(seed.CATEGORIES)
    products = (await db_session.execute(select(Product))).scalars().all()
    assert len(products) == 3
    assert {p.status for p in products} == {ModerationStatus.APPROVED}

    # A second run leaves the catalog alone
    await seed.seed_catalog(db_session)
    await db_session.commit()
    assert await _count(db_session, Product) == 3


@pytest.mark.asyncio
@pytest.mark.unit
async def test_ensure_admin_skipped_without_credentials(db_session, monkeypatch):
    monkeypatch.setattr(seed.settings, "ADMIN_EMAIL", None)
    monkeypatch.setattr(seed.settings, "ADMIN_PASSWORD", None)

    assert await seed.ensure_admin(db_session) is None
    assert await _count(db_session, User) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_ensure_admin_creates_and_reuses(db_session, monkeypatch):
    monkeypatch.setattr(seed.settings, "ADMIN_EMAIL", "Root@Example.com")
    monkeypatch.setattr(seed.settings, "ADMIN_PASSWORD", "s3cret-admin")

    admin = await seed.ensure_admin(db_session)
    await db_session.commit()

    assert admin.email == "root@example.com"
    assert admin.role == Role.ADMIN
    assert verify_password("s3cret-admin", admin.password_hash)

    again = await seed.ensure_admin(db_session)
    assert again.id == admin.id
    assert await _count(db_session, User) == 1
