"""Seed script for marketplace data.

Creates the bootstrap admin (ADMIN_EMAIL / ADMIN_PASSWORD), a set of grocery
categories, and one approved demo vendor with a few approved products so the
checkout flow can be exercised end-to-end.

Usage:
    cd freshmart-backend
    python -m services.marketplace_service.seed_marketplace_data
"""

import asyncio
from decimal import Decimal

from libs.auth.security import hash_password
from libs.common.config import get_settings
from libs.db.config import AsyncSessionLocal
from services.marketplace_service.models import (
    Category,
    ModerationStatus,
    Product,
    Role,
    User,
    VendorProfile,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

settings = get_settings()

CATEGORIES = [
    ("Fruits", "Fresh seasonal fruit"),
    ("Vegetables", "Locally grown vegetables"),
    ("Dairy", "Milk, cheese and yoghurt"),
    ("Bakery", "Bread and pastries baked daily"),
]

DEMO_VENDOR_EMAIL = "greengrocer@example.com"
DEMO_VENDOR_PASSWORD = "greengrocer123"


async def ensure_admin(db: AsyncSession) -> User | None:
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        print("ADMIN_EMAIL / ADMIN_PASSWORD not set. Skipping admin.")
        return None

    email = settings.ADMIN_EMAIL.lower()
    result = await db.execute(select(User).where(User.email == email))
    admin = result.scalar_one_or_none()
    if admin:
        print(f"Admin {email} already exists.")
        return admin

    admin = User(
        email=email,
        password_hash=hash_password(settings.ADMIN_PASSWORD),
        role=Role.ADMIN,
    )
    db.add(admin)
    print(f"Created admin {email}.")
    return admin


async def seed_catalog(db: AsyncSession) -> None:
    count = (await db.execute(select(func.count(Category.id)))).scalar()
    if count:
        print(f"Catalog already exists ({count} categories). Skipping seed.")
        return

    categories = {
        name: Category(name=name, description=description)
        for name, description in CATEGORIES
    }
    db.add_all(categories.values())

    vendor_user = User(
        email=DEMO_VENDOR_EMAIL,
        password_hash=hash_password(DEMO_VENDOR_PASSWORD),
        role=Role.VENDOR,
    )
    vendor = VendorProfile(
        user=vendor_user,
        shop_name="The Green Grocer",
        shop_description="Family-run greengrocer.",
        status=ModerationStatus.APPROVED,
    )
    db.add_all([vendor_user, vendor])

    products = [
        Product(
            vendor=vendor,
            category=categories["Fruits"],
            name="Organic Apples",
            description="Crisp red apples, per kg.",
            price=Decimal("3.50"),
            stock=40,
            status=ModerationStatus.APPROVED,
        ),
        Product(
            vendor=vendor,
            category=categories["Vegetables"],
            name="Heirloom Tomatoes",
            description="Mixed heirloom tomatoes, per kg.",
            price=Decimal("4.20"),
            stock=25,
            status=ModerationStatus.APPROVED,
        ),
        Product(
            vendor=vendor,
            category=categories["Bakery"],
            name="Sourdough Loaf",
            description="Naturally leavened, 800g.",
            price=Decimal("5.00"),
            stock=12,
            status=ModerationStatus.APPROVED,
        ),
    ]
    db.add_all(products)

    print("=" * 60)
    print("Catalog seeded:")
    print(f"  Categories: {len(categories)}")
    print(f"  Demo vendor: {DEMO_VENDOR_EMAIL}")
    print(f"  Products: {len(products)}")
    print("=" * 60)


async def seed_marketplace_data():
    async with AsyncSessionLocal() as db:
        print("Seeding marketplace data...")
        await ensure_admin(db)
        await seed_catalog(db)
        await db.commit()
        print("Marketplace data seeded successfully!")


if __name__ == "__main__":
    asyncio.run(seed_marketplace_data())
