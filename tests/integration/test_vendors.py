"""Integration tests for vendor approval and vendor self-service."""

import uuid

import pytest
from services.marketplace_service.models import ModerationStatus
from tests.conftest import (
    auth_headers,
    create_admin,
    create_category,
    create_customer,
    create_product,
    create_vendor,
)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_lists_and_approves_vendors(client, db_session):
    admin = await create_admin(db_session)
    vendor_user, vendor = await create_vendor(db_session, status=ModerationStatus.PENDING)
    headers = auth_headers(admin)

    listing = await client.get("/api/vendors", headers=headers)
    assert listing.status_code == 200
    assert [v["email"] for v in listing.json()] == [vendor_user.email]

    approved = await client.put(
        f"/api/vendors/{vendor.id}/status", json={"status": "APPROVED"}, headers=headers
    )
    assert approved.status_code == 200
    assert approved.json()["status"] == "APPROVED"

    profile = await client.get(
        "/api/users/profile", headers=auth_headers(vendor_user, vendor)
    )
    assert profile.json()["landing_view"] == "vendor_dashboard"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_vendor_status_only_approve_or_reject(client, db_session):
    admin = await create_admin(db_session)
    _, vendor = await create_vendor(db_session, status=ModerationStatus.PENDING)

    response = await client.put(
        f"/api/vendors/{vendor.id}/status",
        json={"status": "INACTIVE"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_vendor_admin_routes_are_admin_only(client, db_session):
    customer = await create_customer(db_session)
    admin = await create_admin(db_session)

    listing = await client.get("/api/vendors", headers=auth_headers(customer))
    missing = await client.put(
        f"/api/vendors/{uuid.uuid4()}/status",
        json={"status": "APPROVED"},
        headers=auth_headers(admin),
    )

    assert listing.status_code == 403
    assert missing.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_vendor_sees_all_own_products(client, db_session):
    """The shop view includes listings still awaiting moderation."""
    vendor_user, vendor = await create_vendor(db_session)
    category = await create_category(db_session)
    await create_product(db_session, vendor, category, status=ModerationStatus.APPROVED)
    await create_product(db_session, vendor, category, status=ModerationStatus.PENDING)

    response = await client.get("/api/vendors/me", headers=auth_headers(vendor_user, vendor))

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == str(vendor.id)
    assert {p["status"] for p in body["products"]} == {"APPROVED", "PENDING"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_vendor_updates_shop(client, db_session):
    vendor_user, vendor = await create_vendor(db_session)

    response = await client.put(
        "/api/vendors/me",
        json={"shop_name": "  Fresh Farm  ", "shop_description": "Organic"},
        headers=auth_headers(vendor_user, vendor),
    )

    assert response.status_code == 200, response.text
    assert response.json()["shop_name"] == "Fresh Farm"
    assert response.json()["shop_description"] == "Organic"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_shop_routes_are_vendor_only(client, db_session):
    customer = await create_customer(db_session)

    response = await client.get("/api/vendors/me", headers=auth_headers(customer))

    assert response.status_code == 403
