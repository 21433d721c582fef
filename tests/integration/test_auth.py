"""Integration tests for registration, login and the profile endpoint."""

import pytest
from services.marketplace_service.models import ModerationStatus
from tests.conftest import auth_headers, create_vendor
from tests.factories import PASSWORD


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_customer(client):
    response = await client.post(
        "/api/auth/register",
        json={"email": "Shopper@Example.com", "password": "secret1"},
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["token"]
    assert data["user"]["email"] == "shopper@example.com"
    assert data["user"]["role"] == "CUSTOMER"
    assert data["user"]["vendor_status"] is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_vendor_starts_pending(client):
    response = await client.post(
        "/api/auth/register",
        json={
            "email": "grocer@example.com",
            "password": "secret1",
            "role": "VENDOR",
            "shop_name": "Corner Grocer",
        },
    )

    assert response.status_code == 201, response.text
    assert response.json()["user"]["vendor_status"] == "PENDING"

    profile = await client.get(
        "/api/users/profile",
        headers={"Authorization": f"Bearer {response.json()['token']}"},
    )
    assert profile.status_code == 200
    body = profile.json()
    assert body["landing_view"] == "vendor_pending"
    assert "vendor_dashboard" not in body["permitted_views"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_vendor_requires_shop_name(client):
    response = await client.post(
        "/api/auth/register",
        json={"email": "noshop@example.com", "password": "secret1", "role": "VENDOR"},
    )

    assert response.status_code == 422
    errors = response.json()["detail"]["errors"]
    assert errors[0]["field"] == "shop_name"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_admin_is_forbidden(client):
    response = await client.post(
        "/api/auth/register",
        json={"email": "boss@example.com", "password": "secret1", "role": "ADMIN"},
    )

    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_duplicate_email(client):
    payload = {"email": "twice@example.com", "password": "secret1"}
    assert (await client.post("/api/auth/register", json=payload)).status_code == 201

    response = await client.post("/api/auth/register", json=payload)

    assert response.status_code == 409


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_validation_errors_are_per_field(client):
    response = await client.post(
        "/api/auth/register", json={"email": "not-an-email", "password": "123"}
    )

    assert response.status_code == 422
    body = response.json()["detail"]
    assert body["message"] == "Validation failed"
    fields = {e["field"] for e in body["errors"]}
    assert {"email", "password"} <= fields


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_login_returns_token_with_vendor_profile(client, db_session):
    user, vendor = await create_vendor(db_session)

    response = await client.post(
        "/api/auth/login", json={"email": user.email, "password": PASSWORD}
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["user"]["role"] == "VENDOR"
    assert data["user"]["vendor_status"] == "APPROVED"

    profile = await client.get(
        "/api/users/profile", headers={"Authorization": f"Bearer {data['token']}"}
    )
    assert profile.json()["vendor_profile_id"] == str(vendor.id)
    assert profile.json()["landing_view"] == "vendor_dashboard"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_login_wrong_password(client, db_session):
    user, _ = await create_vendor(db_session)

    response = await client.post(
        "/api/auth/login", json={"email": user.email, "password": "wrong-password"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
async def test_login_unknown_email(client):
    response = await client.post(
        "/api/auth/login", json={"email": "ghost@example.com", "password": "secret1"}
    )

    assert response.status_code == 401


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_profile_requires_token(client):
    response = await client.get("/api/users/profile")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_profile_rejects_garbage_token(client):
    response = await client.get(
        "/api/users/profile", headers={"Authorization": "Bearer not-a-jwt"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
async def test_profile_for_rejected_vendor(client, db_session):
    user, vendor = await create_vendor(db_session, status=ModerationStatus.REJECTED)

    response = await client.get("/api/users/profile", headers=auth_headers(user, vendor))

    assert response.status_code == 200
    assert response.json()["vendor_status"] == "REJECTED"
    assert response.json()["landing_view"] == "vendor_pending"
