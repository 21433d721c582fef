"""Unit tests for role-aware view selection."""

import pytest
from services.marketplace_service.models import ModerationStatus, Role
from services.marketplace_service.navigation import (
    PUBLIC_VIEWS,
    View,
    can_open,
    landing_view,
    permitted_views,
)


@pytest.mark.unit
def test_anonymous_sees_public_views_and_auth():
    views = permitted_views(None, None, authenticated=False)

    assert views == PUBLIC_VIEWS | {View.AUTH}
    assert View.CART not in views
    assert landing_view(None, None, authenticated=False) == View.HOME


@pytest.mark.unit
def test_role_without_session_is_anonymous():
    assert permitted_views(Role.ADMIN, None, authenticated=False) == (
        PUBLIC_VIEWS | {View.AUTH}
    )


@pytest.mark.unit
def test_customer_views():
    views = permitted_views(Role.CUSTOMER, None, authenticated=True)

    assert {View.CART, View.CHECKOUT, View.MY_ORDERS, View.ORDER_DETAIL} <= views
    assert View.VENDOR_DASHBOARD not in views
    assert View.ADMIN_DASHBOARD not in views
    assert landing_view(Role.CUSTOMER, None, authenticated=True) == View.MY_ORDERS


@pytest.mark.unit
@pytest.mark.parametrize(
    "status",
    [ModerationStatus.PENDING, ModerationStatus.REJECTED, ModerationStatus.INACTIVE],
)
def test_unapproved_vendor_only_sees_pending_page(status):
    views = permitted_views(Role.VENDOR, status, authenticated=True)

    assert View.VENDOR_PENDING in views
    assert View.VENDOR_DASHBOARD not in views
    assert landing_view(Role.VENDOR, status, authenticated=True) == View.VENDOR_PENDING


@pytest.mark.unit
def test_approved_vendor_gets_dashboard():
    approved = ModerationStatus.APPROVED

    assert can_open(View.VENDOR_DASHBOARD, Role.VENDOR, approved, authenticated=True)
    assert not can_open(View.CART, Role.VENDOR, approved, authenticated=True)
    assert landing_view(Role.VENDOR, approved, authenticated=True) == View.VENDOR_DASHBOARD


@pytest.mark.unit
def test_admin_views():
    views = permitted_views(Role.ADMIN, None, authenticated=True)

    assert View.ADMIN_DASHBOARD in views
    assert View.CHECKOUT not in views
    assert landing_view(Role.ADMIN, None, authenticated=True) == View.ADMIN_DASHBOARD


@pytest.mark.unit
def test_role_accepts_plain_strings():
    assert permitted_views("CUSTOMER", None, authenticated=True) == permitted_views(
        Role.CUSTOMER, None, authenticated=True
    )
