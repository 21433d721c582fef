"""Role-aware view selection for API clients.

Clients ask the profile endpoint which views to offer instead of deriving
them from token flags themselves. Both functions are pure: evaluate once per
navigation with the caller's current role and vendor approval state.
"""

import enum
from typing import Optional

from services.marketplace_service.models import ModerationStatus, Role


class View(str, enum.Enum):
    HOME = "home"
    PRODUCTS = "products"
    PRODUCT_DETAIL = "product_detail"
    AUTH = "auth"
    UNAUTHORIZED = "unauthorized"
    CART = "cart"
    CHECKOUT = "checkout"
    MY_ORDERS = "my_orders"
    ORDER_DETAIL = "order_detail"
    VENDOR_PENDING = "vendor_pending"
    VENDOR_DASHBOARD = "vendor_dashboard"
    ADMIN_DASHBOARD = "admin_dashboard"


PUBLIC_VIEWS = frozenset(
    {View.HOME, View.PRODUCTS, View.PRODUCT_DETAIL, View.UNAUTHORIZED}
)

ROLE_VIEWS = {
    Role.CUSTOMER: frozenset(
        {View.CART, View.CHECKOUT, View.MY_ORDERS, View.ORDER_DETAIL}
    ),
    Role.VENDOR: frozenset({View.VENDOR_PENDING}),
    Role.ADMIN: frozenset({View.ADMIN_DASHBOARD, View.ORDER_DETAIL}),
}


def permitted_views(
    role: Optional[Role],
    vendor_status: Optional[ModerationStatus],
    authenticated: bool,
) -> frozenset[View]:
    """Views the caller may open."""
    if not authenticated or role is None:
        return PUBLIC_VIEWS | {View.AUTH}

    views = PUBLIC_VIEWS | ROLE_VIEWS.get(Role(role), frozenset())
    if role == Role.VENDOR and vendor_status == ModerationStatus.APPROVED:
        views = views | {View.VENDOR_DASHBOARD}
    return views


def landing_view(
    role: Optional[Role],
    vendor_status: Optional[ModerationStatus],
    authenticated: bool,
) -> View:
    """Where a generic "dashboard" navigation should land."""
    if not authenticated or role is None:
        return View.HOME
    if role == Role.ADMIN:
        return View.ADMIN_DASHBOARD
    if role == Role.VENDOR:
        if vendor_status == ModerationStatus.APPROVED:
            return View.VENDOR_DASHBOARD
        return View.VENDOR_PENDING
    if role == Role.CUSTOMER:
        return View.MY_ORDERS
    return View.HOME


def can_open(
    view: View,
    role: Optional[Role],
    vendor_status: Optional[ModerationStatus],
    authenticated: bool,
) -> bool:
    return view in permitted_views(role, vendor_status, authenticated)
