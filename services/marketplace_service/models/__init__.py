"""Marketplace Service models package."""

from services.marketplace_service.models.accounts import User, VendorProfile
from services.marketplace_service.models.catalog import Category, Product, Review
from services.marketplace_service.models.commerce import (
    CartItem,
    Order,
    OrderItem,
    Payment,
)
from services.marketplace_service.models.enums import (
    ModerationStatus,
    OrderStatus,
    PaymentStatus,
    Role,
)

__all__ = [
    "CartItem",
    "Category",
    "ModerationStatus",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Payment",
    "PaymentStatus",
    "Product",
    "Review",
    "Role",
    "User",
    "VendorProfile",
]
