"""Cart operations for customers.

Read-time rule: a cart line whose product is no longer APPROVED is hidden,
and the quantity shown is clamped to the product's current stock. The stored
row is left as-is; checkout re-validates against live stock.
"""

import uuid
from decimal import Decimal

from libs.auth.models import AuthUser
from libs.common.errors import Conflict, NotFound
from libs.common.logging import get_logger
from services.marketplace_service.models import (
    CartItem,
    ModerationStatus,
    Product,
    VendorProfile,
)
from services.marketplace_service.schemas import CartLineResponse, CartResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)


def clamp_quantity(requested: int, stock: int) -> int:
    """Quantity a cart line may show: never more than what is in stock."""
    return max(0, min(requested, stock))


async def _get_available_product(db: AsyncSession, product_id: uuid.UUID) -> Product:
    result = await db.execute(select(Product).where(Product.id == product_id))
    product = result.scalar_one_or_none()
    if not product or product.status != ModerationStatus.APPROVED:
        raise NotFound("Product not found or not available.")
    return product


async def _get_line(
    db: AsyncSession, customer_id: uuid.UUID, product_id: uuid.UUID
) -> CartItem | None:
    result = await db.execute(
        select(CartItem).where(
            CartItem.customer_id == customer_id,
            CartItem.product_id == product_id,
        )
    )
    return result.scalar_one_or_none()


async def get_cart(db: AsyncSession, user: AuthUser) -> CartResponse:
    """Return the customer's cart with approved products and clamped quantities."""
    query = (
        select(CartItem)
        .where(CartItem.customer_id == user.user_uuid)
        .options(selectinload(CartItem.product).selectinload(Product.vendor))
        .order_by(CartItem.created_at)
    )
    result = await db.execute(query)

    lines = []
    total = Decimal("0")
    for item in result.scalars().all():
        product = item.product
        if not product or product.status != ModerationStatus.APPROVED:
            continue

        quantity = clamp_quantity(item.quantity, product.stock)
        line_total = product.price * quantity
        total += line_total
        vendor: VendorProfile | None = product.vendor
        lines.append(
            CartLineResponse(
                id=item.id,
                product_id=product.id,
                product_name=product.name,
                shop_name=vendor.shop_name if vendor else None,
                image_url=product.image_url,
                unit_price=product.price,
                stock=product.stock,
                quantity=quantity,
                line_total=line_total,
            )
        )

    return CartResponse(items=lines, total_amount=total)


async def add_to_cart(
    db: AsyncSession, user: AuthUser, product_id: uuid.UUID, quantity: int
) -> CartItem:
    """Add ``quantity`` of a product, incrementing an existing line."""
    product = await _get_available_product(db, product_id)

    line = await _get_line(db, user.user_uuid, product_id)
    new_quantity = quantity + (line.quantity if line else 0)
    if new_quantity > product.stock:
        raise Conflict(
            f"Not enough stock for {product.name}. Available: {product.stock}"
        )

    if line:
        line.quantity = new_quantity
    else:
        line = CartItem(
            customer_id=user.user_uuid, product_id=product_id, quantity=quantity
        )
        db.add(line)

    await db.commit()
    await db.refresh(line)
    return line


async def set_quantity(
    db: AsyncSession, user: AuthUser, product_id: uuid.UUID, quantity: int
) -> CartItem | None:
    """Set a line's quantity; zero removes the line and returns None."""
    product = await _get_available_product(db, product_id)
    if quantity > product.stock:
        raise Conflict(
            f"Cannot set quantity more than available stock ({product.stock})."
        )

    line = await _get_line(db, user.user_uuid, product_id)
    if not line:
        raise NotFound("Product is not in your cart.")

    if quantity == 0:
        await db.delete(line)
        await db.commit()
        return None

    line.quantity = quantity
    await db.commit()
    await db.refresh(line)
    return line


async def remove_from_cart(
    db: AsyncSession, user: AuthUser, product_id: uuid.UUID
) -> None:
    line = await _get_line(db, user.user_uuid, product_id)
    if not line:
        raise NotFound("Product is not in your cart.")
    await db.delete(line)
    await db.commit()
