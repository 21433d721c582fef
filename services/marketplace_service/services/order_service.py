"""Order placement and order status transitions.

Checkout runs in two phases:

1. ``build_checkout_plan`` reads the cart and validates every line against
   live product state, producing a plain ``CheckoutPlan``. No writes.
2. ``commit_checkout`` applies the plan in one transaction: conditional
   stock decrement, order + items, cart clear, payment row. If any product
   no longer has enough stock when its row is updated, the whole transaction
   is rolled back and ``InsufficientStock`` is raised, so two checkouts racing
   for the last unit cannot both succeed whatever the isolation level.

Notifications are not sent from here; callers dispatch them after commit.
"""

import time
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from libs.auth.models import AuthUser
from libs.common.errors import Forbidden, NotFound, ValidationError
from libs.common.logging import get_logger
from services.marketplace_service.errors import (
    EmptyCart,
    InsufficientStock,
    ProductUnavailable,
)
from services.marketplace_service.models import (
    CartItem,
    ModerationStatus,
    Order,
    OrderItem,
    OrderStatus,
    Payment,
    PaymentStatus,
    Product,
    VendorProfile,
)
from services.marketplace_service.schemas import (
    OrderItemResponse,
    OrderResponse,
    PaymentResponse,
)
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

MIN_SHIPPING_ADDRESS_LENGTH = 5
MIN_CONTACT_PHONE_LENGTH = 10
MOCK_PAYMENT_METHOD = "Mock Payment"


# ============================================================================
# CHECKOUT PLAN
# ============================================================================


@dataclass(frozen=True)
class CheckoutLine:
    product_id: uuid.UUID
    product_name: str
    vendor_id: uuid.UUID
    vendor_user_id: uuid.UUID
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class CheckoutPlan:
    customer_id: uuid.UUID
    shipping_address: str
    contact_phone: str
    lines: tuple[CheckoutLine, ...]

    @property
    def total_amount(self) -> Decimal:
        return sum((line.line_total for line in self.lines), Decimal("0"))

    @property
    def vendor_user_ids(self) -> list[uuid.UUID]:
        """Distinct vendor users in the order, first-seen order."""
        return list(dict.fromkeys(line.vendor_user_id for line in self.lines))


@dataclass(frozen=True)
class PlacedOrder:
    order: Order
    plan: CheckoutPlan


def _validate_contact(shipping_address: str, contact_phone: str) -> None:
    if len((shipping_address or "").strip()) < MIN_SHIPPING_ADDRESS_LENGTH:
        raise ValidationError("shipping_address", "Shipping address is required.")
    if len((contact_phone or "").strip()) < MIN_CONTACT_PHONE_LENGTH:
        raise ValidationError("contact_phone", "Contact phone is required.")


async def build_checkout_plan(
    db: AsyncSession,
    user: AuthUser,
    *,
    shipping_address: str,
    contact_phone: str,
) -> CheckoutPlan:
    """Validate the caller's cart and price it. First failure aborts."""
    if not user.is_customer:
        raise Forbidden("Only customers can place orders.")

    _validate_contact(shipping_address, contact_phone)

    query = (
        select(CartItem)
        .where(CartItem.customer_id == user.user_uuid)
        .options(selectinload(CartItem.product).selectinload(Product.vendor))
        .order_by(CartItem.created_at)
    )
    result = await db.execute(query)
    cart_items = result.scalars().all()

    if not cart_items:
        raise EmptyCart()

    lines = []
    for item in cart_items:
        product = item.product
        if not product or product.status != ModerationStatus.APPROVED:
            raise ProductUnavailable(item.product_id, product.name if product else None)
        if item.quantity > product.stock:
            raise InsufficientStock(product.id, product.name, product.stock)

        lines.append(
            CheckoutLine(
                product_id=product.id,
                product_name=product.name,
                vendor_id=product.vendor_id,
                vendor_user_id=product.vendor.user_id,
                quantity=item.quantity,
                unit_price=product.price,
            )
        )

    return CheckoutPlan(
        customer_id=user.user_uuid,
        shipping_address=shipping_address.strip(),
        contact_phone=contact_phone.strip(),
        lines=tuple(lines),
    )


async def _reserve_stock(db: AsyncSession, line: CheckoutLine) -> None:
    """Decrement stock only if enough is still there; raise otherwise."""
    result = await db.execute(
        update(Product)
        .where(
            Product.id == line.product_id,
            Product.status == ModerationStatus.APPROVED,
            Product.stock >= line.quantity,
        )
        .values(stock=Product.stock - line.quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        return

    current = await db.execute(
        select(Product.stock, Product.status).where(Product.id == line.product_id)
    )
    row = current.first()
    if row is None or row.status != ModerationStatus.APPROVED:
        raise ProductUnavailable(line.product_id, line.product_name)
    raise InsufficientStock(line.product_id, line.product_name, row.stock)


async def commit_checkout(db: AsyncSession, plan: CheckoutPlan) -> Order:
    """Persist the order aggregate atomically. All writes commit or none do."""
    order_id = uuid.uuid4()
    total_amount = plan.total_amount

    try:
        for line in plan.lines:
            await _reserve_stock(db, line)

        order = Order(
            id=order_id,
            customer_id=plan.customer_id,
            total_amount=total_amount,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING.value,
            shipping_address=plan.shipping_address,
            contact_phone=plan.contact_phone,
            items=[
                OrderItem(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    price_at_order=line.unit_price,
                )
                for line in plan.lines
            ],
            payments=[
                Payment(
                    amount=total_amount,
                    payment_method=MOCK_PAYMENT_METHOD,
                    status=PaymentStatus.COMPLETED.value,
                    transaction_id=f"mock_txn_{int(time.time() * 1000)}_{str(order_id)[:8]}",
                )
            ],
        )
        db.add(order)

        await db.execute(
            delete(CartItem).where(CartItem.customer_id == plan.customer_id)
        )

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Order %s placed by %s: %d line(s), total %s",
        order_id,
        plan.customer_id,
        len(plan.lines),
        total_amount,
    )
    return await get_order_aggregate(db, order_id)


async def place_order(
    db: AsyncSession,
    user: AuthUser,
    *,
    shipping_address: str,
    contact_phone: str,
) -> PlacedOrder:
    """Convert the caller's cart into an order."""
    plan = await build_checkout_plan(
        db, user, shipping_address=shipping_address, contact_phone=contact_phone
    )
    order = await commit_checkout(db, plan)
    return PlacedOrder(order=order, plan=plan)


# ============================================================================
# QUERIES
# ============================================================================


def _with_aggregate(query):
    return query.options(
        selectinload(Order.items).selectinload(OrderItem.product),
        selectinload(Order.payments),
        selectinload(Order.customer),
    )


async def get_order_aggregate(db: AsyncSession, order_id: uuid.UUID) -> Order:
    result = await db.execute(
        _with_aggregate(select(Order).where(Order.id == order_id)).execution_options(
            populate_existing=True
        )
    )
    order = result.scalar_one_or_none()
    if not order:
        raise NotFound("Order not found.")
    return order


async def resolve_vendor_profile_id(
    db: AsyncSession, user: AuthUser
) -> Optional[uuid.UUID]:
    """Vendor profile for a VENDOR caller: token claim first, then lookup."""
    if not user.is_vendor:
        return None
    if user.vendor_profile_uuid:
        return user.vendor_profile_uuid
    result = await db.execute(
        select(VendorProfile.id).where(VendorProfile.user_id == user.user_uuid)
    )
    return result.scalar_one_or_none()


async def vendor_has_items_in_order(
    db: AsyncSession, vendor_profile_id: uuid.UUID, order_id: uuid.UUID
) -> bool:
    result = await db.execute(
        select(func.count(OrderItem.id))
        .join(Product, Product.id == OrderItem.product_id)
        .where(OrderItem.order_id == order_id, Product.vendor_id == vendor_profile_id)
    )
    return (result.scalar() or 0) > 0


async def list_customer_orders(db: AsyncSession, user: AuthUser) -> list[Order]:
    if not user.is_customer:
        raise Forbidden("Only customers can view their orders.")
    result = await db.execute(
        _with_aggregate(
            select(Order)
            .where(Order.customer_id == user.user_uuid)
            .order_by(Order.created_at.desc())
        )
    )
    return list(result.scalars().all())


async def list_vendor_orders(db: AsyncSession, user: AuthUser) -> list[Order]:
    vendor_profile_id = await resolve_vendor_profile_id(db, user)
    if not vendor_profile_id:
        raise NotFound("Vendor profile not found for authenticated vendor.")
    result = await db.execute(
        _with_aggregate(
            select(Order)
            .where(
                Order.items.any(
                    OrderItem.product.has(Product.vendor_id == vendor_profile_id)
                )
            )
            .order_by(Order.created_at.desc())
        )
    )
    return list(result.scalars().all())


async def list_all_orders(db: AsyncSession) -> list[Order]:
    result = await db.execute(
        _with_aggregate(select(Order).order_by(Order.created_at.desc()))
    )
    return list(result.scalars().all())


async def get_order_for_user(
    db: AsyncSession, user: AuthUser, order_id: uuid.UUID
) -> Order:
    """Owner customer, a vendor with a product in the order, or an admin."""
    order = await get_order_aggregate(db, order_id)

    if user.is_admin:
        return order
    if user.is_customer and order.customer_id == user.user_uuid:
        return order
    if user.is_vendor:
        vendor_profile_id = await resolve_vendor_profile_id(db, user)
        if vendor_profile_id and any(
            item.product and item.product.vendor_id == vendor_profile_id
            for item in order.items
        ):
            return order

    raise Forbidden("You do not have permission to view this order.")


# ============================================================================
# STATUS
# ============================================================================


async def update_order_status(
    db: AsyncSession,
    user: AuthUser,
    order_id: uuid.UUID,
    new_status: OrderStatus | str,
) -> Order:
    """Set an order's status. Any status may move to any other status."""
    if not (user.is_admin or user.is_vendor):
        raise Forbidden("Only admin or vendors can update order status.")

    order = await get_order_aggregate(db, order_id)

    if user.is_vendor:
        vendor_profile_id = await resolve_vendor_profile_id(db, user)
        if not vendor_profile_id:
            raise Forbidden("Vendor profile ID not found for authenticated vendor.")
        if not await vendor_has_items_in_order(db, vendor_profile_id, order.id):
            raise Forbidden("You can only update orders that contain your products.")

    try:
        new_status = OrderStatus(new_status)
    except ValueError:
        raise ValidationError(
            "status",
            f"Status must be one of: {', '.join(s.value for s in OrderStatus)}",
        )

    previous = order.status
    order.status = new_status
    await db.commit()

    logger.info(
        "Order %s status %s -> %s by %s (%s)",
        order.id,
        previous.value,
        new_status.value,
        user.user_id,
        user.role,
    )
    return await get_order_aggregate(db, order.id)


# ============================================================================
# SERIALIZATION
# ============================================================================


def order_response(order: Order) -> OrderResponse:
    """Build the API view of a fully loaded order aggregate."""
    return OrderResponse(
        id=order.id,
        customer_id=order.customer_id,
        customer_email=order.customer.email if order.customer else None,
        order_date=order.order_date,
        total_amount=order.total_amount,
        status=order.status,
        payment_status=order.payment_status,
        shipping_address=order.shipping_address,
        contact_phone=order.contact_phone,
        items=[
            OrderItemResponse(
                id=item.id,
                product_id=item.product_id,
                product_name=item.product.name if item.product else None,
                vendor_id=item.product.vendor_id if item.product else None,
                quantity=item.quantity,
                price_at_order=item.price_at_order,
                line_total=item.line_total,
            )
            for item in order.items
        ],
        payments=[PaymentResponse.model_validate(p) for p in order.payments],
        created_at=order.created_at,
        updated_at=order.updated_at,
    )
