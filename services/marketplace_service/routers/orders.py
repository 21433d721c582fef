"""Orders router: checkout, order history and status updates."""

import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from libs.auth.dependencies import get_current_user, require_admin, require_vendor
from libs.auth.models import AuthUser
from libs.common.rate_limit import checkout_limit
from libs.db.session import get_async_db
from services.marketplace_service.schemas import (
    OrderCreate,
    OrderPlacedResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from services.marketplace_service.services import order_service
from services.marketplace_service.services.notifications import (
    ConnectionManager,
    get_connection_manager,
    notify_new_order,
    notify_order_status,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/orders", tags=["orders"])


# ============================================================================
# CHECKOUT
# ============================================================================


@router.post("", response_model=OrderPlacedResponse, status_code=status.HTTP_201_CREATED)
@checkout_limit
async def place_order(
    request: Request,
    payload: OrderCreate,
    background_tasks: BackgroundTasks,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    notifier: ConnectionManager = Depends(get_connection_manager),
):
    """
    Convert the caller's cart into an order.

    Vendors with items in the order are notified after the transaction
    commits; a failed notification never undoes the order.
    """
    placed = await order_service.place_order(
        db,
        current_user,
        shipping_address=payload.shipping_address,
        contact_phone=payload.contact_phone,
    )

    background_tasks.add_task(
        notify_new_order,
        notifier,
        order_id=placed.order.id,
        vendor_user_ids=placed.plan.vendor_user_ids,
        items_count=len(placed.plan.lines),
    )

    return OrderPlacedResponse(
        message="Order placed successfully!",
        order=order_service.order_response(placed.order),
    )


# ============================================================================
# LISTINGS
# ============================================================================


@router.get("/my", response_model=list[OrderResponse])
async def list_my_orders(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    orders = await order_service.list_customer_orders(db, current_user)
    return [order_service.order_response(o) for o in orders]


@router.get("/vendor", response_model=list[OrderResponse])
async def list_vendor_orders(
    current_user: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    """Orders containing at least one of the vendor's products."""
    orders = await order_service.list_vendor_orders(db, current_user)
    return [order_service.order_response(o) for o in orders]


@router.get("", response_model=list[OrderResponse])
async def list_all_orders(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    orders = await order_service.list_all_orders(db)
    return [order_service.order_response(o) for o in orders]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    order = await order_service.get_order_for_user(db, current_user, order_id)
    return order_service.order_response(order)


# ============================================================================
# STATUS
# ============================================================================


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    background_tasks: BackgroundTasks,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    notifier: ConnectionManager = Depends(get_connection_manager),
):
    """Set an order's status and notify the owning customer."""
    order = await order_service.update_order_status(
        db, current_user, order_id, payload.status
    )

    background_tasks.add_task(
        notify_order_status,
        notifier,
        order_id=order.id,
        customer_id=order.customer_id,
        new_status=order.status.value,
    )

    return order_service.order_response(order)
