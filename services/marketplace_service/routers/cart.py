"""Cart router: customers manage the lines they intend to check out."""

import uuid

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import require_customer
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.marketplace_service.schemas import (
    CartItemCreate,
    CartItemUpdate,
    CartResponse,
)
from services.marketplace_service.services import cart_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartResponse)
async def get_cart(
    current_user: AuthUser = Depends(require_customer),
    db: AsyncSession = Depends(get_async_db),
):
    return await cart_ops.get_cart(db, current_user)


@router.post("", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    payload: CartItemCreate,
    current_user: AuthUser = Depends(require_customer),
    db: AsyncSession = Depends(get_async_db),
):
    """Add a product, incrementing the line if it is already in the cart."""
    await cart_ops.add_to_cart(db, current_user, payload.product_id, payload.quantity)
    return await cart_ops.get_cart(db, current_user)


@router.put("/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: uuid.UUID,
    payload: CartItemUpdate,
    current_user: AuthUser = Depends(require_customer),
    db: AsyncSession = Depends(get_async_db),
):
    """Set a line's quantity. Zero removes it."""
    await cart_ops.set_quantity(db, current_user, product_id, payload.quantity)
    return await cart_ops.get_cart(db, current_user)


@router.delete("/{product_id}", response_model=CartResponse)
async def remove_cart_item(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(require_customer),
    db: AsyncSession = Depends(get_async_db),
):
    await cart_ops.remove_from_cart(db, current_user, product_id)
    return await cart_ops.get_cart(db, current_user)
