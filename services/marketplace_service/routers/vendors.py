"""Vendor router: admin approval and the vendor's own shop profile."""

import uuid

from fastapi import APIRouter, Depends
from libs.auth.dependencies import require_admin, require_vendor
from libs.auth.models import AuthUser
from libs.common.errors import NotFound
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.marketplace_service.models import Product, VendorProfile
from services.marketplace_service.routers._helpers import product_response, rating_stats
from services.marketplace_service.schemas import (
    VendorDetail,
    VendorProfileUpdate,
    VendorResponse,
    VendorStatusUpdate,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

router = APIRouter(prefix="/vendors", tags=["vendors"])
logger = get_logger(__name__)


def _vendor_response(vendor: VendorProfile) -> VendorResponse:
    return VendorResponse(
        id=vendor.id,
        user_id=vendor.user_id,
        email=vendor.user.email if vendor.user else None,
        shop_name=vendor.shop_name,
        shop_description=vendor.shop_description,
        status=vendor.status,
        created_at=vendor.created_at,
    )


async def _load_own_vendor(db: AsyncSession, user: AuthUser) -> VendorProfile:
    result = await db.execute(
        select(VendorProfile)
        .where(VendorProfile.user_id == user.user_uuid)
        .options(
            selectinload(VendorProfile.user),
            selectinload(VendorProfile.products).selectinload(Product.category),
            selectinload(VendorProfile.products).selectinload(Product.vendor),
        )
        .execution_options(populate_existing=True)
    )
    vendor = result.scalar_one_or_none()
    if not vendor:
        raise NotFound("Vendor profile not found.")
    return vendor


async def _vendor_detail(db: AsyncSession, vendor: VendorProfile) -> VendorDetail:
    products = sorted(vendor.products, key=lambda p: p.created_at, reverse=True)
    stats = await rating_stats(db, (p.id for p in products))
    return VendorDetail(
        **_vendor_response(vendor).model_dump(),
        products=[product_response(p, stats) for p in products],
    )


# ============================================================================
# ADMIN
# ============================================================================


@router.get("", response_model=list[VendorResponse])
async def list_vendors(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(VendorProfile)
        .options(selectinload(VendorProfile.user))
        .order_by(VendorProfile.created_at.desc())
    )
    return [_vendor_response(v) for v in result.scalars().all()]


@router.put("/{vendor_id}/status", response_model=VendorResponse)
async def update_vendor_status(
    vendor_id: uuid.UUID,
    payload: VendorStatusUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Approve or reject a vendor application."""
    result = await db.execute(
        select(VendorProfile)
        .where(VendorProfile.id == vendor_id)
        .options(selectinload(VendorProfile.user))
    )
    vendor = result.scalar_one_or_none()
    if not vendor:
        raise NotFound("Vendor not found.")

    vendor.status = payload.status
    await db.commit()
    logger.info(
        "Vendor %s set to %s by %s",
        vendor_id,
        payload.status.value,
        current_user.user_id,
    )
    return _vendor_response(vendor)


# ============================================================================
# VENDOR SELF-SERVICE
# ============================================================================


@router.get("/me", response_model=VendorDetail)
async def get_my_vendor_profile(
    current_user: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    """The caller's shop with all of its listings, whatever their status."""
    vendor = await _load_own_vendor(db, current_user)
    return await _vendor_detail(db, vendor)


@router.put("/me", response_model=VendorDetail)
async def update_my_vendor_profile(
    payload: VendorProfileUpdate,
    current_user: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    vendor = await _load_own_vendor(db, current_user)

    update_data = payload.model_dump(exclude_unset=True)
    if update_data.get("shop_name"):
        update_data["shop_name"] = update_data["shop_name"].strip()
    elif "shop_name" in update_data:
        del update_data["shop_name"]

    for field, value in update_data.items():
        setattr(vendor, field, value)

    await db.commit()
    vendor = await _load_own_vendor(db, current_user)
    return await _vendor_detail(db, vendor)
