"""Product router: public catalog, vendor listings, moderation and reviews."""

import math
import uuid
from decimal import Decimal
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import require_admin, require_customer, require_vendor
from libs.auth.models import AuthUser
from libs.common.errors import Conflict, Forbidden, NotFound, ValidationError
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.marketplace_service.models import (
    Category,
    ModerationStatus,
    Product,
    Review,
    VendorProfile,
)
from services.marketplace_service.routers._helpers import product_response, rating_stats
from services.marketplace_service.schemas import (
    ProductCreate,
    ProductDetail,
    ProductListResponse,
    ProductResponse,
    ProductSearchParams,
    ProductStatusUpdate,
    ProductUpdate,
    ReviewCreate,
    ReviewResponse,
)
from services.marketplace_service.services.order_service import (
    resolve_vendor_profile_id,
)
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

router = APIRouter(prefix="/products", tags=["products"])
logger = get_logger(__name__)

SORT_COLUMNS = {
    "created_at": Product.created_at,
    "price": Product.price,
    "name": Product.name,
    "stock": Product.stock,
}


def _with_listing(query):
    return query.options(
        selectinload(Product.category), selectinload(Product.vendor)
    )


async def _load_product(db: AsyncSession, product_id: uuid.UUID) -> Optional[Product]:
    result = await db.execute(
        _with_listing(select(Product).where(Product.id == product_id)).execution_options(
            populate_existing=True
        )
    )
    return result.scalar_one_or_none()


async def _get_owned_product(
    db: AsyncSession, user: AuthUser, product_id: uuid.UUID
) -> Product:
    vendor_profile_id = await resolve_vendor_profile_id(db, user)
    product = await _load_product(db, product_id)
    if not product or not vendor_profile_id or product.vendor_id != vendor_profile_id:
        raise NotFound("Product not found or does not belong to your shop.")
    return product


async def _ensure_category(db: AsyncSession, category_id: uuid.UUID) -> None:
    if not await db.get(Category, category_id):
        raise ValidationError("category_id", "Category does not exist.")


# ============================================================================
# PUBLIC CATALOG
# ============================================================================


def search_params(
    search: Optional[str] = Query(None),
    category_id: Optional[uuid.UUID] = Query(None),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    sort_by: Literal["created_at", "price", "name", "stock"] = Query("created_at"),
    order: Literal["asc", "desc"] = Query("desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> ProductSearchParams:
    return ProductSearchParams(
        search=search,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
        order=order,
        page=page,
        limit=limit,
    )


@router.get("", response_model=ProductListResponse)
async def list_products(
    params: ProductSearchParams = Depends(search_params),
    db: AsyncSession = Depends(get_async_db),
):
    """List APPROVED products with search, filters, sorting and pagination."""
    filters = [Product.status == ModerationStatus.APPROVED]
    if params.search:
        pattern = f"%{params.search.strip()}%"
        filters.append(Product.name.ilike(pattern))
    if params.category_id:
        filters.append(Product.category_id == params.category_id)
    if params.min_price is not None:
        filters.append(Product.price >= params.min_price)
    if params.max_price is not None:
        filters.append(Product.price <= params.max_price)

    count_result = await db.execute(select(func.count(Product.id)).where(*filters))
    total = count_result.scalar() or 0

    column = SORT_COLUMNS[params.sort_by]
    query = (
        _with_listing(select(Product).where(*filters))
        .order_by(column.asc() if params.order == "asc" else column.desc(), Product.id)
        .offset((params.page - 1) * params.limit)
        .limit(params.limit)
    )
    result = await db.execute(query)
    products = result.scalars().all()

    stats = await rating_stats(db, (p.id for p in products))
    return ProductListResponse(
        data=[product_response(p, stats) for p in products],
        total=total,
        page=params.page,
        limit=params.limit,
        total_pages=math.ceil(total / params.limit) if total else 0,
    )


@router.get("/{product_id}", response_model=ProductDetail)
async def get_product(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    """Product detail with reviews. Only APPROVED products are visible."""
    result = await db.execute(
        _with_listing(select(Product).where(Product.id == product_id)).options(
            selectinload(Product.reviews).selectinload(Review.customer)
        )
    )
    product = result.scalar_one_or_none()
    if not product or product.status != ModerationStatus.APPROVED:
        raise NotFound("Product not found or not available.")

    stats = await rating_stats(db, [product.id])
    base = product_response(product, stats)
    reviews = sorted(product.reviews, key=lambda r: r.created_at, reverse=True)
    return ProductDetail(
        **base.model_dump(),
        shop_description=product.vendor.shop_description if product.vendor else None,
        reviews=[
            ReviewResponse(
                id=r.id,
                product_id=r.product_id,
                customer_id=r.customer_id,
                rating=r.rating,
                comment=r.comment,
                customer_email=r.customer.email if r.customer else None,
                created_at=r.created_at,
            )
            for r in reviews
        ],
    )


# ============================================================================
# VENDOR LISTINGS
# ============================================================================


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    current_user: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a listing. It awaits admin approval before going live."""
    result = await db.execute(
        select(VendorProfile).where(VendorProfile.user_id == current_user.user_uuid)
    )
    vendor = result.scalar_one_or_none()
    if not vendor or vendor.status != ModerationStatus.APPROVED:
        raise Forbidden("Your vendor account is not approved yet or does not exist.")

    await _ensure_category(db, payload.category_id)

    product = Product(
        vendor_id=vendor.id,
        category_id=payload.category_id,
        name=payload.name.strip(),
        description=payload.description,
        price=payload.price,
        stock=payload.stock,
        image_url=str(payload.image_url) if payload.image_url else None,
        status=ModerationStatus.PENDING,
    )
    db.add(product)
    await db.commit()

    logger.info("Product %s created by vendor %s", product.id, vendor.id)
    return product_response(await _load_product(db, product.id))


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    current_user: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    """Edit an owned listing. Edits send it back to PENDING review."""
    product = await _get_owned_product(db, current_user, product_id)

    update_data = payload.model_dump(exclude_unset=True)
    if update_data.get("category_id"):
        await _ensure_category(db, update_data["category_id"])
    if "image_url" in update_data and update_data["image_url"] is not None:
        update_data["image_url"] = str(update_data["image_url"])

    for field, value in update_data.items():
        if value is None and field in ("name", "price", "stock", "category_id"):
            continue
        setattr(product, field, value)
    product.status = ModerationStatus.PENDING

    await db.commit()
    product = await _load_product(db, product.id)
    stats = await rating_stats(db, [product.id])
    return product_response(product, stats)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    product = await _get_owned_product(db, current_user, product_id)
    try:
        await db.delete(product)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("Product is referenced by existing orders and cannot be deleted.")
    logger.info("Product %s deleted by %s", product_id, current_user.user_id)


# ============================================================================
# MODERATION
# ============================================================================


@router.put("/{product_id}/status", response_model=ProductResponse)
async def update_product_status(
    product_id: uuid.UUID,
    payload: ProductStatusUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    product = await _load_product(db, product_id)
    if not product:
        raise NotFound("Product not found.")

    product.status = payload.status
    await db.commit()
    logger.info(
        "Product %s moderated to %s by %s",
        product_id,
        payload.status.value,
        current_user.user_id,
    )

    product = await _load_product(db, product_id)
    stats = await rating_stats(db, [product.id])
    return product_response(product, stats)


# ============================================================================
# REVIEWS
# ============================================================================


@router.post(
    "/{product_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_review(
    product_id: uuid.UUID,
    payload: ReviewCreate,
    current_user: AuthUser = Depends(require_customer),
    db: AsyncSession = Depends(get_async_db),
):
    """One review per customer per product."""
    product = await db.get(Product, product_id)
    if not product or product.status != ModerationStatus.APPROVED:
        raise NotFound("Product not found or not approved.")

    existing = await db.execute(
        select(Review.id).where(
            Review.product_id == product_id,
            Review.customer_id == current_user.user_uuid,
        )
    )
    if existing.scalar_one_or_none():
        raise Conflict("You have already reviewed this product.")

    review = Review(
        product_id=product_id,
        customer_id=current_user.user_uuid,
        rating=payload.rating,
        comment=payload.comment,
    )
    db.add(review)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("You have already reviewed this product.")

    await db.refresh(review)
    return ReviewResponse(
        id=review.id,
        product_id=review.product_id,
        customer_id=review.customer_id,
        rating=review.rating,
        comment=review.comment,
        customer_email=current_user.email,
        created_at=review.created_at,
    )
