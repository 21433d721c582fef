"""Shared helper functions for marketplace routers."""

import uuid
from typing import Iterable

from services.marketplace_service.models import Product, Review
from services.marketplace_service.schemas import ProductResponse
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

RatingStats = dict[uuid.UUID, tuple[float, int]]


async def rating_stats(db: AsyncSession, product_ids: Iterable[uuid.UUID]) -> RatingStats:
    """Average rating (1 decimal) and review count per product, computed now."""
    product_ids = list(product_ids)
    if not product_ids:
        return {}

    result = await db.execute(
        select(Review.product_id, func.avg(Review.rating), func.count(Review.id))
        .where(Review.product_id.in_(product_ids))
        .group_by(Review.product_id)
    )
    return {
        product_id: (round(float(avg or 0), 1), count)
        for product_id, avg, count in result.all()
    }


def product_response(product: Product, stats: RatingStats | None = None) -> ProductResponse:
    """Build a ProductResponse; ``category`` and ``vendor`` must be loaded."""
    average, count = (stats or {}).get(product.id, (0.0, 0))
    return ProductResponse(
        id=product.id,
        vendor_id=product.vendor_id,
        category_id=product.category_id,
        name=product.name,
        description=product.description,
        price=product.price,
        stock=product.stock,
        image_url=product.image_url,
        status=product.status,
        category_name=product.category.name if product.category else None,
        shop_name=product.vendor.shop_name if product.vendor else None,
        average_rating=average,
        review_count=count,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )
