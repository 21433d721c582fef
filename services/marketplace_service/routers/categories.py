"""Category router: public listing, admin management."""

import uuid

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.errors import Conflict, NotFound
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.marketplace_service.models import Category, Product
from services.marketplace_service.schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/categories", tags=["categories"])
logger = get_logger(__name__)


async def _get_category(db: AsyncSession, category_id: uuid.UUID) -> Category:
    category = await db.get(Category, category_id)
    if not category:
        raise NotFound("Category not found.")
    return category


async def _ensure_unique_name(
    db: AsyncSession, name: str, exclude_id: uuid.UUID | None = None
) -> None:
    query = select(Category.id).where(func.lower(Category.name) == name.lower())
    if exclude_id:
        query = query.where(Category.id != exclude_id)
    if (await db.execute(query)).scalar_one_or_none():
        raise Conflict("Category with this name already exists.")


@router.get("", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_async_db)):
    result = await db.execute(select(Category).order_by(Category.name))
    return result.scalars().all()


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await _ensure_unique_name(db, payload.name)
    category = Category(name=payload.name.strip(), description=payload.description)
    db.add(category)
    await db.commit()
    await db.refresh(category)
    logger.info("Category %s created by %s", category.id, current_user.user_id)
    return category


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: uuid.UUID,
    payload: CategoryUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    category = await _get_category(db, category_id)

    update_data = payload.model_dump(exclude_unset=True)
    if "name" in update_data and update_data["name"]:
        await _ensure_unique_name(db, update_data["name"], exclude_id=category.id)
        update_data["name"] = update_data["name"].strip()

    for field, value in update_data.items():
        setattr(category, field, value)

    await db.commit()
    await db.refresh(category)
    return category


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a category that no product references."""
    category = await _get_category(db, category_id)

    in_use = await db.execute(
        select(func.count(Product.id)).where(Product.category_id == category.id)
    )
    if in_use.scalar():
        raise Conflict("Category is in use by existing products.")

    await db.delete(category)
    await db.commit()
    logger.info("Category %s deleted by %s", category_id, current_user.user_id)
