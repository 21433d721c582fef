"""User profile router."""

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.errors import NotFound
from libs.db.session import get_async_db
from services.marketplace_service.models import User
from services.marketplace_service.navigation import landing_view, permitted_views
from services.marketplace_service.schemas import ProfileResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Current user's profile plus the views their role may open."""
    result = await db.execute(
        select(User)
        .where(User.id == current_user.user_uuid)
        .options(selectinload(User.vendor_profile))
    )
    user = result.scalar_one_or_none()
    if not user:
        raise NotFound("User not found.")

    vendor = user.vendor_profile
    vendor_status = vendor.status if vendor else None
    views = permitted_views(user.role, vendor_status, authenticated=True)

    return ProfileResponse(
        id=user.id,
        email=user.email,
        role=user.role,
        vendor_status=vendor_status,
        vendor_profile_id=vendor.id if vendor else None,
        created_at=user.created_at,
        permitted_views=sorted(v.value for v in views),
        landing_view=landing_view(user.role, vendor_status, authenticated=True).value,
    )
