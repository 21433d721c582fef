"""Auth router: registration and login."""

from fastapi import APIRouter, Depends, Request, status
from libs.auth.security import create_access_token, hash_password, verify_password
from libs.common.errors import Conflict, Forbidden, Unauthorized, ValidationError
from libs.common.logging import get_logger
from libs.common.rate_limit import auth_limit
from libs.db.session import get_async_db
from services.marketplace_service.models import (
    ModerationStatus,
    Role,
    User,
    VendorProfile,
)
from services.marketplace_service.schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

router = APIRouter(prefix="/auth", tags=["auth"])
logger = get_logger(__name__)


def _auth_response(message: str, user: User, vendor: VendorProfile | None) -> AuthResponse:
    token = create_access_token(
        user_id=str(user.id),
        role=user.role.value,
        email=user.email,
        vendor_profile_id=str(vendor.id) if vendor else None,
    )
    return AuthResponse(
        message=message,
        token=token,
        user=UserResponse(
            id=user.id,
            email=user.email,
            role=user.role,
            vendor_status=vendor.status if vendor else None,
        ),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@auth_limit
async def register(
    request: Request,
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Create a CUSTOMER or VENDOR account. Vendors start PENDING approval."""
    if payload.role == Role.ADMIN:
        raise Forbidden("Admin accounts cannot be self-registered.")
    if payload.role == Role.VENDOR and not (payload.shop_name or "").strip():
        raise ValidationError("shop_name", "Shop name is required for vendor registration.")

    email = payload.email.lower()
    existing = await db.execute(select(User.id).where(User.email == email))
    if existing.scalar_one_or_none():
        raise Conflict("User with this email already exists.")

    user = User(
        email=email,
        password_hash=hash_password(payload.password),
        role=payload.role,
    )
    db.add(user)

    vendor = None
    if payload.role == Role.VENDOR:
        vendor = VendorProfile(
            user=user,
            shop_name=payload.shop_name.strip(),
            status=ModerationStatus.PENDING,
        )
        db.add(vendor)

    try:
        await db.commit()
    except IntegrityError:
        # Concurrent registration with the same email
        await db.rollback()
        raise Conflict("User with this email already exists.")

    logger.info("Registered %s %s", user.role.value, user.id)
    return _auth_response(f"{user.role.value} registered successfully.", user, vendor)


@router.post("/login", response_model=AuthResponse)
@auth_limit
async def login(
    request: Request,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Exchange email and password for a bearer token."""
    result = await db.execute(
        select(User)
        .where(User.email == payload.email.lower())
        .options(selectinload(User.vendor_profile))
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(payload.password, user.password_hash):
        raise Unauthorized("Invalid credentials.")

    vendor = user.vendor_profile if user.role == Role.VENDOR else None
    return _auth_response("Logged in successfully.", user, vendor)
