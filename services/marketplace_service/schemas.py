"""Pydantic schemas for marketplace service."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl, field_validator
from services.marketplace_service.models import ModerationStatus, OrderStatus, Role

# ============================================================================
# AUTH / USER SCHEMAS
# ============================================================================


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role = Role.CUSTOMER
    shop_name: Optional[str] = Field(None, max_length=255)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    role: Role
    vendor_status: Optional[ModerationStatus] = None


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserResponse


class ProfileResponse(UserResponse):
    vendor_profile_id: Optional[uuid.UUID] = None
    created_at: datetime
    permitted_views: list[str]
    landing_view: str


# ============================================================================
# CATEGORY SCHEMAS
# ============================================================================


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = None


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = None


class CategoryResponse(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_at: datetime
    updated_at: datetime


# ============================================================================
# PRODUCT SCHEMAS
# ============================================================================


class ProductBase(BaseModel):
    name: str = Field(..., min_length=3, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    stock: int = Field(..., ge=0)
    category_id: uuid.UUID
    image_url: Optional[HttpUrl] = None


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)
    category_id: Optional[uuid.UUID] = None
    image_url: Optional[HttpUrl] = None


class ProductStatusUpdate(BaseModel):
    status: ModerationStatus

    @field_validator("status")
    @classmethod
    def not_pending(cls, v: ModerationStatus) -> ModerationStatus:
        if v == ModerationStatus.PENDING:
            raise ValueError("Status must be 'APPROVED', 'REJECTED', or 'INACTIVE'.")
        return v


class ProductResponse(BaseModel):
    id: uuid.UUID
    vendor_id: uuid.UUID
    category_id: uuid.UUID
    name: str
    description: Optional[str] = None
    price: Decimal
    stock: int
    image_url: Optional[str] = None
    status: ModerationStatus
    category_name: Optional[str] = None
    shop_name: Optional[str] = None
    average_rating: float = 0.0
    review_count: int = 0
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    data: list[ProductResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class ProductSearchParams(BaseModel):
    """Query filters for the public product listing."""

    search: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    sort_by: Literal["created_at", "price", "name", "stock"] = "created_at"
    order: Literal["asc", "desc"] = "desc"
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)


# ============================================================================
# REVIEW SCHEMAS
# ============================================================================


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    customer_id: uuid.UUID
    rating: int
    comment: Optional[str] = None
    customer_email: Optional[str] = None
    created_at: datetime


class ProductDetail(ProductResponse):
    shop_description: Optional[str] = None
    reviews: list[ReviewResponse] = []


# ============================================================================
# CART SCHEMAS
# ============================================================================


class CartItemCreate(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(..., ge=1)


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=0)


class CartLineResponse(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    shop_name: Optional[str] = None
    image_url: Optional[str] = None
    unit_price: Decimal
    stock: int
    quantity: int
    line_total: Decimal


class CartResponse(BaseModel):
    items: list[CartLineResponse]
    total_amount: Decimal


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class OrderCreate(BaseModel):
    shipping_address: str = Field(..., min_length=5)
    contact_phone: str = Field(..., min_length=10)


class OrderStatusUpdate(BaseModel):
    # Coerced to OrderStatus after the caller's role is checked
    status: str


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    product_name: Optional[str] = None
    vendor_id: Optional[uuid.UUID] = None
    quantity: int
    price_at_order: Decimal
    line_total: Decimal


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    amount: Decimal
    payment_method: str
    status: str
    transaction_id: Optional[str] = None
    created_at: datetime


class OrderResponse(BaseModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    customer_email: Optional[str] = None
    order_date: datetime
    total_amount: Decimal
    status: OrderStatus
    payment_status: str
    shipping_address: str
    contact_phone: str
    items: list[OrderItemResponse] = []
    payments: list[PaymentResponse] = []
    created_at: datetime
    updated_at: datetime


class OrderPlacedResponse(BaseModel):
    message: str
    order: OrderResponse


# ============================================================================
# VENDOR SCHEMAS
# ============================================================================


class VendorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    email: Optional[str] = None
    shop_name: str
    shop_description: Optional[str] = None
    status: ModerationStatus
    created_at: datetime


class VendorDetail(VendorResponse):
    products: list[ProductResponse] = []


class VendorStatusUpdate(BaseModel):
    status: ModerationStatus

    @field_validator("status")
    @classmethod
    def approve_or_reject(cls, v: ModerationStatus) -> ModerationStatus:
        if v not in (ModerationStatus.APPROVED, ModerationStatus.REJECTED):
            raise ValueError("Status must be 'APPROVED' or 'REJECTED'.")
        return v


class VendorProfileUpdate(BaseModel):
    shop_name: Optional[str] = Field(None, min_length=1, max_length=255)
    shop_description: Optional[str] = None
