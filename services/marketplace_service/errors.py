"""Checkout-specific errors layered on the shared taxonomy."""

import uuid
from typing import Optional

from fastapi import HTTPException, status
from libs.common.errors import Conflict


class EmptyCart(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Your cart is empty."
        )


class ProductUnavailable(HTTPException):
    """The product is gone or no longer APPROVED."""

    def __init__(self, product_id: uuid.UUID, product_name: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Product "{product_name or product_id}" is not available or approved.',
        )
        self.product_id = product_id


class InsufficientStock(Conflict):
    def __init__(self, product_id: uuid.UUID, product_name: str, available: int):
        super().__init__(
            detail=f"Insufficient stock for {product_name}. Available: {available}"
        )
        self.product_id = product_id
        self.available = available
