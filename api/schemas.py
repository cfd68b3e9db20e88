"""Pydantic schemas for API request/response validation.

Product and category payloads use camelCase on the wire (``categoryId``,
``isActive``) and accept snake_case input as well.
"""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# Categories
# =============================================================================


class CategoryResponse(CamelModel):
    id: uuid.UUID
    name: str
    description: str | None = None


class CategoryCreate(CamelModel):
    name: str = Field(default="", max_length=120)
    description: str | None = None


# =============================================================================
# Products
# =============================================================================

# Column bounds: price is Numeric(10, 2), stock is a 32-bit Integer
MAX_PRICE = 99_999_999.99
MAX_STOCK = 2**31 - 1


class ProductResponse(CamelModel):
    """Product as returned by the API."""

    id: uuid.UUID
    name: str
    description: str | None = None
    price: float
    stock: int
    is_active: bool
    image_url: str | None = None
    category_id: uuid.UUID
    category: CategoryResponse | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProductCreate(CamelModel):
    """Create payload.

    Required fields are checked by the route rather than the model so that
    missing values produce the same invalid-request body as bad ones.
    """

    name: str | None = Field(default=None, max_length=255)
    price: float | None = Field(default=None, allow_inf_nan=False)
    category_id: str | None = None
    # Category name, used when no categoryId is given
    category: str | None = Field(default=None, max_length=120)
    description: str | None = None
    stock: int = Field(default=0, ge=0, le=MAX_STOCK)
    image_url: str | None = None
    is_active: bool = True


class ProductUpdate(CamelModel):
    """Partial update payload. Only fields present in the request are applied."""

    name: str | None = Field(default=None, max_length=255)
    price: float | None = Field(default=None, allow_inf_nan=False)
    category_id: str | None = None
    category: str | None = Field(default=None, max_length=120)
    description: str | None = None
    stock: int | None = Field(default=None, ge=0, le=MAX_STOCK)
    image_url: str | None = None
    is_active: bool | None = None


class StockUpdate(BaseModel):
    # Left untyped: a non-numeric quantity is an invalid request, not a 422
    quantity: Any = None


# =============================================================================
# Envelopes
# =============================================================================


class ProductEnvelope(CamelModel):
    success: bool = True
    message: str
    data: ProductResponse


class MessageEnvelope(CamelModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    error: str


# =============================================================================
# Health
# =============================================================================


class HealthResponse(BaseModel):
    status: str
    service: str


class PoolStatusResponse(BaseModel):
    pool_size: int
    checked_out: int
    overflow: int
    checked_in: int


class DetailedHealthResponse(HealthResponse):
    database: bool
    pool: PoolStatusResponse | None = None
