"""Product catalog endpoints.

Every handler follows the same sequence: validate the request, delegate to
``ProductsService``, then map the result onto a response or a
``RequestError``. Identifiers are validated before the service is called.
"""

import re

import structlog
from fastapi import APIRouter, Query, Request
from starlette import status

from core.errors import ErrorKind, RequestError
from core.logger import RequestLogger
from core.ratelimit import READ_LIMIT, WRITE_LIMIT, limiter
from schemas import (
    MAX_PRICE,
    MAX_STOCK,
    ErrorResponse,
    MessageEnvelope,
    ProductCreate,
    ProductEnvelope,
    ProductResponse,
    ProductUpdate,
    StockUpdate,
)
from services.products_service import (
    ProductErrorCode,
    ProductServiceError,
    ProductsServiceDep,
)

router = APIRouter(prefix="/api/products", tags=["products"])

# Hyphenated RFC 4122 UUID (versions 1-8), plus the nil and max UUIDs
_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[1-8][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}"
    r"|00000000-0000-0000-0000-000000000000"
    r"|ffffffff-ffff-ffff-ffff-ffffffffffff",
    re.IGNORECASE,
)

# Service error codes that are the client's fault; any other failure is internal
KIND_BY_ERROR_CODE: dict[ProductErrorCode, ErrorKind] = {
    ProductErrorCode.CATEGORY_NOT_FOUND: ErrorKind.INVALID_REQUEST,
}

_INVALID = {"model": ErrorResponse, "description": "Invalid request"}
_NOT_FOUND = {"model": ErrorResponse, "description": "Product not found"}
_INTERNAL = {"model": ErrorResponse, "description": "Internal failure"}


def validate_product_id(product_id: str | None) -> str:
    """Reject empty or non-UUID identifiers with an invalid-request error."""
    if not product_id or not product_id.strip():
        raise RequestError.invalid("Product ID is required")
    if not _UUID_RE.fullmatch(product_id):
        raise RequestError.invalid(f"Invalid UUID format: {product_id}")
    return product_id


def _storable_price(price: float) -> bool:
    """Whether the price fits Numeric(10, 2) without overflow or rounding."""
    return 0 < price <= MAX_PRICE and round(price, 2) == price


def _not_found(product_id: str) -> RequestError:
    return RequestError.not_found(f"Product with ID '{product_id}' not found")


def _failure(
    action: str, exc: Exception, log: structlog.stdlib.BoundLogger
) -> RequestError:
    """Map a service exception onto a request outcome.

    Codes listed in KIND_BY_ERROR_CODE keep the service's message; anything
    else becomes an internal failure that still carries the underlying message.
    """
    if isinstance(exc, ProductServiceError) and exc.code in KIND_BY_ERROR_CODE:
        log.warning("products.request.rejected", action=action, code=exc.code.value)
        return RequestError(KIND_BY_ERROR_CODE[exc.code], exc.message)

    log.error("products.request.failed", action=action, exc_info=exc)
    return RequestError.internal(f"Failed to {action}: {exc}")


@router.get(
    "",
    response_model=list[ProductResponse],
    responses={500: _INTERNAL},
)
@limiter.limit(READ_LIMIT)
async def list_products(
    request: Request,
    service: ProductsServiceDep,
    log: RequestLogger,
    category_id: str | None = Query(default=None, alias="categoryId"),
) -> list[ProductResponse]:
    """List products, optionally restricted to one category."""
    try:
        if category_id:
            products = await service.find_by_category(category_id)
        else:
            products = await service.find_all()
    except Exception as exc:
        raise _failure("retrieve products", exc, log) from exc

    log.info("products.listed", count=len(products), category_id=category_id)
    return [ProductResponse.model_validate(product) for product in products]


@router.get(
    "/{product_id}",
    response_model=ProductEnvelope,
    responses={400: _INVALID, 404: _NOT_FOUND, 500: _INTERNAL},
)
@limiter.limit(READ_LIMIT)
async def get_product(
    request: Request,
    product_id: str,
    service: ProductsServiceDep,
    log: RequestLogger,
) -> ProductEnvelope:
    validate_product_id(product_id)

    try:
        product = await service.find_one(product_id)
    except Exception as exc:
        raise _failure("retrieve product", exc, log) from exc

    if product is None:
        raise _not_found(product_id)

    return ProductEnvelope(
        message="Product retrieved successfully",
        data=ProductResponse.model_validate(product),
    )


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: _INVALID, 500: _INTERNAL},
)
@limiter.limit(WRITE_LIMIT)
async def create_product(
    request: Request,
    service: ProductsServiceDep,
    log: RequestLogger,
    payload: ProductCreate | None = None,
) -> ProductResponse:
    """Create a product. Requires a name, a positive price, and a category.

    The category is given either as ``categoryId`` or as a ``category`` name.
    """
    payload = payload or ProductCreate()

    if not payload.name or not payload.name.strip():
        raise RequestError.invalid("Product name is required")
    if payload.price is None or not _storable_price(payload.price):
        raise RequestError.invalid("Valid price is required")
    if not payload.category_id and not payload.category:
        raise RequestError.invalid("Category ID or category name is required")

    try:
        product = await service.create(payload)
    except Exception as exc:
        raise _failure("create product", exc, log) from exc

    log.info("product.create.succeeded", product_id=str(product.id))
    return ProductResponse.model_validate(product)


@router.put(
    "/{product_id}",
    response_model=ProductEnvelope,
    responses={400: _INVALID, 404: _NOT_FOUND, 500: _INTERNAL},
)
@limiter.limit(WRITE_LIMIT)
async def update_product(
    request: Request,
    product_id: str,
    service: ProductsServiceDep,
    log: RequestLogger,
    payload: ProductUpdate | None = None,
) -> ProductEnvelope:
    """Partially update a product. Only fields present in the body change."""
    validate_product_id(product_id)

    payload = payload or ProductUpdate()
    fields = payload.model_fields_set
    if not fields:
        raise RequestError.invalid("At least one field must be provided for update")
    if "price" in fields and (payload.price is None or payload.price <= 0):
        raise RequestError.invalid("Price must be greater than 0")
    if "price" in fields and not _storable_price(payload.price):
        raise RequestError.invalid("Valid price is required")
    if "name" in fields and (payload.name is None or not payload.name.strip()):
        raise RequestError.invalid("Product name cannot be empty")

    try:
        product = await service.update(product_id, payload)
    except Exception as exc:
        raise _failure("update product", exc, log) from exc

    if product is None:
        raise _not_found(product_id)

    return ProductEnvelope(
        message="Product updated successfully",
        data=ProductResponse.model_validate(product),
    )


@router.delete(
    "/{product_id}",
    response_model=MessageEnvelope,
    responses={400: _INVALID, 404: _NOT_FOUND, 500: _INTERNAL},
)
@limiter.limit(WRITE_LIMIT)
async def delete_product(
    request: Request,
    product_id: str,
    service: ProductsServiceDep,
    log: RequestLogger,
) -> MessageEnvelope:
    validate_product_id(product_id)

    try:
        deleted = await service.delete(product_id)
    except Exception as exc:
        raise _failure("delete product", exc, log) from exc

    if not deleted:
        raise _not_found(product_id)

    return MessageEnvelope(message="Product deleted successfully")


@router.put(
    "/{product_id}/stock",
    response_model=ProductEnvelope,
    responses={400: _INVALID, 404: _NOT_FOUND, 500: _INTERNAL},
)
@limiter.limit(WRITE_LIMIT)
async def update_stock(
    request: Request,
    product_id: str,
    service: ProductsServiceDep,
    log: RequestLogger,
    payload: StockUpdate | None = None,
) -> ProductEnvelope:
    """Set the stock level. ``quantity`` must be a whole, non-negative number."""
    validate_product_id(product_id)

    quantity = payload.quantity if payload else None
    # bool is an int subclass; JSON true/false is not a quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int | float):
        raise RequestError.invalid("Valid quantity is required")
    if isinstance(quantity, float):
        if not quantity.is_integer():
            raise RequestError.invalid("Valid quantity is required")
        quantity = int(quantity)
    if not 0 <= quantity <= MAX_STOCK:
        raise RequestError.invalid("Valid quantity is required")

    try:
        product = await service.update_stock(product_id, quantity)
    except Exception as exc:
        raise _failure("update stock", exc, log) from exc

    if product is None:
        raise _not_found(product_id)

    return ProductEnvelope(
        message="Stock updated successfully",
        data=ProductResponse.model_validate(product),
    )


@router.put(
    "/{product_id}/toggle-active",
    response_model=ProductEnvelope,
    responses={400: _INVALID, 404: _NOT_FOUND, 500: _INTERNAL},
)
@limiter.limit(WRITE_LIMIT)
async def toggle_active(
    request: Request,
    product_id: str,
    service: ProductsServiceDep,
    log: RequestLogger,
) -> ProductEnvelope:
    """Flip the product's active flag. The message reflects the new state."""
    validate_product_id(product_id)

    try:
        product = await service.toggle_active(product_id)
    except Exception as exc:
        raise _failure("toggle product status", exc, log) from exc

    if product is None:
        raise _not_found(product_id)

    state = "activated" if product.is_active else "deactivated"
    return ProductEnvelope(
        message=f"Product {state} successfully",
        data=ProductResponse.model_validate(product),
    )
