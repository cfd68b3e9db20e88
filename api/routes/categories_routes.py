"""Category endpoints."""

from fastapi import APIRouter, Request
from starlette import status

from core.database import DbSession
from core.errors import RequestError
from core.ratelimit import READ_LIMIT, WRITE_LIMIT, limiter
from schemas import CategoryCreate, CategoryResponse, ErrorResponse
from services.categories_service import (
    CategoryAlreadyExistsError,
    create_category,
    list_categories,
)

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse])
@limiter.limit(READ_LIMIT)
async def list_categories_endpoint(
    request: Request, db: DbSession
) -> list[CategoryResponse]:
    """List all categories, alphabetically."""
    categories = await list_categories(db)
    return [CategoryResponse.model_validate(c) for c in categories]


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Invalid request"}},
)
@limiter.limit(WRITE_LIMIT)
async def create_category_endpoint(
    request: Request, db: DbSession, payload: CategoryCreate
) -> CategoryResponse:
    if not payload.name.strip():
        raise RequestError.invalid("Category name is required")

    try:
        category = await create_category(db, payload.name, payload.description)
    except CategoryAlreadyExistsError as e:
        raise RequestError.invalid(str(e)) from e

    return CategoryResponse.model_validate(category)
