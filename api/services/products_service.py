"""Product catalog service.

``ProductsService`` is the collaborator behind the products routes. Every
lookup signals absence with ``None`` (or ``False`` for delete) rather than an
exception; failures the caller is expected to act on are raised as
``ProductServiceError`` subclasses carrying a structured ``code``.

The service never commits. The request-scoped session dependency does.
"""

import uuid
from collections.abc import Sequence
from enum import StrEnum
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core import get_logger, set_wide_event_nested
from core.database import DbSession
from models import Category, Product
from repositories.category_repository import CategoryRepository
from repositories.product_repository import ProductRepository
from schemas import ProductCreate, ProductUpdate

logger = get_logger(__name__)

_REQUIRED_FIELDS = ("name", "price", "stock", "is_active")


class ProductErrorCode(StrEnum):
    CATEGORY_NOT_FOUND = "category_not_found"


class ProductServiceError(Exception):
    """Base class for failures reported by ProductsService."""

    code: ProductErrorCode

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class CategoryNotFoundError(ProductServiceError):
    code = ProductErrorCode.CATEGORY_NOT_FOUND

    def __init__(self, category_ref: str) -> None:
        super().__init__("Category not found")
        self.category_ref = category_ref


def parse_uuid(value: str | None) -> uuid.UUID | None:
    """Parse an identifier, returning None when it is not a UUID."""
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class ProductsService:
    """Persistence and business rules for products."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.products = ProductRepository(db)
        self.categories = CategoryRepository(db)

    async def find_all(self) -> Sequence[Product]:
        return await self.products.list_all()

    async def find_by_category(self, category_id: str) -> Sequence[Product]:
        """Products in a category. An unknown or malformed id yields no products."""
        parsed = parse_uuid(category_id)
        if parsed is None:
            return []
        return await self.products.list_by_category(parsed)

    async def find_one(self, product_id: str) -> Product | None:
        parsed = parse_uuid(product_id)
        if parsed is None:
            return None
        return await self.products.get_by_id(parsed)

    async def create(self, data: ProductCreate) -> Product:
        """Create a product.

        Raises:
            CategoryNotFoundError: Neither categoryId nor the category name
                matches an existing category.
        """
        category = await self._resolve_category(data.category_id, data.category)

        product = await self.products.create(
            name=(data.name or "").strip(),
            price=data.price,
            category=category,
            description=data.description,
            stock=data.stock,
            image_url=data.image_url,
            is_active=data.is_active,
        )

        set_wide_event_nested(
            "product", id=str(product.id), category_id=str(category.id)
        )
        logger.info(
            "product.created",
            product_id=str(product.id),
            category_id=str(category.id),
        )
        return product

    async def update(self, product_id: str, data: ProductUpdate) -> Product | None:
        """Apply the fields present in ``data``. Returns None if the product is absent.

        Raises:
            CategoryNotFoundError: The payload moves the product to a category
                that does not exist.
        """
        product = await self.find_one(product_id)
        if product is None:
            return None

        changes = data.model_dump(
            exclude_unset=True, exclude={"category_id", "category"}
        )
        # Non-nullable columns ignore explicit nulls
        for key in _REQUIRED_FIELDS:
            if key in changes and changes[key] is None:
                del changes[key]
        if "name" in changes:
            changes["name"] = changes["name"].strip()

        if data.category_id or data.category:
            changes["category"] = await self._resolve_category(
                data.category_id, data.category
            )

        product = await self.products.update(product, **changes)
        logger.info(
            "product.updated",
            product_id=str(product.id),
            fields=sorted(changes),
        )
        return product

    async def delete(self, product_id: str) -> bool:
        product = await self.find_one(product_id)
        if product is None:
            return False

        await self.products.delete(product)
        logger.info("product.deleted", product_id=str(product.id))
        return True

    async def update_stock(self, product_id: str, quantity: int) -> Product | None:
        """Set the stock level to ``quantity``."""
        product = await self.find_one(product_id)
        if product is None:
            return None

        previous = product.stock
        product = await self.products.update(product, stock=quantity)
        set_wide_event_nested("product", id=str(product.id), stock=quantity)
        logger.info(
            "product.stock.updated",
            product_id=str(product.id),
            previous_stock=previous,
            stock=quantity,
        )
        return product

    async def toggle_active(self, product_id: str) -> Product | None:
        product = await self.find_one(product_id)
        if product is None:
            return None

        product = await self.products.update(product, is_active=not product.is_active)
        logger.info(
            "product.active.toggled",
            product_id=str(product.id),
            is_active=product.is_active,
        )
        return product

    async def _resolve_category(
        self, category_id: str | None, category_name: str | None
    ) -> Category:
        """Find the category by id first, then by name (case-insensitive)."""
        category: Category | None = None

        if category_id:
            parsed = parse_uuid(category_id)
            if parsed is not None:
                category = await self.categories.get_by_id(parsed)
        elif category_name and category_name.strip():
            category = await self.categories.get_by_name(category_name)

        if category is None:
            raise CategoryNotFoundError(category_id or category_name or "")
        return category


def get_products_service(db: DbSession) -> ProductsService:
    """FastAPI dependency providing a ProductsService bound to the request session."""
    return ProductsService(db)


ProductsServiceDep = Annotated[ProductsService, Depends(get_products_service)]
