"""Product repository for database operations."""

import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Category, Product
from repositories.utils import log_slow_query


class ProductRepository:
    """Repository for Product database operations.

    Methods flush but never commit; the request-scoped session owns the
    transaction.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @log_slow_query("list_products")
    async def list_all(self) -> Sequence[Product]:
        """All products, newest first."""
        result = await self.db.execute(
            select(Product).order_by(Product.created_at.desc(), Product.name)
        )
        return result.scalars().all()

    @log_slow_query("list_products_by_category")
    async def list_by_category(self, category_id: uuid.UUID) -> Sequence[Product]:
        result = await self.db.execute(
            select(Product)
            .where(Product.category_id == category_id)
            .order_by(Product.created_at.desc(), Product.name)
        )
        return result.scalars().all()

    @log_slow_query("get_product_by_id")
    async def get_by_id(self, product_id: uuid.UUID) -> Product | None:
        result = await self.db.execute(select(Product).where(Product.id == product_id))
        return result.scalar_one_or_none()

    @log_slow_query("create_product")
    async def create(
        self,
        *,
        name: str,
        price: float,
        category: Category,
        description: str | None = None,
        stock: int = 0,
        image_url: str | None = None,
        is_active: bool = True,
    ) -> Product:
        """Create a product in the given category.

        The category relationship is assigned directly so the returned
        instance is fully populated without another query.
        """
        product = Product(
            name=name,
            price=price,
            category=category,
            description=description,
            stock=stock,
            image_url=image_url,
            is_active=is_active,
        )
        self.db.add(product)
        await self.db.flush()
        return product

    @log_slow_query("update_product")
    async def update(self, product: Product, **fields: Any) -> Product:
        """Apply the given column values to a product and flush."""
        for key, value in fields.items():
            setattr(product, key, value)
        await self.db.flush()
        return product

    @log_slow_query("delete_product")
    async def delete(self, product: Product) -> None:
        await self.db.delete(product)
        await self.db.flush()
