"""Repository for category operations."""

import uuid
from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Category
from repositories.utils import log_slow_query


class CategoryRepository:
    """Repository for Category CRUD operations."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @log_slow_query("get_category_by_id")
    async def get_by_id(self, category_id: uuid.UUID) -> Category | None:
        result = await self.db.execute(
            select(Category).where(Category.id == category_id)
        )
        return result.scalar_one_or_none()

    @log_slow_query("get_category_by_name")
    async def get_by_name(self, name: str) -> Category | None:
        """Case-insensitive lookup, backed by the lower(name) unique index."""
        result = await self.db.execute(
            select(Category).where(func.lower(Category.name) == name.strip().lower())
        )
        return result.scalar_one_or_none()

    @log_slow_query("list_categories")
    async def list_all(self) -> Sequence[Category]:
        result = await self.db.execute(select(Category).order_by(Category.name))
        return result.scalars().all()

    @log_slow_query("create_category")
    async def create(self, name: str, description: str | None = None) -> Category:
        """Create a category. Calls flush() but does NOT commit."""
        category = Category(name=name.strip(), description=description)
        self.db.add(category)
        await self.db.flush()
        return category
