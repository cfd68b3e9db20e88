"""Category service for catalog category management."""

from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from core import get_logger
from models import Category
from repositories.category_repository import CategoryRepository

logger = get_logger(__name__)


class CategoryAlreadyExistsError(Exception):
    """A category with the same name (ignoring case) already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Category '{name}' already exists")
        self.name = name


async def list_categories(db: AsyncSession) -> Sequence[Category]:
    return await CategoryRepository(db).list_all()


async def create_category(
    db: AsyncSession, name: str, description: str | None = None
) -> Category:
    """Create a category unless one with the same name exists.

    Raises:
        CategoryAlreadyExistsError: The name is already taken.
    """
    repo = CategoryRepository(db)
    if await repo.get_by_name(name) is not None:
        raise CategoryAlreadyExistsError(name.strip())

    category = await repo.create(name, description)
    logger.info("category.created", category_id=str(category.id), name=category.name)
    return category


async def ensure_categories(db: AsyncSession, names: Sequence[str]) -> list[Category]:
    """Get or create each named category. Used by the seed command."""
    repo = CategoryRepository(db)
    categories: list[Category] = []
    for name in names:
        if not name.strip():
            continue
        category = await repo.get_by_name(name)
        if category is None:
            category = await repo.create(name)
            logger.info("category.seeded", name=category.name)
        categories.append(category)
    return categories
