"""Factory Boy factories for generating test data.

Usage:
    # In-memory only (route and service unit tests)
    product = ProductFactory.build()

    # Persisted (repository integration tests)
    product = await create_async(ProductFactory, db_session, price=9.99)

    # Product in a specific category
    product = ProductFactory.build(category=category)
"""

import uuid
from datetime import UTC, datetime

import factory
from faker import Faker
from sqlalchemy.ext.asyncio import AsyncSession

from models import Category, Product

fake = Faker()


# =============================================================================
# Async Factory Helpers
# =============================================================================


async def create_async(
    factory_class: type[factory.Factory], db: AsyncSession, **kwargs
):
    """Create an instance using a factory and persist it (flush only)."""
    instance = factory_class.build(**kwargs)
    db.add(instance)
    await db.flush()
    await db.refresh(instance)
    return instance


async def create_batch_async(
    factory_class: type[factory.Factory], db: AsyncSession, size: int, **kwargs
):
    instances = factory_class.build_batch(size, **kwargs)
    db.add_all(instances)
    await db.flush()
    for instance in instances:
        await db.refresh(instance)
    return instances


# =============================================================================
# Catalog Factories
# =============================================================================


class CategoryFactory(factory.Factory):
    class Meta:
        model = Category

    id = factory.LazyFunction(uuid.uuid4)
    name = factory.Sequence(lambda n: f"{fake.word().title()} {n}")
    description = factory.LazyAttribute(lambda _: fake.sentence())
    created_at = factory.LazyFunction(lambda: datetime.now(UTC))
    updated_at = factory.LazyFunction(lambda: datetime.now(UTC))


class ProductFactory(factory.Factory):
    """Product with its category attached, so responses can embed it."""

    class Meta:
        model = Product

    id = factory.LazyFunction(uuid.uuid4)
    name = factory.LazyAttribute(lambda _: fake.catch_phrase()[:255])
    description = factory.LazyAttribute(lambda _: fake.paragraph())
    price = factory.LazyAttribute(
        lambda _: float(fake.pydecimal(left_digits=3, right_digits=2, positive=True))
    )
    stock = factory.LazyAttribute(lambda _: fake.random_int(0, 500))
    is_active = True
    image_url = factory.LazyAttribute(lambda _: fake.image_url())
    category = factory.SubFactory(CategoryFactory)
    category_id = factory.LazyAttribute(lambda obj: obj.category.id)
    created_at = factory.LazyFunction(lambda: datetime.now(UTC))
    updated_at = factory.LazyFunction(lambda: datetime.now(UTC))
