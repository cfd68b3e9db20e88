"""Tests for categories_service module."""

from unittest.mock import AsyncMock, patch

import pytest

from services.categories_service import (
    CategoryAlreadyExistsError,
    create_category,
    ensure_categories,
    list_categories,
)
from tests.factories import CategoryFactory

pytestmark = pytest.mark.unit


@pytest.fixture
def mock_repo():
    with patch(
        "services.categories_service.CategoryRepository", autospec=True
    ) as repo_class:
        yield repo_class.return_value


class TestCreateCategory:
    async def test_creates_when_name_is_free(self, mock_repo):
        mock_db = AsyncMock()
        category = CategoryFactory.build(name="Toys")
        mock_repo.get_by_name.return_value = None
        mock_repo.create.return_value = category

        result = await create_category(mock_db, "Toys", "Games and toys")

        assert result is category
        mock_repo.create.assert_awaited_once_with("Toys", "Games and toys")
        mock_db.commit.assert_not_awaited()

    async def test_rejects_duplicate_name(self, mock_repo):
        mock_repo.get_by_name.return_value = CategoryFactory.build(name="Toys")

        with pytest.raises(CategoryAlreadyExistsError, match="'toys' already exists"):
            await create_category(AsyncMock(), " toys ")

        mock_repo.create.assert_not_called()


class TestListCategories:
    async def test_delegates_to_repository(self, mock_repo):
        categories = CategoryFactory.build_batch(2)
        mock_repo.list_all.return_value = categories

        assert await list_categories(AsyncMock()) == categories


class TestEnsureCategories:
    async def test_creates_only_missing(self, mock_repo):
        existing = CategoryFactory.build(name="Books")
        created = CategoryFactory.build(name="Garden")
        mock_repo.get_by_name.side_effect = [existing, None]
        mock_repo.create.return_value = created

        result = await ensure_categories(AsyncMock(), ["Books", "Garden"])

        assert result == [existing, created]
        mock_repo.create.assert_awaited_once_with("Garden")

    async def test_skips_blank_names(self, mock_repo):
        result = await ensure_categories(AsyncMock(), ["", "   "])

        assert result == []
        mock_repo.get_by_name.assert_not_called()
