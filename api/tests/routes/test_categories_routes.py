"""Tests for the /api/categories endpoints."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from core.database import get_db
from services.categories_service import CategoryAlreadyExistsError
from tests.factories import CategoryFactory

pytestmark = pytest.mark.unit


@pytest.fixture
def mock_db(app: FastAPI) -> MagicMock:
    db = MagicMock()
    app.dependency_overrides[get_db] = lambda: db
    return db


class TestListCategories:
    async def test_lists_categories(self, client: AsyncClient, mock_db: MagicMock):
        categories = [
            CategoryFactory.build(name="Books"),
            CategoryFactory.build(name="Garden"),
        ]

        with patch(
            "routes.categories_routes.list_categories",
            AsyncMock(return_value=categories),
        ) as mock_list:
            response = await client.get("/api/categories")

        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == ["Books", "Garden"]
        mock_list.assert_awaited_once_with(mock_db)


class TestCreateCategory:
    async def test_creates(self, client: AsyncClient, mock_db: MagicMock):
        category = CategoryFactory.build(name="Toys", description="Fun")

        with patch(
            "routes.categories_routes.create_category",
            AsyncMock(return_value=category),
        ) as mock_create:
            response = await client.post(
                "/api/categories", json={"name": "Toys", "description": "Fun"}
            )

        assert response.status_code == 201
        body = response.json()
        assert body["id"] == str(category.id)
        assert body["name"] == "Toys"
        mock_create.assert_awaited_once_with(mock_db, "Toys", "Fun")

    async def test_blank_name(self, client: AsyncClient, mock_db: MagicMock):
        with patch("routes.categories_routes.create_category") as mock_create:
            response = await client.post("/api/categories", json={"name": " "})

        assert response.status_code == 400
        assert response.json()["message"] == "Category name is required"
        mock_create.assert_not_called()

    async def test_duplicate_name(self, client: AsyncClient, mock_db: MagicMock):
        with patch(
            "routes.categories_routes.create_category",
            AsyncMock(side_effect=CategoryAlreadyExistsError("Toys")),
        ):
            response = await client.post("/api/categories", json={"name": "toys"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "invalid_request"
        assert body["message"] == "Category 'Toys' already exists"
