"""Route test configuration.

Route tests run the real app over ASGITransport (no lifespan, so no
database) with the rate limiter disabled and the service layer replaced by
autospec mocks.
"""

from collections.abc import AsyncGenerator, Generator
from unittest.mock import MagicMock, create_autospec, patch

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from services.products_service import ProductsService, get_products_service


@pytest.fixture(autouse=True)
def _disable_rate_limiter():
    """Disable slowapi rate limiting so route handlers can be called directly."""
    with patch("core.ratelimit.limiter.enabled", False):
        yield


@pytest.fixture
def app() -> Generator[FastAPI]:
    from main import app as fastapi_app

    fastapi_app.state.init_done = True
    fastapi_app.state.init_error = None
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def products_service(app: FastAPI) -> MagicMock:
    """ProductsService double injected in place of the real dependency."""
    service = create_autospec(ProductsService, instance=True)
    app.dependency_overrides[get_products_service] = lambda: service
    return service


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
