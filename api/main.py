"""FastAPI application for the Storefront API."""

import asyncio
import subprocess
import sys
from contextlib import asynccontextmanager, suppress
from pathlib import Path

import fastapi
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from core.config import get_settings
from core.database import (
    create_engine,
    create_session_maker,
    dispose_engine,
    init_db,
    warm_pool,
)
from core.errors import register_exception_handlers
from core.logger import configure_logging, get_logger
from core.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from core.ratelimit import limiter, rate_limit_exceeded_handler
from routes import categories_router, health_router, products_router

configure_logging()
logger = get_logger(__name__)

API_DIR = Path(__file__).parent
INIT_TIMEOUT_SECONDS = 60
MIGRATION_TIMEOUT_SECONDS = 120

_UPGRADE_TO_HEAD = (
    "from alembic import command; "
    "from alembic.config import Config; "
    "command.upgrade(Config('alembic.ini'), 'head')"
)


async def _run_alembic_migrations() -> None:
    """Upgrade to head in a child process.

    env.py drives a synchronous driver, so it stays off the event loop.
    """
    result = await asyncio.to_thread(
        subprocess.run,
        [sys.executable, "-c", _UPGRADE_TO_HEAD],
        cwd=API_DIR,
        capture_output=True,
        text=True,
        timeout=MIGRATION_TIMEOUT_SECONDS,
    )
    if result.returncode != 0:
        stderr = result.stderr.strip()
        logger.error("migrations.failed", stderr=stderr)
        raise RuntimeError(f"Alembic migration failed:\n{stderr}")

    logger.info("migrations.complete")


@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    """Connect and migrate before serving; dispose of the engine on shutdown."""
    settings = get_settings()
    app.state.engine = create_engine()
    app.state.session_maker = create_session_maker(app.state.engine)
    app.state.init_done = False
    app.state.init_error = None

    try:
        async with asyncio.timeout(INIT_TIMEOUT_SECONDS):
            await init_db(app.state.engine)
        if settings.run_migrations_on_startup:
            await _run_alembic_migrations()
    except TimeoutError as e:
        app.state.init_error = "startup timed out"
        logger.error("init.timeout", hint="Check DB connectivity and migration state")
        raise RuntimeError("Application startup timed out") from e
    except Exception as e:
        app.state.init_error = str(e)
        logger.error("init.failed", error=str(e), exc_info=True)
        raise

    app.state.init_done = True
    logger.info("init.complete")
    warmup_task = asyncio.create_task(warm_pool(app.state.engine))

    try:
        yield
    finally:
        warmup_task.cancel()
        with suppress(asyncio.CancelledError):
            await warmup_task
        await dispose_engine(app.state.engine)


_settings = get_settings()

app = fastapi.FastAPI(
    title="Storefront API",
    description="Product catalog for the storefront.",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if _settings.docs_enabled else None,
    redoc_url="/redoc" if _settings.docs_enabled else None,
    openapi_url="/openapi.json" if _settings.docs_enabled else None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
register_exception_handlers(app)

app.add_middleware(SecurityHeadersMiddleware)

if _settings.allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
        expose_headers=["X-Request-Duration-Ms", "X-Request-Id"],
        max_age=600,
    )

# Added last so it wraps everything else and the request id is bound first
app.add_middleware(RequestContextMiddleware)

app.include_router(health_router)
app.include_router(categories_router)
app.include_router(products_router)
