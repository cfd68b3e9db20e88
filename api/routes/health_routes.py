"""Liveness, readiness, and component health endpoints.

``/health`` never touches the database, so it stays green while the
database is down. ``/ready`` is what load balancers should poll.
"""

from fastapi import APIRouter, HTTPException, Request
from starlette import status

from core.database import check_db_connection, comprehensive_health_check
from core.middleware import SERVICE_NAME
from core.ratelimit import limiter
from schemas import DetailedHealthResponse, HealthResponse, PoolStatusResponse

router = APIRouter(tags=["health"])

HEALTH_LIMIT = "30/minute"


def _unavailable(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="healthy", service=SERVICE_NAME)


@router.get("/health/detailed", response_model=DetailedHealthResponse)
@limiter.limit(HEALTH_LIMIT)
async def health_detailed(request: Request) -> DetailedHealthResponse:
    """Database reachability and pool counters. Always 200; read ``status``."""
    result = await comprehensive_health_check(request.app.state.engine)
    pool = result["pool"]

    return DetailedHealthResponse(
        status="healthy" if result["database"] else "unhealthy",
        service=SERVICE_NAME,
        database=result["database"],
        pool=PoolStatusResponse(**pool._asdict()) if pool is not None else None,
    )


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"description": "Starting, failed to start, or DB unreachable"}},
)
@limiter.limit(HEALTH_LIMIT)
async def ready(request: Request) -> HealthResponse:
    state = request.app.state
    init_error = getattr(state, "init_error", None)
    if init_error:
        raise _unavailable(f"Initialization failed: {init_error}")
    if not getattr(state, "init_done", False):
        raise _unavailable("Starting")

    try:
        await check_db_connection(state.engine)
    except Exception as e:
        raise _unavailable("Database unavailable") from e

    return HealthResponse(status="ready", service=SERVICE_NAME)
