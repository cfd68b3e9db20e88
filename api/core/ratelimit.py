"""Per-client rate limiting with slowapi.

Limits are keyed by client address. Storage defaults to process memory;
set RATELIMIT_STORAGE_URI to a Redis URL when running more than one replica.
"""

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from core.config import get_settings
from core.logger import get_logger

logger = get_logger(__name__)

_settings = get_settings()

if not _settings.debug and _settings.ratelimit_storage_uri == "memory://":
    logger.warning(
        "ratelimit.storage.in_memory",
        hint="Set RATELIMIT_STORAGE_URI to a Redis URL for replicas",
    )

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[_settings.ratelimit_default],
    storage_uri=_settings.ratelimit_storage_uri,
    # Fall back to memory while Redis is unreachable
    in_memory_fallback_enabled=_settings.ratelimit_storage_uri.startswith("redis"),
    key_prefix="storefront:",
)

READ_LIMIT = _settings.ratelimit_read
WRITE_LIMIT = _settings.ratelimit_write


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    logger.warning(
        "ratelimit.exceeded",
        client=get_remote_address(request),
        path=request.url.path,
        limit=exc.detail,
    )
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "message": "Rate limit exceeded. Please slow down.",
            "error": "rate_limited",
            "retry_after": exc.detail,
        },
        headers={"Retry-After": str(getattr(exc, "retry_after", 60))},
    )
