"""Timing instrumentation shared by the repositories."""

import time
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from core.logger import get_logger
from core.wide_event import set_wide_event_fields

logger = get_logger(__name__)

SLOW_QUERY_THRESHOLD_MS = 500

P = ParamSpec("P")
R = TypeVar("R")


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def log_slow_query(
    operation_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Record slow or failing repository calls on the request's wide event.

    Calls slower than SLOW_QUERY_THRESHOLD_MS are flagged with
    ``db_slow_query``; failures add ``db_query_error`` plus the error type and
    message, and the exception propagates unchanged.

        @log_slow_query("get_product_by_id")
        async def get_by_id(self, product_id: uuid.UUID) -> Product | None: ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                set_wide_event_fields(
                    db_query_error=True,
                    db_operation=operation_name,
                    db_duration_ms=_elapsed_ms(start),
                    db_error=str(e),
                    db_error_type=type(e).__name__,
                )
                raise

            duration_ms = _elapsed_ms(start)
            if duration_ms > SLOW_QUERY_THRESHOLD_MS:
                logger.warning(
                    "db.query.slow", operation=operation_name, duration_ms=duration_ms
                )
                set_wide_event_fields(
                    db_slow_query=True,
                    db_operation=operation_name,
                    db_duration_ms=duration_ms,
                )
            return result

        return wrapper

    return decorator
