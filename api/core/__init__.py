"""Cross-cutting pieces shared by routes, services, and repositories.

    from core import get_logger, set_wide_event_nested
"""

from core.logger import RequestLogger, bind_contextvars, clear_contextvars, get_logger
from core.wide_event import (
    get_wide_event,
    set_wide_event_field,
    set_wide_event_fields,
    set_wide_event_nested,
)

__all__ = [
    "RequestLogger",
    "bind_contextvars",
    "clear_contextvars",
    "get_logger",
    "get_wide_event",
    "set_wide_event_field",
    "set_wide_event_fields",
    "set_wide_event_nested",
]
