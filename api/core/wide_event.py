"""Per-request "wide event": one dict of context, logged once as a canonical line.

RequestContextMiddleware opens the event with the request's basics, any layer
may add to it while the request runs, and the middleware logs it as
``request.completed`` when the response finishes.

    set_wide_event_fields(product_id=str(product.id))
    set_wide_event_nested("product", id=str(product.id), stock=4)

Outside a request (CLI, scripts, most unit tests) the event is empty and the
setters do nothing.
"""

from contextvars import ContextVar
from typing import Any

_wide_event: ContextVar[dict[str, Any] | None] = ContextVar("wide_event", default=None)


def init_wide_event() -> dict[str, Any]:
    """Start a fresh event for the current context and return it for seeding."""
    event: dict[str, Any] = {}
    _wide_event.set(event)
    return event


def get_wide_event() -> dict[str, Any]:
    return _wide_event.get() or {}


def _active_event() -> dict[str, Any] | None:
    # An event the middleware has not seeded yet is treated as absent
    return _wide_event.get() or None


def set_wide_event_field(key: str, value: Any) -> None:
    set_wide_event_fields(**{key: value})


def set_wide_event_fields(**fields: Any) -> None:
    event = _active_event()
    if event is not None:
        event.update(fields)


def set_wide_event_nested(group: str, **fields: Any) -> None:
    """Merge ``fields`` into ``event[group]``, e.g. ``{"product": {"id": ...}}``."""
    event = _active_event()
    if event is not None:
        event.setdefault(group, {}).update(fields)


def clear_wide_event() -> None:
    _wide_event.set(None)
