"""Structured logging with structlog.

Everything goes through one stdout handler: structlog loggers and plain
stdlib loggers (uvicorn, sqlalchemy, alembic) alike. Output is JSON when
``LOG_FORMAT=json`` and a colored console format otherwise; ``LOG_LEVEL``
sets the threshold.

Events are dotted names with keyword context::

    from core import get_logger
    logger = get_logger(__name__)
    logger.info("product.created", product_id="...", category_id="...")

Route handlers take the injected ``RequestLogger`` instead, which is bound to
the current request id, method, and path.
"""

import logging
import os
import sys
from typing import Annotated

import structlog
from fastapi import Depends, Request
from structlog.contextvars import bind_contextvars, clear_contextvars
from structlog.types import Processor

__all__ = [
    "RequestLogger",
    "bind_contextvars",
    "clear_contextvars",
    "configure_logging",
    "get_logger",
    "get_request_logger",
]

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
}


def _log_level() -> int:
    return logging.getLevelNamesMapping().get(
        os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO
    )


def _renderer() -> Processor:
    if os.environ.get("LOG_FORMAT", "").lower() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True, exception_formatter=structlog.dev.plain_traceback
    )


def _shared_processors() -> list[Processor]:
    """Run for structlog events and, via foreign_pre_chain, stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging() -> None:
    """Install the structlog pipeline and the root handler. Safe to call again."""
    shared = _shared_processors()

    structlog.configure(
        processors=[
            *shared,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            # stdlib records carry their context in `extra=`
            foreign_pre_chain=[structlog.stdlib.ExtraAdder(), *shared],
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                _renderer(),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(_log_level())

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.stdlib.get_logger(name)


def get_request_logger(request: Request) -> structlog.stdlib.BoundLogger:
    """FastAPI dependency: a logger bound to the current request."""
    return get_logger("routes").bind(
        request_id=getattr(request.state, "request_id", None),
        http_method=request.method,
        http_path=request.url.path,
    )


RequestLogger = Annotated[structlog.stdlib.BoundLogger, Depends(get_request_logger)]
