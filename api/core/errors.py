"""Request outcome kinds and their HTTP rendering.

Routes raise ``RequestError`` with one of three kinds. The handlers installed
by ``register_exception_handlers`` render it, request validation failures,
and unhandled exceptions as the same JSON shape::

    {"success": false, "message": "...", "error": "not_found"}
"""

from enum import StrEnum

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from core.logger import get_logger

logger = get_logger(__name__)


class ErrorKind(StrEnum):
    INVALID_REQUEST = "invalid_request"
    NOT_FOUND = "not_found"
    INTERNAL_FAILURE = "internal_failure"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INTERNAL_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class RequestError(Exception):
    """A request failed with a known outcome kind."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    @classmethod
    def invalid(cls, message: str) -> "RequestError":
        return cls(ErrorKind.INVALID_REQUEST, message)

    @classmethod
    def not_found(cls, message: str) -> "RequestError":
        return cls(ErrorKind.NOT_FOUND, message)

    @classmethod
    def internal(cls, message: str) -> "RequestError":
        return cls(ErrorKind.INTERNAL_FAILURE, message)


def error_body(kind: ErrorKind, message: str, **extra: object) -> dict:
    return {"success": False, "message": message, "error": kind.value, **extra}


async def request_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a RequestError with the status mapped from its kind."""
    if not isinstance(exc, RequestError):
        return JSONResponse(status_code=500, content={"detail": "Unexpected error"})

    if exc.kind is ErrorKind.INTERNAL_FAILURE:
        logger.error(
            "request.internal_failure",
            path=request.url.path,
            method=request.method,
            message=exc.message,
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.kind, exc.message),
    )


async def validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Malformed bodies and parameters are invalid requests, not 422s.

    The first error becomes the message (``"price: Input should be ..."``);
    the full list is attached under ``errors``.
    """
    if not isinstance(exc, RequestValidationError):
        return JSONResponse(status_code=500, content={"detail": "Unexpected error"})

    errors = exc.errors()
    logger.warning(
        "request.validation_error",
        path=request.url.path,
        method=request.method,
        error_count=len(errors),
    )

    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{location}: {first['msg']}" if location else first["msg"]

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            ErrorKind.INVALID_REQUEST, message, errors=jsonable_encoder(errors)
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort. The client gets a generic message; the log gets the traceback."""
    logger.error(
        "unhandled.exception",
        exc_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            ErrorKind.INTERNAL_FAILURE,
            "An unexpected error occurred. Please try again.",
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestError, request_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
