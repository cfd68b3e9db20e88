"""Unit tests for core.middleware module.

Tests ASGI middleware:
- SecurityHeadersMiddleware adds security headers and skips non-HTTP scopes
- RequestContextMiddleware assigns a request id, adds timing headers,
  and emits the canonical request.completed line
"""

import uuid
from unittest.mock import patch

import pytest

from core.middleware import (
    SERVICE_NAME,
    RequestContextMiddleware,
    SecurityHeadersMiddleware,
)
from core.wide_event import get_wide_event, set_wide_event_fields

pytestmark = pytest.mark.unit


async def _noop_receive():
    return {"type": "http.request", "body": b""}


def _app_with_status(status: int):
    async def app(scope, receive, send):
        await send({"type": "http.response.start", "status": status, "headers": []})
        await send({"type": "http.response.body", "body": b"{}"})

    return app


def _http_scope(method: str = "GET", path: str = "/api/products") -> dict:
    return {
        "type": "http",
        "method": method,
        "path": path,
        "client": ("10.0.0.1", 5000),
    }


async def _run(middleware, scope):
    sent = []

    async def send(message):
        sent.append(message)

    await middleware(scope, _noop_receive, send)
    return sent


class TestSecurityHeadersMiddleware:
    async def test_adds_security_headers(self):
        sent = await _run(
            SecurityHeadersMiddleware(_app_with_status(200)), _http_scope()
        )

        headers = dict(sent[0]["headers"])
        assert headers[b"x-content-type-options"] == b"nosniff"
        assert headers[b"x-frame-options"] == b"DENY"
        assert b"content-security-policy" in headers
        assert b"strict-transport-security" in headers

    async def test_skips_non_http_scopes(self):
        called = False

        async def inner_app(scope, receive, send):
            nonlocal called
            called = True

        await SecurityHeadersMiddleware(inner_app)(
            {"type": "lifespan"}, _noop_receive, None
        )

        assert called


class TestRequestContextMiddleware:
    async def test_sets_request_id_header_and_state(self):
        scope = _http_scope()
        sent = await _run(RequestContextMiddleware(_app_with_status(200)), scope)

        headers = dict(sent[0]["headers"])
        request_id = headers[b"x-request-id"].decode()
        uuid.UUID(request_id)
        assert scope["state"]["request_id"] == request_id
        assert float(headers[b"x-request-duration-ms"]) >= 0

    async def test_reads_are_not_logged(self):
        with patch("core.middleware.logger") as mock_logger:
            await _run(RequestContextMiddleware(_app_with_status(200)), _http_scope())

        mock_logger.info.assert_not_called()

    async def test_writes_are_logged_with_wide_event(self):
        async def app(scope, receive, send):
            set_wide_event_fields(product_id="abc")
            await _app_with_status(201)(scope, receive, send)

        with patch("core.middleware.logger") as mock_logger:
            await _run(RequestContextMiddleware(app), _http_scope(method="POST"))

        mock_logger.info.assert_called_once()
        args, fields = mock_logger.info.call_args
        assert args == ("request.completed",)
        assert fields["service_name"] == SERVICE_NAME
        assert fields["http_status_code"] == 201
        assert fields["outcome"] == "success"
        assert fields["product_id"] == "abc"
        assert fields["http_client_ip"] == "10.0.0.1"

    async def test_errors_are_logged(self):
        with patch("core.middleware.logger") as mock_logger:
            await _run(RequestContextMiddleware(_app_with_status(404)), _http_scope())

        _, fields = mock_logger.info.call_args
        assert fields["outcome"] == "error"
        assert fields["http_status_code"] == 404

    async def test_exception_is_logged_and_reraised(self):
        async def app(scope, receive, send):
            raise RuntimeError("kaboom")

        with patch("core.middleware.logger") as mock_logger:
            with pytest.raises(RuntimeError, match="kaboom"):
                await _run(RequestContextMiddleware(app), _http_scope())

        _, fields = mock_logger.info.call_args
        assert fields["outcome"] == "exception"
        assert fields["exception_type"] == "RuntimeError"

    async def test_wide_event_cleared_after_response(self):
        await _run(
            RequestContextMiddleware(_app_with_status(200)), _http_scope("DELETE")
        )

        assert get_wide_event() == {}
