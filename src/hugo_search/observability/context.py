"""Request-scoped context shared with log records."""

from __future__ import annotations

from contextvars import ContextVar, Token
from typing import Any
from uuid import uuid4


REQUEST_ID_HEADER = "x-request-id"
MAX_REQUEST_ID_LEN = 128

# Per-task context for request correlation
request_context: ContextVar[dict | None] = ContextVar("request_context", default=None)


def generate_request_id() -> str:
    """Generate a 32-char hex request ID."""
    return uuid4().hex


def get_request_context() -> dict:
    """Get the current request context (empty outside a request)."""
    return request_context.get() or {}


def set_request_context(request_id: str, **extra: object) -> Token:
    """Set the request context for the current async context."""
    return request_context.set({"request_id": request_id, **extra})


class RequestContextMiddleware:
    """Starlette middleware binding ``X-Request-ID`` to the request context.

    An incoming header value is reused; otherwise a new ID is generated.
    The ID is echoed back on the response.
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        request_id = headers.get(REQUEST_ID_HEADER.encode(), b"").decode("latin-1").strip()
        if not request_id or len(request_id) > MAX_REQUEST_ID_LEN:
            request_id = generate_request_id()

        index_name = _extract_index_from_path(scope.get("path", ""))
        extra = {"index": index_name} if index_name else {}
        token = set_request_context(request_id, **extra)

        async def send_with_request_id(message: dict) -> None:
            if message["type"] == "http.response.start":
                response_headers = list(message.get("headers", []))
                response_headers.append((REQUEST_ID_HEADER.encode(), request_id.encode("latin-1")))
                message["headers"] = response_headers
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            request_context.reset(token)


def _extract_index_from_path(path: str) -> str | None:
    parts = [part for part in path.split("/") if part]
    if len(parts) >= 2 and parts[0] == "api" and not parts[1].startswith("_"):
        return parts[1]
    return None
