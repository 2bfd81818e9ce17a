"""Request ID and one summary log line per request.

The ID lives in a ContextVar and a root-logger filter stamps it on every
LogRecord, so interleaved lines from concurrent requests stay separable.

Notifier work runs as a background task inside the originating request's
context: its log lines carry the same ID, and an event it dead-letters
records the ID in the payload so the failure can be traced back to the
request that committed it.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

NO_REQUEST = "-"

# Client-supplied IDs end up in logs and queue payloads.
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

request_id_var: ContextVar[str] = ContextVar("request_id", default=NO_REQUEST)


def current_request_id() -> str | None:
    """The active request's ID, or None outside a request (the worker)."""
    value = request_id_var.get()
    return None if value == NO_REQUEST else value


def resolve_request_id(header: str | None) -> str:
    if header and _VALID_REQUEST_ID.match(header):
        return header
    return str(uuid.uuid4())


class _RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()  # type: ignore[attr-defined]
        return True


root_logger = logging.getLogger()
if not any(isinstance(f, _RequestContextFilter) for f in root_logger.filters):
    root_logger.addFilter(_RequestContextFilter())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Reuse a well-formed X-Request-ID or mint one; echo it on the response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = resolve_request_id(request.headers.get("x-request-id"))
        request_id_var.set(req_id)

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response
