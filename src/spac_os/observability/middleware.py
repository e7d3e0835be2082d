"""
spac_os.observability.middleware

Request-scoped logging context.

Responsibilities:
- Generate or propagate `x-request-id`.
- Bind request metadata into structlog contextvars for every log line of the request.
- Emit one access line per request (skipping health checks), warning on 5xx.
"""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from spac_os.observability.logging import get_logger

log = get_logger(__name__)

QUIET_PATHS = frozenset({"/healthz", "/readyz"})


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        path = request.url.path
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=path,
        )
        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
            if path not in QUIET_PATHS:
                emit = log.warning if response.status_code >= 500 else log.info
                emit(
                    "request_completed",
                    status_code=response.status_code,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                )
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers["x-request-id"] = request_id
        return response


# --- Module Notes -----------------------------------------------------------
# The guard and auth dependency add `user_id` / `organization_id` through
# `observability.logging.bind_request_context`.
